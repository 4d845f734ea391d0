import argparse
import sys

import numpy as np

from pypcmchunk.aiff.aiff_codec import decode_aiff, encode_aiff
from pypcmchunk.wav.wav_codec import decode_wav, encode_wav
from pypcmchunk.core.container import toggle_8bit_sign
from pypcmchunk.editor.envelopes import constant, linear_ramp, sine
from pypcmchunk.editor.mixer import PatternMixer, shuffle_mirror
from pypcmchunk.common.debug_logger import ChunkTraceLogger
from pypcmchunk.common.errors import PcmChunkError
from pypcmchunk.common.file_io import read_file, write_file
from pypcmchunk.common.utils import AIFF, WAV, detect_format, format_for_path

DECODERS = {WAV: decode_wav, AIFF: decode_aiff}
ENCODERS = {WAV: encode_wav, AIFF: encode_aiff}


def load(path, logger):
    buffer = read_file(path)
    fmt = detect_format(buffer) or format_for_path(path)
    if fmt is None:
        raise PcmChunkError(f"Cannot determine container format of '{path}'")
    container = DECODERS[fmt](buffer, logger)
    for issue in container.diagnostics:
        print(f"Warning: {path}: {issue}")
    return fmt, container


def store(path, fmt, container, logger):
    write_file(path, ENCODERS[fmt](container, logger))


def convert_signedness(container, src_fmt, dst_fmt):
    if src_fmt != dst_fmt and container.bit_depth <= 8:
        return toggle_8bit_sign(container)
    return container


def main(argv=None):
    parser = argparse.ArgumentParser(description="WAV/AIFF PCM container tool")
    parser.add_argument(
        "-i",
        "--input",
        type=str,
        required=True,
        help="Path to the input audio file (.wav, .aif or .aiff)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        required=True,
        help="Path to the output audio file; the extension selects the format",
    )
    parser.add_argument(
        "-m",
        "--mode",
        type=str,
        choices=["convert", "shuffle", "mix"],
        default="convert",
        help="'convert' re-encodes, 'shuffle' shuffles channel 0 into channel 1, "
        "'mix' builds random slices from the input and --source files",
    )
    parser.add_argument(
        "--source",
        type=str,
        action="append",
        default=[],
        help="Additional source file for mix mode (repeatable)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        help="Output length in frames for mix mode (default: input length)",
    )
    parser.add_argument(
        "--segment",
        type=int,
        default=4410,
        help="Segment length in frames for mix mode (default: 4410)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for shuffle and mix modes",
    )
    parser.add_argument(
        "--debug-log",
        type=str,
        help="Enable chunk trace logging to specified file (e.g., --debug-log pcmchunk_trace.log)",
    )

    args = parser.parse_args(argv)

    logger = None
    if args.debug_log:
        logger = ChunkTraceLogger(args.debug_log, enabled=True)
        print(f"Debug logging enabled to: {args.debug_log}")

    out_fmt = format_for_path(args.output)
    if out_fmt is None:
        print(f"Error: Unsupported output extension: {args.output}")
        return 1

    rng = np.random.default_rng(args.seed)

    try:
        in_fmt, container = load(args.input, logger)

        if args.mode == "shuffle":
            container = shuffle_mirror(container, rng)
        elif args.mode == "mix":
            sources = [container]
            for path in args.source:
                src_fmt, source = load(path, logger)
                sources.append(convert_signedness(source, src_fmt, in_fmt))
            mixer = PatternMixer(sources, rng, logger)
            total = args.frames if args.frames is not None else container.frame_count
            container = mixer.mix(
                total,
                args.segment,
                [constant(1.0), linear_ramp(0.5, 2.0), sine(1.0, 0.5, cycles=2.0)],
            )

        container = convert_signedness(container, in_fmt, out_fmt)
        store(args.output, out_fmt, container, logger)
    except (PcmChunkError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print(
        f"Wrote {container.frame_count} frames x {container.channel_count} channels "
        f"({container.bit_depth}-bit, {container.sample_rate} Hz) to '{args.output}'"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
