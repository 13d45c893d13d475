"""Command line entry point: bencode in (stdin or -i), JSON out."""

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import IO

from . import DEFAULT_MAX_DEPTH
from . import ESCAPE_TABLES
from . import BencodeDecodeError
from . import ByteSource
from . import Emitter
from . import TranscodeConfig
from . import Transcoder
from . import __version__

logger = logging.getLogger("bencode2json")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="bencode2json", description="Converts bencode to JSON"
    )
    ap.add_argument(
        "-i",
        "--input",
        help="optional input file (defaults to stdin)",
    )
    ap.add_argument(
        "-o",
        "--output",
        help="optional output file (defaults to stdout)",
    )
    ap.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help="maximum container nesting depth (default: %(default)s)",
    )
    ap.add_argument(
        "--escape",
        choices=sorted(ESCAPE_TABLES),
        default="minimal",
        help="string escaping mode (default: %(default)s)",
    )
    ap.add_argument(
        "--strict-integers",
        action="store_true",
        help="reject leading zeros and negative zero in integers",
    )
    ap.add_argument("-v", "--verbose", action="store_true")
    ap.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return ap


def run(src: IO[bytes], dst: IO[bytes], config: TranscodeConfig) -> int:
    """Transcodes src into dst; returns the process exit status."""
    emitter = Emitter(dst)
    try:
        Transcoder(ByteSource(src), emitter, config).run()
    except BencodeDecodeError as exc:
        # Partial output stays where it is; only make sure it is visible.
        emitter.flush()
        logger.debug("%s; %s", exc, exc.context())
        sys.stderr.write(f"\n{exc.diagnostic()}\n")
        return 1

    emitter.write(b"\n")
    emitter.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = TranscodeConfig(
            max_depth=args.max_depth,
            escape=args.escape,
            strict_integers=args.strict_integers,
        )
    except ValueError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    try:
        src = open(args.input, "rb") if args.input else sys.stdin.buffer
    except OSError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1

    try:
        try:
            dst = open(args.output, "wb") if args.output else sys.stdout.buffer
        except OSError as exc:
            sys.stderr.write(f"error: {exc}\n")
            return 1

        try:
            return run(src, dst, config)
        finally:
            if dst is not sys.stdout.buffer:
                dst.close()
    finally:
        if src is not sys.stdin.buffer:
            src.close()


if __name__ == "__main__":
    sys.exit(main())
