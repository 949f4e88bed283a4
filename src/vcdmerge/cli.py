"""
VcdMerge CLI
============
Command-line interface: merge VCD traces aligned on a common reset signal.
"""

import argparse
import contextlib
import logging
import os
import sys
import tempfile

# Add src to path if running directly
# __file__ is src/vcdmerge/cli.py -> dirname is src/vcdmerge -> .. is src
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from vcdmerge.anchors import POLICY_NAMES
from vcdmerge.errors import MergeError
from vcdmerge.pipeline import merge_vcd

EXIT_OK = 0
EXIT_MERGE_ERROR = 1
EXIT_IO_ERROR = 3


def output_mode():
    """Permissions a plain open() would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def cmd_merge(args):
    print(f"Merging {len(args.inputs)} traces on reset '{args.reset_signal}' ({args.anchor})...")

    out_dir = os.path.dirname(os.path.abspath(args.output))
    tmp = tempfile.NamedTemporaryFile("w", dir=out_dir, prefix=".vcdmerge-", suffix=".tmp",
                                      delete=False, encoding="utf-8")
    try:
        with contextlib.ExitStack() as stack:
            stack.enter_context(tmp)
            streams = [
                stack.enter_context(open(path, "r", encoding="utf-8", errors="replace"))
                for path in args.inputs
            ]
            result = merge_vcd(
                streams,
                args.reset_signal,
                tmp,
                anchor=args.anchor,
                occurrence=args.occurrence,
                scope_names=args.scope_names,
                dedupe_reset=args.dedupe_reset,
                jobs=args.jobs,
            )
        # NamedTemporaryFile is created 0600
        os.chmod(tmp.name, output_mode())
        os.replace(tmp.name, args.output)
    except BaseException:
        # Never leave a truncated trace behind
        with contextlib.suppress(OSError):
            os.unlink(tmp.name)
        raise

    for root, path, anchor, offset in zip(result.roots, args.inputs, result.anchors, result.offsets):
        print(f"  {root}: {path} reset at #{anchor}, offset {offset:+d}")
    for file_index, names in result.renamed.items():
        for old, new in names.items():
            print(f"  renamed {args.inputs[file_index]}:{old} -> {new}")
    print(f"[SUCCESS] {result.groups_written} change groups, {result.variables_written} signals "
          f"({result.timescale}) written to {args.output}")
    return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(
        prog="vcdmerge",
        description="Merge VCD traces into one timeline aligned on a common reset signal")
    parser.add_argument("inputs", nargs="+", help="Input VCD files (the first one is the time reference)")
    parser.add_argument("-r", "--reset-signal", required=True,
                        help="Reset signal name (leaf name or dotted scope path)")
    parser.add_argument("-o", "--output", required=True, help="Output VCD file")
    parser.add_argument("--anchor", choices=POLICY_NAMES, default="first-change",
                        help="Which reset transition aligns the traces")
    parser.add_argument("--occurrence", type=int, default=1,
                        help="Edge number for rise/fall anchors (negative counts from the end)")
    parser.add_argument("--scope-name", dest="scope_names", action="append",
                        help="Root scope name per input, in input order (default trace<N>)")
    parser.add_argument("--dedupe-reset", action="store_true",
                        help="Keep only the first trace's reset signal in the output")
    parser.add_argument("-j", "--jobs", type=int, default=None,
                        help="Worker threads for parsing (1 = no threads)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.scope_names is not None and len(args.scope_names) != len(args.inputs):
        parser.error(f"--scope-name given {len(args.scope_names)} times for {len(args.inputs)} inputs")
    if args.anchor == "first-change" and args.occurrence != 1:
        parser.error("--occurrence only applies to rise/fall anchors")
    if args.occurrence == 0:
        parser.error("--occurrence is 1-based (negative counts from the end)")
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be at least 1")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        return cmd_merge(args)
    except MergeError as e:
        print(f"[FAIL] {e}", file=sys.stderr)
        return EXIT_MERGE_ERROR
    except OSError as e:
        print(f"[FAIL] I/O error: {e}", file=sys.stderr)
        return EXIT_IO_ERROR


if __name__ == "__main__":
    sys.exit(main())
