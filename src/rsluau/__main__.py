"""CLI entry point: run `rsluau -f file.rs` or `python -m rsluau -f file.rs`."""

import logging
import sys
from pathlib import Path


def _use_color(mode: str) -> bool:
    if mode == "always":
        return True
    if mode == "never":
        return False
    return sys.stderr.isatty()


def main(argv=None) -> int:
    import argparse
    from .compiler.driver import CompilerDriver
    from .frontend.printer import print_program
    from .shared.serialization import serialize_ast
    from .utils.io_utils import read_source_file, write_output_file

    parser = argparse.ArgumentParser(prog="rsluau", description="Compile a Rust subset (.rs) file to Luau.")
    parser.add_argument("-f", "--file", type=Path, required=True, help="Path to .rs source file")
    parser.add_argument("-o", "--output", type=Path, help="Write the result here instead of stdout")
    parser.add_argument("--emit", choices=("luau", "ast", "source"), default="luau",
                        help="luau (default), ast (S-expression dump) or source (canonical source)")
    parser.add_argument("--call-main", action="store_true", help="Append a call to `main()`")
    parser.add_argument("--color", choices=("auto", "always", "never"), default="auto",
                        help="Colour diagnostics (default: auto)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    path = args.file
    if not path.exists():
        sys.stderr.write(f"rsluau: error: file not found: {path}\n")
        return 1
    if not path.is_file():
        sys.stderr.write(f"rsluau: error: not a file: {path}\n")
        return 1

    try:
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"rsluau: error: could not read file: {e}\n")
        return 1

    compiler = CompilerDriver(dump_ast=args.verbose)
    result = compiler.compile(source, str(path), call_main=args.call_main)

    if not result.success:
        sys.stderr.write(result.tcx.reporter.format_all_errors(color=_use_color(args.color)) + "\n")
        return 1

    if args.emit == "ast":
        text = serialize_ast(result.program) + "\n"
    elif args.emit == "source":
        text = print_program(result.program)
    else:
        text = result.output

    if args.output is not None:
        try:
            write_output_file(args.output, text)
        except OSError as e:
            sys.stderr.write(f"rsluau: error: could not write output: {e}\n")
            return 1
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
