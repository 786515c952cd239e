import argparse
import sys

from luau.config import load_settings
from luau.errors import ConfigError, FixpointError, UnhandledNodeError
from luau.parser import LuauParser
from pipeline import compat_and_format, compat_source, format_source, process_file, set_verbose

EXIT_PARSE_FAILURE = 1
EXIT_INTERNAL_ERROR = 2

def log(message):
    """Log informational messages to stderr."""
    print(f"\033[92m\033[1mINFO:\033[0m {message}", file=sys.stderr)

def error(message):
    """Log an error message to stderr."""
    print(f"\033[91m\033[1mERROR:\033[0m {message}", file=sys.stderr)

def run_stdin(command, settings, parser):
    """Read source from stdin and write the result to stdout."""
    source = sys.stdin.buffer.read()
    tree = parser.parse(source)
    if tree.has_error:
        error(f"<stdin>: {tree.error}")
        sys.stdout.buffer.write(source)
        return False
    if command == "format":
        output = format_source(source, settings, parser)
    elif command == "compatibility":
        output = compat_source(source, settings, parser)
    else:
        output = compat_and_format(source, settings, parser)
    sys.stdout.buffer.write(output)
    sys.stdout.flush()
    return True

def run_files(files, command, settings, write):
    """Process each file; returns True when every file parsed."""
    parser = LuauParser()
    all_ok = True
    for path in files:
        if path == "-":
            all_ok = run_stdin(command, settings, parser) and all_ok
            continue
        result = process_file(path, command, settings, write=write, parser=parser)
        if not result.ok:
            error(f"{path}: {result.error}")
            all_ok = False
            continue
        if write:
            log(f"{'Updated' if result.changed else 'Unchanged'} {path}")
        else:
            sys.stdout.buffer.write(result.output)
            sys.stdout.flush()
    return all_ok

def cmd_format(args, settings):
    return run_files(args.files, "format", settings, write=True)

def cmd_compatibility(args, settings):
    command = "compatibility+format" if args.format else "compatibility"
    return run_files(args.files, command, settings, write=args.write)

def build_parser():
    parser = argparse.ArgumentParser(prog="mercury", description="Mercury Luau formatter and Lua compatibility rewriter")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    parser.add_argument("--config", help="Settings file (default: mercury.json, then ~/.mercury/mercury.json)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("help", aliases=["h"], help="Show this help message")

    fmt = subparsers.add_parser("format", aliases=["f"], help="Format files in place ('-' for stdin)")
    fmt.add_argument("files", nargs="+", metavar="FILE")

    compat = subparsers.add_parser("compatibility", aliases=["c"], help="Make files compatible with Lua")
    compat.add_argument("files", nargs="+", metavar="FILE")
    compat.add_argument("--write", action="store_true", help="Write the result back instead of printing it")
    compat.add_argument("--format", action="store_true", help="Format the rewritten source")
    return parser

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    if args.command in ("format", "f"): handler = cmd_format
    elif args.command in ("compatibility", "c"): handler = cmd_compatibility
    else:
        parser.print_help()
        return

    try:
        settings = load_settings(args.config)
        ok = handler(args, settings)
    except ConfigError as e:
        error(str(e))
        sys.exit(EXIT_INTERNAL_ERROR)
    except (UnhandledNodeError, FixpointError) as e:
        error(f"Aborted:\n{e}")
        sys.exit(EXIT_INTERNAL_ERROR)

    if not ok:
        sys.exit(EXIT_PARSE_FAILURE)

if __name__ == "__main__":
    main()
