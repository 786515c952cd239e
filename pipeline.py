import sys
import os
from typing import Optional

from pydantic import BaseModel

from luau.compat import CompatRewriter
from luau.config import MercurySettings
from luau.formatter import LuauFormatter
from luau.parser import LuauParser
from luau.syntax import SourceBuffer

# Global verbose flag
_VERBOSE = False

COMMANDS = ("format", "compatibility", "compatibility+format")

def set_verbose(value):
    """Set the global verbose flag."""
    global _VERBOSE
    _VERBOSE = value

def debug_log(message):
    """Log a debug message to stderr if verbose mode is enabled."""
    if _VERBOSE:
        print(f"\033[94mDEBUG:\033[0m {message}", file=sys.stderr)


class FileResult(BaseModel):
    """Outcome of processing one file."""
    path: str
    ok: bool
    changed: bool = False
    output: bytes = b""
    error: Optional[str] = None


def _same_type(original, data):
    """Hand back text when text came in, bytes otherwise."""
    if isinstance(original, str):
        return data.decode("utf-8")
    return data

def _parse(source, parser=None):
    tree = (parser or LuauParser()).parse(source)
    if tree.has_error:
        debug_log(f"Parse failed:\n{tree.error}")
    return tree

def format_source(source, settings=None, parser=None):
    """Format Luau source; source that does not parse is returned unchanged."""
    tree = _parse(source, parser)
    text = LuauFormatter(settings).format(tree)
    return _same_type(source, SourceBuffer.from_text(text).data)

def compat_source(source, settings=None, parser=None):
    """Rewrite Luau source to plain Lua, repeating passes until nothing changes."""
    rewriter = CompatRewriter(settings, parser, debug=debug_log)
    return _same_type(source, rewriter.run(source))

def compat_and_format(source, settings=None, parser=None):
    parser = parser or LuauParser()
    rewritten = compat_source(SourceBuffer.coerce(source).data, settings, parser)
    return _same_type(source, format_source(rewritten, settings, parser))

def process_file(path, command, settings=None, write=False, parser=None):
    """
    Run ``command`` over the file at ``path``.

    A file that does not parse gives ``ok=False`` and its bytes unchanged.
    Internal errors (``UnhandledNodeError``, ``FixpointError``) propagate.
    """
    if command not in COMMANDS:
        raise ValueError(f"Unknown command: {command}")
    settings = settings or MercurySettings()
    parser = parser or LuauParser()

    if not os.path.exists(path):
        return FileResult(path=path, ok=False, error=f"File '{path}' not found.")
    with open(path, 'rb') as f:
        source = f.read()

    debug_log(f"Processing {path} ({command})")
    tree = parser.parse(source)
    if tree.has_error:
        return FileResult(path=path, ok=False, output=source, error=str(tree.error))

    if command == "format":
        output = format_source(source, settings, parser)
    elif command == "compatibility":
        output = compat_source(source, settings, parser)
    else:
        output = compat_and_format(source, settings, parser)

    changed = output != source
    if write and changed:
        with open(path, 'wb') as f:
            f.write(output)
        debug_log(f"Wrote {path}")
    return FileResult(path=path, ok=True, changed=changed, output=output)
