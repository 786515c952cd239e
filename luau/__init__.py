# Mercury - Luau formatting and Lua compatibility
"""
Core modules for the Mercury Luau tools:
- grammar: Lark grammar definition for Luau
- syntax: Source buffers and the arena syntax tree
- parser: Lark-backed parser producing syntax trees
- quotes: String literal quote normalization
- formatter: Pretty-printer
- compat: Rewriter from Luau to plain Lua
- config: Settings loading
- errors: Error types and helpers
"""

from .errors import MercuryError, LuauSyntaxError, UnhandledNodeError, FixpointError, ConfigError
from .syntax import SourceBuffer, SyntaxNode, SyntaxTree
from .parser import LuauParser, parse
from .formatter import LuauFormatter, format_code
from .compat import CompatRewriter, compatify
from .config import MercurySettings, load_settings

__all__ = [
    'MercuryError',
    'LuauSyntaxError',
    'UnhandledNodeError',
    'FixpointError',
    'ConfigError',
    'SourceBuffer',
    'SyntaxNode',
    'SyntaxTree',
    'LuauParser',
    'parse',
    'LuauFormatter',
    'format_code',
    'CompatRewriter',
    'compatify',
    'MercurySettings',
    'load_settings',
]
