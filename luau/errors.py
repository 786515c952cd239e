"""
Error types for the Mercury Luau tools.

Two families matter to callers: a malformed input (``LuauSyntaxError``) is a
file-level failure that leaves the source untouched, while everything else
signals a defect in the tools themselves and should stop the process.
"""


class MercuryError(Exception):
    """Base error carrying an optional position, offending line and hint."""
    title = "Error"

    def __init__(self, message, line_number=None, column=None, context=None, suggestion=None):
        self.message = message
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with context and suggestion."""
        lines = [self.title]
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   hint: {self.suggestion}\n")

        return "".join(lines)


class LuauSyntaxError(MercuryError):
    """The source did not match the grammar. Recoverable per file."""
    title = "Syntax error"

    @classmethod
    def from_lark(cls, exc, text):
        """Build from a Lark ``UnexpectedInput``."""
        line = getattr(exc, "line", None)
        column = getattr(exc, "column", None)
        if line is not None and line < 1:
            line = None
        expected = getattr(exc, "expected", None) or getattr(exc, "allowed", None)
        suggestion = None
        if expected:
            suggestion = "expected one of: " + ", ".join(sorted(str(e) for e in expected)[:8])
        return cls(
            "source does not parse as Luau",
            line_number=line,
            column=column,
            context=get_line_context(text, line),
            suggestion=suggestion,
        )


class UnhandledNodeError(MercuryError):
    """A node kind or child arrangement no rule accounts for."""
    title = "Internal error"

    def __init__(self, message, node=None):
        context = None
        line = None
        if node is not None:
            text = node.tree.source.text
            line = text.count("\n", 0, node.start) + 1
            context = get_line_context(text, line)
        super().__init__(
            message,
            line_number=line,
            context=context,
            suggestion="the grammar produced a construct without a matching rule; please report this",
        )
        self.node = node


class FixpointError(MercuryError):
    """The compatibility rewrite loop failed to settle on a result."""
    title = "Rewrite error"


class ConfigError(MercuryError):
    """Settings file could not be read or validated."""
    title = "Configuration error"


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None
