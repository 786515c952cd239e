"""
Parser service: turns Luau source into a ``SyntaxTree``.

Lark does the parsing; ``_TreeBuilder`` converts its parse tree into the
position-carrying drafts the arena is built from. Comments are ignored by the
grammar but recorded by a lexer callback and woven back in afterwards.
"""
from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from luau.errors import LuauSyntaxError, get_line_context
from luau.grammar import luau_grammar
from luau.syntax import SourceBuffer, SyntaxTree


# Named terminals and the node kinds they become. Anonymous tokens
# (keywords, operators, punctuation) use their own text as kind.
TOKEN_KINDS = {
    "NAME": "name",
    "NUMBER": "number",
    "STRING": "string",
    "LONG_STRING": "string",
    "COMMENT": "comment",
}


class _TreeBuilder(Transformer):
    """
    Converts a Lark parse tree into ``(kind, start, end, children)`` drafts.

    Positions are taken from the tokens, shifted by ``offset`` when the tree
    came from a fragment of the buffer (interpolated string expressions).
    """

    def __init__(self, parser, offset=0):
        super().__init__(visit_tokens=True)
        self._parser = parser
        self._offset = offset

    def __default__(self, data, children, meta):
        if children:
            start, end = children[0][1], children[-1][2]
        else:
            start = end = None
        return (str(data), start, end, children)

    def __default_token__(self, token):
        start = token.start_pos + self._offset
        end = token.end_pos + self._offset
        if token.type == "INTERP_STRING":
            return self._parser._expand_interp(str(token), start)
        kind = TOKEN_KINDS.get(token.type, token.value)
        return (kind, start, end, [])


class LuauParser:
    """
    Parses Luau source with Lark's Earley parser.

    A parser instance is cheap to reuse but not thread-safe: comment spans are
    collected on the instance while a parse is running.
    """

    def __init__(self):
        self._comment_spans = []
        self._offset = 0
        self._lark = Lark(
            luau_grammar,
            parser='earley',
            lexer='basic',
            start=['chunk', 'exp_only'],
            keep_all_tokens=True,
            maybe_placeholders=False,
            lexer_callbacks={'COMMENT': self._collect_comment},
        )

    def _collect_comment(self, token):
        self._comment_spans.append((token.start_pos + self._offset, token.end_pos + self._offset))
        return token

    def parse(self, source):
        """
        Parse ``source`` (bytes, str or ``SourceBuffer``) into a tree.

        Malformed input does not raise: the returned tree has ``has_error``
        set and carries a ``LuauSyntaxError`` describing the first problem.
        """
        buffer = SourceBuffer.coerce(source)
        text = buffer.text
        self._comment_spans = []
        self._offset = 0
        try:
            parsed = self._lark.parse(text, start='chunk')
            draft = _TreeBuilder(self).transform(parsed)
        except UnexpectedInput as e:
            return SyntaxTree.failed(buffer, LuauSyntaxError.from_lark(e, text))
        except LuauSyntaxError as e:
            return SyntaxTree.failed(buffer, e)

        kind, _, _, children = draft
        tree = SyntaxTree(buffer)
        tree.build((kind, 0, len(buffer), children))
        tree.weave_comments(sorted(self._comment_spans))
        return tree

    def _parse_fragment(self, text, offset):
        """Parse one expression found at ``offset`` in the buffer."""
        saved = self._offset
        self._offset = offset
        try:
            parsed = self._lark.parse(text, start='exp_only')
        finally:
            self._offset = saved
        _, _, _, children = _TreeBuilder(self, offset).transform(parsed)
        return children[0]

    def _expand_interp(self, text, base):
        """
        Split an interpolated string token into its parts.

        Produces a ``string_interp`` draft whose ``interp_exp`` children hold
        the parsed expressions between braces.
        """
        last = len(text) - 1
        children = [("interp_start", base, base + 1, [])]
        content_start = 1
        i = 1
        while i < last:
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch != "{":
                i += 1
                continue
            if content_start < i:
                children.append(("interp_content", base + content_start, base + i, []))
            close = _matching_brace(text, i, last)
            if close is None:
                raise LuauSyntaxError(
                    "unterminated '{' in interpolated string",
                    context=get_line_context(text, 1),
                    suggestion="close the interpolation with '}'",
                )
            expression = self._parse_fragment(text[i + 1:close], base + i + 1)
            children.append(("interp_exp", base + i, base + close + 1, [
                ("interp_brace_open", base + i, base + i + 1, []),
                expression,
                ("interp_brace_close", base + close, base + close + 1, []),
            ]))
            i = close + 1
            content_start = i
        if content_start < last:
            children.append(("interp_content", base + content_start, base + last, []))
        children.append(("interp_end", base + last, base + last + 1, []))
        return ("string_interp", base, base + len(text), children)


def _matching_brace(text, open_at, limit):
    """Index of the ``}`` closing the brace at ``open_at``, or None."""
    depth = 0
    i = open_at
    while i < limit:
        ch = text[i]
        if ch in "\"'":
            i += 1
            while i < limit and text[i] != ch:
                i += 2 if text[i] == "\\" else 1
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def parse(source):
    """Parse with a fresh ``LuauParser``."""
    return LuauParser().parse(source)
