"""
Luau Pretty-Printer - reprints a syntax tree as canonical source text.

The printer walks the leaves of the tree in source order. What each leaf
emits (its text, the space before it, line breaks and indentation changes
around it) depends on the leaf's kind and on the kinds of its ancestors.
Block-opening keywords raise the indent after their own line; closing
keywords lower it before theirs.
"""
from luau.config import MercurySettings
from luau.errors import UnhandledNodeError
from luau.parser import LuauParser
from luau.quotes import normalize_quotes
from luau.syntax import LEAF_KINDS, LIST_KINDS, NODE_KINDS, STATEMENT_KINDS


# Statements that get a blank line when they directly follow a local declaration
ASSIGNING_KINDS = frozenset({"call_stmt", "assign_stmt", "var_stmt"})

# Nodes whose ``end`` closes an indented body
BODY_KINDS = frozenset({
    "if_stmt", "while_stmt", "for_range_stmt", "for_in_stmt", "do_stmt", "funcbody",
})

CLOSERS = frozenset({"end", "else", "elseif", "until", "}"})

NO_SPACE_BEFORE = frozenset({
    ",", ")", "]", ".", ":", ";", "?", "}",
    "interp_content", "interp_brace_open", "interp_brace_close", "interp_end",
})

NO_SPACE_AFTER = frozenset({
    "(", "[", "{", ".", "#",
    "interp_start", "interp_content", "interp_brace_open",
})


class _FormatContext:
    """
    Output state for a single ``format`` call.

    Line breaks are requested rather than written, so that a trailing comment
    can still join the line that precedes the break. Lines are kept as lists of
    parts until the end, so punctuation can still be attached to the last code
    written after a comment has followed it.
    """

    def __init__(self, indent_unit):
        self.indent_unit = indent_unit
        self.indent = 0
        self.lines = []
        self.current = []
        self.prefix = ""
        self.pending = 0  # 1: line break, 2: blank line
        self.continuation = False
        self.prev = None
        self.code_mark = None  # (parts, index) just after the last code written

    def request_break(self, blank=False):
        self.pending = max(self.pending, 2 if blank else 1)

    def write(self, text, space=True, comment=False):
        if self.pending and self.current:
            self.lines.append((self.prefix, self.current))
            self.current = []
            if self.pending == 2:
                self.lines.append(("", []))
        self.pending = 0
        if not self.current:
            level = self.indent + (1 if self.continuation else 0)
            self.continuation = False
            self.prefix = self.indent_unit * max(level, 0)
        elif space:
            self.current.append(" ")
        self.current.append(text)
        if not comment:
            self.code_mark = (self.current, len(self.current))

    def write_trailing(self, text):
        """Append to the current line, ignoring any requested break."""
        if not self.current:
            self.write(text, comment=True)
            return
        self.current.append(" " + text)

    def attach(self, text):
        """Append ``text`` right after the last code written, ahead of any comment."""
        if self.code_mark is None:
            self.write(text, space=False)
            return
        parts, index = self.code_mark
        parts.insert(index, text)
        self.code_mark = (parts, index + 1)

    def getvalue(self):
        lines = list(self.lines)
        if self.current:
            lines.append((self.prefix, self.current))
        return "\n".join((prefix + "".join(parts)).rstrip() if parts else "" for prefix, parts in lines)


class LuauFormatter:
    """
    Formats parsed Luau source.

    One formatter may be reused for many trees; all per-call state lives in a
    ``_FormatContext``.
    """

    def __init__(self, settings=None):
        self.settings = settings or MercurySettings()

    def format(self, tree):
        """
        Return the formatted text of ``tree``.

        A tree with a parse error is returned as its original text.
        """
        if tree.has_error:
            return tree.source.text
        ctx = _FormatContext(self.settings.indent)
        for leaf in self._leaves(tree.root):
            self._emit(ctx, leaf)
        return ctx.getvalue().strip("\n") + "\n"

    def _leaves(self, node):
        if node.is_leaf:
            if node.kind not in LEAF_KINDS:
                raise UnhandledNodeError(f"unknown token kind '{node.kind}'", node)
            yield node
            return
        if node.kind not in NODE_KINDS:
            raise UnhandledNodeError(f"unknown node kind '{node.kind}'", node)
        for child in node.children:
            yield from self._leaves(child)

    # --- Leaf dispatch ---

    def _emit(self, ctx, leaf):
        kind = leaf.kind
        parent = leaf.parent

        if kind == "comment":
            self._emit_comment(ctx, leaf)
            return

        statement = _statement_started_by(leaf)
        if ctx.continuation and (statement is not None or kind in CLOSERS):
            ctx.continuation = False
        if statement is not None:
            previous = _previous_statement(statement)
            blank = (statement.kind in ASSIGNING_KINDS
                     and previous is not None and previous.kind == "local_var_stmt")
            ctx.request_break(blank)

        handler = getattr(self, f"_emit_{_HANDLER_NAMES.get(kind, 'default')}")
        handler(ctx, leaf, parent)

    def _emit_default(self, ctx, leaf, parent):
        self._put(ctx, leaf, leaf.content)

    def _put(self, ctx, leaf, text, space=None):
        if space is None:
            space = _space_between(ctx.prev, leaf)
        ctx.write(text, space)
        ctx.prev = leaf

    # --- Blocks ---

    def _emit_then(self, ctx, leaf, parent):
        self._put(ctx, leaf, "then")
        if parent.kind == "if_stmt":
            ctx.indent += 1
            ctx.request_break()
        elif parent.kind != "ifexp":
            raise UnhandledNodeError(f"'then' inside '{parent.kind}'", leaf)

    def _emit_do(self, ctx, leaf, parent):
        if parent.kind not in ("while_stmt", "for_range_stmt", "for_in_stmt", "do_stmt"):
            raise UnhandledNodeError(f"'do' inside '{parent.kind}'", leaf)
        self._put(ctx, leaf, "do")
        ctx.indent += 1
        ctx.request_break()

    def _emit_repeat(self, ctx, leaf, parent):
        self._put(ctx, leaf, "repeat")
        ctx.indent += 1
        ctx.request_break()

    def _emit_until(self, ctx, leaf, parent):
        ctx.indent -= 1
        ctx.request_break()
        self._put(ctx, leaf, "until")

    def _emit_else(self, ctx, leaf, parent):
        if parent.kind == "ifexp":
            self._put(ctx, leaf, "else")
        elif parent.kind == "if_stmt":
            ctx.indent -= 1
            ctx.request_break()
            self._put(ctx, leaf, "else")
            ctx.indent += 1
            ctx.request_break()
        else:
            raise UnhandledNodeError(f"'else' inside '{parent.kind}'", leaf)

    def _emit_elseif(self, ctx, leaf, parent):
        if parent.kind == "ifexp":
            self._put(ctx, leaf, "elseif")
        elif parent.kind == "if_stmt":
            ctx.indent -= 1
            ctx.request_break()
            self._put(ctx, leaf, "elseif")
        else:
            raise UnhandledNodeError(f"'elseif' inside '{parent.kind}'", leaf)

    def _emit_end(self, ctx, leaf, parent):
        if parent.kind not in BODY_KINDS:
            raise UnhandledNodeError(f"'end' inside '{parent.kind}'", leaf)
        ctx.indent -= 1
        if parent.kind == "funcbody" and not _has_body(parent):
            self._put(ctx, leaf, "end")
            return
        ctx.request_break()
        self._put(ctx, leaf, "end")

    def _emit_close_paren(self, ctx, leaf, parent):
        if parent.kind == "arglist" and self._elides(parent):
            return
        self._put(ctx, leaf, ")")
        if parent.kind == "funcbody":
            ctx.indent += 1

    def _emit_open_paren(self, ctx, leaf, parent):
        if parent.kind == "arglist":
            if self._elides(parent):
                return
            self._put(ctx, leaf, "(", space=False)
        elif parent.kind == "funcbody":
            self._put(ctx, leaf, "(", space=False)
        else:
            self._put(ctx, leaf, "(")

    def _emit_semicolon(self, ctx, leaf, parent):
        if parent.kind == "fieldlist":
            self._emit_separator(ctx, leaf, parent)
            return
        # Needed only where the next statement could read as a call on this one
        following = leaf.next_sibling
        while following is not None and following.kind == "comment":
            following = following.next_sibling
        if following is not None and following.first_leaf().kind == "(":
            ctx.attach(";")

    # --- Tables and calls ---

    def _emit_open_brace(self, ctx, leaf, parent):
        if parent.kind == "type":
            self._put(ctx, leaf, "{")
            return
        if self._sugared(parent):
            self._put(ctx, leaf, "(", space=False)
            self._put(ctx, leaf, "{", space=False)
        else:
            self._put(ctx, leaf, "{")
        if _is_multiline(parent):
            ctx.indent += 1
            ctx.request_break()

    def _emit_close_brace(self, ctx, leaf, parent):
        if parent.kind == "type":
            self._put(ctx, leaf, "}")
            return
        if _is_multiline(parent):
            fieldlist = _fieldlist(parent)
            if fieldlist is not None and fieldlist.code_children[-1].kind not in (",", ";"):
                ctx.attach(",")
            ctx.indent -= 1
            ctx.request_break()
        self._put(ctx, leaf, "}", space=False)
        if self._sugared(parent):
            self._put(ctx, leaf, ")", space=False)

    def _emit_separator(self, ctx, leaf, parent):
        if parent.kind == "fieldlist":
            table = parent.parent
            if not _is_multiline(table):
                if parent.code_children[-1] is leaf:
                    return
                self._put(ctx, leaf, ",")
                return
            self._put(ctx, leaf, ",")
            ctx.request_break()
            return
        self._put(ctx, leaf, ",")

    def _emit_string(self, ctx, leaf, parent):
        text = normalize_quotes(leaf.content)
        if self._sugared(leaf):
            self._put(ctx, leaf, "(", space=False)
            self._put(ctx, leaf, text, space=False)
            self._put(ctx, leaf, ")", space=False)
        else:
            self._put(ctx, leaf, text)

    def _elides(self, arglist):
        """True when ``f("x")`` / ``f({..})`` should print as ``f "x"`` / ``f {..}``."""
        if self.settings.call_parentheses != "elide":
            return False
        args = arglist.code_children
        return len(args) == 3 and args[0].kind == "(" and args[1].kind in ("string", "table")

    def _sugared(self, node):
        """True when ``node`` is a paren-less call argument that must gain parentheses."""
        if self.settings.call_parentheses != "keep":
            return False
        parent = node.parent
        return parent is not None and parent.kind == "arglist" and len(parent.code_children) == 1

    # --- Comments ---

    def _emit_comment(self, ctx, leaf):
        text = leaf.content.rstrip()
        parent = leaf.parent
        in_expression = parent.kind not in LIST_KINDS and parent.kind not in BODY_KINDS \
            and parent.kind not in ("fieldlist", "table", "repeat_stmt")
        if _is_own_line(leaf):
            blank = (parent.kind in LIST_KINDS
                     and leaf.previous_sibling is not None
                     and (ctx.prev is None or ctx.prev.kind != "comment"))
            ctx.request_break(blank)
            if in_expression:
                ctx.continuation = True
            ctx.write(text, comment=True)
        else:
            ctx.write_trailing(text)
        ctx.prev = leaf
        ctx.request_break()
        if in_expression:
            ctx.continuation = True


_HANDLER_NAMES = {
    "then": "then",
    "do": "do",
    "repeat": "repeat",
    "until": "until",
    "else": "else",
    "elseif": "elseif",
    "end": "end",
    "(": "open_paren",
    ")": "close_paren",
    ";": "semicolon",
    "{": "open_brace",
    "}": "close_brace",
    ",": "separator",
    "string": "string",
}


def _statement_started_by(leaf):
    """The statement whose first token is ``leaf``, if any."""
    node = leaf
    while True:
        if node.kind in STATEMENT_KINDS:
            return node
        parent = node.parent
        if parent is None or parent.child_ids[0] != node.index:
            return None
        node = parent


def _previous_statement(statement):
    """Previous sibling, skipping separators and trailing comments."""
    node = statement.previous_sibling
    while node is not None:
        if node.kind == ";" or (node.kind == "comment" and not _is_own_line(node)):
            node = node.previous_sibling
            continue
        return node
    return None


def _is_own_line(comment):
    """True when nothing but whitespace precedes ``comment`` on its line."""
    text = comment.tree.source.text
    i = comment.start - 1
    while i >= 0 and text[i] in " \t\r":
        i -= 1
    return i < 0 or text[i] == "\n"


def _has_body(node):
    return any(c.kind in ("block", "comment") for c in node.children)


def _fieldlist(table):
    for child in table.children:
        if child.kind == "fieldlist":
            return child
    return None


def _is_multiline(table):
    """Tables with several fields, or with comments, print one field per line."""
    fieldlist = _fieldlist(table)
    if fieldlist is None:
        return any(c.kind == "comment" for c in table.children)
    fields = [c for c in fieldlist.children if c.kind == "field"]
    if len(fields) > 1:
        return True
    return any(c.kind == "comment" for c in fieldlist.children + table.children)


def _space_between(prev, leaf):
    """Whether a space separates ``prev`` and ``leaf`` on the same line."""
    if prev is None:
        return False
    kind = leaf.kind
    parent_kind = leaf.parent.kind
    prev_kind = prev.kind
    prev_parent = prev.parent.kind

    # Luau rejects `{{` and `}}` inside interpolated strings
    if prev_kind == "interp_brace_open" and kind == "{":
        return True
    if kind == "interp_brace_close" and prev_kind == "}":
        return True
    if kind in NO_SPACE_BEFORE or prev_kind in NO_SPACE_AFTER:
        return False
    if prev_kind == ":" and prev_parent not in ("binding", "funcbody"):
        return False
    if kind == "(" and parent_kind in ("arglist", "funcbody"):
        return False
    if kind == "[" and parent_kind == "var":
        return False
    if parent_kind == "type_args" and kind in ("<", ">"):
        return False
    if prev_parent == "type_args" and prev_kind == "<":
        return False
    if prev_parent == "unexp" and prev_kind == "-":
        return leaf.content.startswith("-")
    return True


def format_code(source, settings=None, parser=None):
    """Parse and format ``source``; returns text (unchanged on a parse error)."""
    tree = (parser or LuauParser()).parse(source)
    return LuauFormatter(settings).format(tree)
