"""
Syntax tree model shared by the formatter and the compatibility rewriter.

Nodes live in an arena owned by their ``SyntaxTree``. Each node keeps the
indexes of its children and of its parent, so upward lookups never hold a
reference back into the tree structure itself. Trees are never edited after
they are built; every rewrite pass parses a fresh one.
"""
from bisect import bisect_left
from dataclasses import dataclass, field
from functools import cached_property
from typing import List, Optional


STATEMENT_KINDS = frozenset({
    "local_var_stmt",
    "local_function_stmt",
    "function_stmt",
    "assign_stmt",
    "var_stmt",
    "call_stmt",
    "if_stmt",
    "while_stmt",
    "repeat_stmt",
    "for_range_stmt",
    "for_in_stmt",
    "do_stmt",
    "return_stmt",
    "break_stmt",
    "continue_stmt",
})

EXPRESSION_KINDS = frozenset({
    "ifexp",
    "binexp",
    "unexp",
    "string",
    "string_interp",
    "table",
    "number",
    "var",
    "call",
    "paren_exp",
    "function_exp",
    "nil",
    "true",
    "false",
    "...",
})

# Nodes holding a sequence of statements
LIST_KINDS = frozenset({"chunk", "block"})

NODE_KINDS = STATEMENT_KINDS | LIST_KINDS | frozenset({
    "ifexp",
    "binexp",
    "unexp",
    "string_interp",
    "interp_exp",
    "table",
    "fieldlist",
    "field",
    "var",
    "call",
    "paren_exp",
    "function_exp",
    "funcname",
    "funcbody",
    "paramlist",
    "binding",
    "varlist",
    "explist",
    "arglist",
    "type",
    "type_args",
})

KEYWORDS = frozenset({
    "and", "break", "continue", "do", "else", "elseif", "end", "false",
    "for", "function", "if", "in", "local", "nil", "not", "or", "repeat",
    "return", "then", "true", "until", "while",
})

PUNCTUATION = frozenset({
    "+", "-", "*", "/", "//", "%", "^", "#", "..",
    "==", "~=", "<=", ">=", "<", ">", "=",
    "+=", "-=", "*=", "/=", "//=", "%=", "^=", "..=",
    "(", ")", "{", "}", "[", "]", ";", ":", ",", ".", "...", "|", "?",
})

LEAF_KINDS = KEYWORDS | PUNCTUATION | frozenset({
    "name",
    "number",
    "string",
    "comment",
    "interp_start",
    "interp_content",
    "interp_brace_open",
    "interp_brace_close",
    "interp_end",
})


@dataclass(frozen=True)
class SourceBuffer:
    """
    Immutable contents of one file.

    The text view decodes the bytes as Latin-1 so that string offsets and byte
    offsets coincide; encoding the text back the same way restores the exact
    bytes, whatever encoding the file actually used.
    """
    data: bytes

    ENCODING = "latin-1"

    @classmethod
    def from_text(cls, text):
        """Wrap text produced from another buffer's ``text``."""
        return cls(text.encode(cls.ENCODING))

    @classmethod
    def coerce(cls, source):
        """Accept bytes, a buffer, or user text (encoded as UTF-8)."""
        if isinstance(source, SourceBuffer):
            return source
        if isinstance(source, str):
            return cls(source.encode("utf-8"))
        return cls(bytes(source))

    @cached_property
    def text(self):
        return self.data.decode(self.ENCODING)

    def slice(self, start, end):
        return self.text[start:end]

    def splice(self, start, end, replacement):
        """Return a new buffer with ``[start, end)`` replaced."""
        text = self.text
        return SourceBuffer.from_text(text[:start] + replacement + text[end:])

    def __len__(self):
        return len(self.data)


@dataclass(eq=False)
class SyntaxNode:
    """A typed node covering ``[start, end)`` of its tree's source."""
    tree: "SyntaxTree" = field(repr=False)
    index: int
    kind: str
    start: int
    end: int
    child_ids: List[int] = field(default_factory=list, repr=False)
    parent_id: Optional[int] = field(default=None, repr=False)

    @property
    def children(self):
        nodes = self.tree.nodes
        return [nodes[i] for i in self.child_ids]

    @property
    def code_children(self):
        """Children other than comments."""
        return [c for c in self.children if c.kind != "comment"]

    @property
    def parent(self):
        if self.parent_id is None:
            return None
        return self.tree.nodes[self.parent_id]

    @property
    def is_leaf(self):
        return not self.child_ids

    @property
    def content(self):
        return self.tree.source.slice(self.start, self.end)

    def child(self, i):
        return self.tree.nodes[self.child_ids[i]]

    @property
    def index_in_parent(self):
        parent = self.parent
        if parent is None:
            return None
        return parent.child_ids.index(self.index)

    @property
    def previous_sibling(self):
        i = self.index_in_parent
        if not i:
            return None
        return self.parent.child(i - 1)

    @property
    def next_sibling(self):
        i = self.index_in_parent
        if i is None or i + 1 >= len(self.parent.child_ids):
            return None
        return self.parent.child(i + 1)

    def first_leaf(self):
        node = self
        while node.child_ids:
            node = node.child(0)
        return node


class SyntaxTree:
    """
    Arena of ``SyntaxNode`` objects parsed from one ``SourceBuffer``.

    ``has_error`` is set when the buffer did not match the grammar; such a
    tree has a single ``ERROR`` root and must not be formatted or rewritten.
    """

    def __init__(self, source, has_error=False, error=None):
        self.source = source
        self.has_error = has_error
        self.error = error
        self.nodes = []

    @classmethod
    def failed(cls, source, error):
        tree = cls(source, has_error=True, error=error)
        tree.add_node("ERROR", 0, len(source))
        return tree

    @property
    def root(self):
        return self.nodes[0]

    def add_node(self, kind, start, end, parent=None):
        node = SyntaxNode(self, len(self.nodes), kind, start, end)
        self.nodes.append(node)
        if parent is not None:
            node.parent_id = parent.index
            parent.child_ids.append(node.index)
        return node

    def build(self, draft, parent=None):
        """Add a ``(kind, start, end, children)`` draft and its descendants."""
        kind, start, end, children = draft
        node = self.add_node(kind, start, end, parent)
        for child in children:
            self.build(child, node)
        return node

    def weave_comments(self, spans):
        """
        Attach comments dropped by the lexer as ``comment`` leaves.

        Each comment goes under the deepest node whose range contains it, at
        the position that keeps siblings ordered.
        """
        for start, end in spans:
            node = self.root
            while True:
                inner = None
                for child in node.children:
                    if child.child_ids and child.start <= start and end <= child.end:
                        inner = child
                        break
                if inner is None:
                    break
                node = inner
            starts = [c.start for c in node.children]
            position = bisect_left(starts, start)
            comment = SyntaxNode(self, len(self.nodes), "comment", start, end, parent_id=node.index)
            self.nodes.append(comment)
            node.child_ids.insert(position, comment.index)

    def walk(self, node=None):
        """Yield nodes depth-first, in source order."""
        stack = [node or self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def leaves(self):
        return (n for n in self.walk() if n.is_leaf)
