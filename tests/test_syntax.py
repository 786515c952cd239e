"""
Unit tests for luau/parser.py and luau/syntax.py - the parser service and the tree.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from luau.errors import LuauSyntaxError
from luau.parser import LuauParser
from luau.syntax import SourceBuffer, LEAF_KINDS, NODE_KINDS


@pytest.fixture(scope="module")
def parser():
    return LuauParser()


def find(tree, kind):
    return [n for n in tree.walk() if n.kind == kind]


class TestSourceBuffer:
    """Tests for SourceBuffer."""

    def test_text_offsets_match_bytes(self):
        """Multi-byte characters count once per byte in the text view."""
        buffer = SourceBuffer('local s = "é"'.encode("utf-8"))
        assert len(buffer.text) == len(buffer.data)

    def test_round_trip(self):
        """Encoding the text view restores the original bytes."""
        data = 'print("日本")\n'.encode("utf-8")
        buffer = SourceBuffer(data)
        assert SourceBuffer.from_text(buffer.text).data == data

    def test_splice_returns_new_buffer(self):
        buffer = SourceBuffer(b"local x = 1")
        spliced = buffer.splice(10, 11, "2")
        assert spliced.data == b"local x = 2"
        assert buffer.data == b"local x = 1"

    def test_coerce(self):
        buffer = SourceBuffer(b"x")
        assert SourceBuffer.coerce(buffer) is buffer
        assert SourceBuffer.coerce("x").data == b"x"
        assert SourceBuffer.coerce(b"x").data == b"x"


class TestParserTree:
    """Tests for the shape of parsed trees."""

    def test_root_spans_buffer(self, parser):
        """The root covers the whole buffer, surrounding whitespace included."""
        tree = parser.parse(b"\n\nlocal x = 1\n\n")
        assert not tree.has_error
        assert tree.root.kind == "chunk"
        assert (tree.root.start, tree.root.end) == (0, 15)

    def test_children_ordered_and_nested(self, parser):
        """Siblings never overlap and stay within their parent."""
        tree = parser.parse(b"local t = {a = 1, b = f(x)} -- note\nif t then print(t.a) end\n")
        for node in tree.walk():
            children = node.children
            for child in children:
                assert node.start <= child.start <= child.end <= node.end
                assert child.parent is node
            for left, right in zip(children, children[1:]):
                assert left.end <= right.start

    def test_leaf_content(self, parser):
        tree = parser.parse(b"local answer = 42")
        leaves = [(leaf.kind, leaf.content) for leaf in tree.leaves()]
        assert leaves == [("local", "local"), ("name", "answer"), ("=", "="), ("number", "42")]

    def test_kinds_are_known(self, parser):
        """Every kind the parser produces belongs to the closed vocabulary."""
        code = b'''
        local function f(a: number, ...): string
            local t = {1, 2; [3] = "x", y = `v{a}`}
            t.y ..= 'z'
            for i = 1, #t do continue end
            repeat a -= 1 until not (a > 0)
            return if a then [[s]] else nil
        end
        '''
        tree = parser.parse(code)
        assert not tree.has_error
        for node in tree.walk():
            if node.is_leaf:
                assert node.kind in LEAF_KINDS
            else:
                assert node.kind in NODE_KINDS

    def test_statement_kinds(self, parser):
        tree = parser.parse(b"local x = 1\nx //= 2\nprint(x)\n")
        kinds = [c.kind for c in tree.root.children]
        assert kinds == ["local_var_stmt", "var_stmt", "call_stmt"]

    def test_if_expression_node(self, parser):
        tree = parser.parse(b"local v = if x then 1 else 2")
        (ifexp,) = find(tree, "ifexp")
        assert [c.kind for c in ifexp.children] == ["if", "var", "then", "number", "else", "number"]

    def test_string_kinds(self, parser):
        tree = parser.parse(b"local a, b = 'x', [[y]]")
        assert [n.content for n in find(tree, "string")] == ["'x'", "[[y]]"]


class TestInterpolatedStrings:
    """Tests for the expansion of interpolated strings."""

    def test_parts(self, parser):
        tree = parser.parse(b"print(`a{b}c`)")
        (interp,) = find(tree, "string_interp")
        assert [c.kind for c in interp.children] == [
            "interp_start", "interp_content", "interp_exp", "interp_content", "interp_end",
        ]
        assert interp.content == "`a{b}c`"

    def test_embedded_expression_offsets(self, parser):
        """Embedded expressions are positioned in the enclosing buffer."""
        tree = parser.parse(b"print(`sum: {x + y}`)")
        (interp_exp,) = find(tree, "interp_exp")
        kinds = [c.kind for c in interp_exp.children]
        assert kinds == ["interp_brace_open", "binexp", "interp_brace_close"]
        assert interp_exp.children[1].content == "x + y"

    def test_unterminated_brace(self, parser):
        tree = parser.parse(b"print(`a{b`)")
        assert tree.has_error
        assert isinstance(tree.error, LuauSyntaxError)


class TestComments:
    """Tests for comment weaving."""

    def test_trailing_comment_in_chunk(self, parser):
        tree = parser.parse(b"local x = 1 -- one\n")
        assert [c.kind for c in tree.root.children] == ["local_var_stmt", "comment"]
        assert tree.root.children[1].content == "-- one"

    def test_comment_inside_table(self, parser):
        """A comment goes under the deepest node that contains it."""
        tree = parser.parse(b"local t = {\n\t1, -- first\n\t2,\n}\n")
        (comment,) = find(tree, "comment")
        assert comment.parent.kind == "fieldlist"

    def test_code_children_skip_comments(self, parser):
        tree = parser.parse(b"local t = {\n\t1, -- first\n\t2,\n}\n")
        (fieldlist,) = find(tree, "fieldlist")
        assert "comment" not in [c.kind for c in fieldlist.code_children]
        assert len(fieldlist.code_children) == len(fieldlist.children) - 1


class TestParseErrors:
    """Tests for malformed input."""

    def test_error_tree(self, parser):
        tree = parser.parse(b"local = 1")
        assert tree.has_error
        assert tree.root.kind == "ERROR"
        assert isinstance(tree.error, LuauSyntaxError)

    def test_error_position(self, parser):
        tree = parser.parse(b"local x = 1\nlocal = 2\n")
        assert tree.error.line_number == 2
        assert tree.error.context == "local = 2"

    def test_bad_character(self, parser):
        tree = parser.parse(b"local x = $")
        assert tree.has_error
