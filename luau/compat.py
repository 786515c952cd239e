"""
Compatibility Rewriter - lowers Luau-only syntax to plain Lua.

Three constructs are rewritten:

- ``a // b`` becomes ``math.floor(a/b)``
- ``a //= b`` becomes ``a = math.floor(a/b)``
- ``if C then E1 else En`` becomes ``C and E1 or En`` when ``E1`` is a literal
  that can never be falsy, and an immediately-called function otherwise

Each pass swaps every outermost match for a filler string of the same length,
then replaces the fillers with their rewritten text, right to left, so byte
ranges taken from the tree stay valid for the whole pass. Matches nested inside
a rewritten construct are carried over verbatim and picked up by the next pass;
passes repeat until the text stops changing.
"""
import random
import string

from luau.config import MercurySettings
from luau.errors import FixpointError, UnhandledNodeError
from luau.parser import LuauParser
from luau.syntax import SourceBuffer


# Then-branches for which ``C and E1 or En`` keeps the if-expression's meaning
TRUTHY_KINDS = frozenset({"number", "string", "string_interp", "true"})

FILLER_ALPHABET = "".join(
    ch for ch in string.ascii_letters + string.digits + string.punctuation
    if ch not in "'\"`\\[]-"
)


def is_match(node):
    """True for the constructs this module rewrites."""
    if node.kind == "ifexp":
        return True
    if node.kind in ("binexp", "var_stmt"):
        children = node.code_children
        operator = "//" if node.kind == "binexp" else "//="
        return len(children) == 3 and children[1].kind == operator
    return False


def find_matches(tree):
    """Outermost matching nodes, in source order."""
    matches = []
    stack = [tree.root]
    while stack:
        node = stack.pop()
        if is_match(node):
            matches.append(node)
            continue
        stack.extend(reversed(node.children))
    return matches


class CompatRewriter:
    """
    Runs rewrite passes over parsed source.

    Use ``run`` for the full fixpoint loop, or ``rewrite`` for a single pass
    over an existing tree.
    """

    def __init__(self, settings=None, parser=None, debug=None):
        self.settings = settings or MercurySettings()
        self.parser = parser or LuauParser()
        self._random = random.Random(self.settings.seed)
        self._debug = debug

    def log(self, message):
        if self._debug is not None:
            self._debug(message)

    # --- Single pass ---

    def rewrite(self, tree):
        """
        Return the text of ``tree`` with every outermost match rewritten.

        A tree with a parse error comes back as its original text.
        """
        text = tree.source.text
        if tree.has_error:
            return text
        matches = find_matches(tree)
        self.log(f"rewrite pass: {len(matches)} match(es)")
        if matches:
            replacements = [(node, self.replacement(node)) for node in matches]
            text = self._substitute(text, replacements)
        return text.strip("\n") + "\n"

    def _substitute(self, text, replacements):
        fillers, isolated = self._isolate(text, [node for node, _ in replacements])
        for (node, rewritten), filler in reversed(list(zip(replacements, fillers))):
            if not isolated.startswith(filler, node.start):
                raise UnhandledNodeError("placeholder lost its position", node)
            isolated = isolated[:node.start] + rewritten + isolated[node.end:]
        return isolated

    def _isolate(self, text, nodes):
        """
        Replace each node's range with a filler of the same length.

        Fillers are drawn again until every one of them occurs exactly once.
        """
        while True:
            fillers = [self._filler(node.end - node.start) for node in nodes]
            isolated = text
            for node, filler in zip(nodes, fillers):
                isolated = isolated[:node.start] + filler + isolated[node.end:]
            if all(isolated.count(filler) == 1 for filler in fillers):
                return fillers, isolated
            self.log("placeholder collision, drawing new fillers")

    def _filler(self, length):
        return "".join(self._random.choice(FILLER_ALPHABET) for _ in range(length))

    # --- Replacement text ---

    def replacement(self, node):
        """Rewritten text for one match."""
        if node.kind == "ifexp":
            return self._replace_ifexp(node)
        if node.kind == "binexp":
            left, _, right = node.code_children
            return f"math.floor({left.content}/{right.content})"
        if node.kind == "var_stmt":
            target, _, value = node.code_children
            operand = value.content
            if value.kind in ("binexp", "ifexp"):
                operand = f"({operand})"
            return f"{target.content} = math.floor({target.content}/{operand})"
        raise UnhandledNodeError(f"no rewrite for '{node.kind}'", node)

    def _replace_ifexp(self, node):
        children = node.code_children
        _check_ifexp_shape(node, children)

        if len(children) == 6 and children[3].kind in TRUTHY_KINDS:
            condition, value, fallback = children[1], children[3], children[5]
            condition_text = condition.content
            if _is_or(condition) or _ends_in_ifexp(condition):
                condition_text = f"({condition_text})"
            fallback_text = fallback.content
            if fallback.kind == "ifexp":
                fallback_text = f"({fallback_text})"
            text = " ".join([condition_text, "and", value.content, "or", fallback_text])
            if node.parent.kind in ("binexp", "unexp"):
                text = f"({text})"
            return text

        parts = []
        for child in children:
            if child.kind in ("if", "elseif"):
                parts.append(child.kind)
            elif child.kind in ("then", "else"):
                parts.append(f"{child.kind} return")
            else:
                parts.append(child.content)
        return "(function() " + " ".join(parts) + " end end)()"

    # --- Fixpoint ---

    def run(self, source):
        """
        Rewrite ``source`` until a pass leaves it unchanged.

        Returns bytes. Source that does not parse is returned unchanged.

        Raises:
            FixpointError: If rewritten text stops parsing or the loop runs
                past ``max_iterations`` passes
        """
        buffer = SourceBuffer.coerce(source)
        for iteration in range(1, self.settings.max_iterations + 1):
            tree = self.parser.parse(buffer)
            if tree.has_error:
                if iteration == 1:
                    self.log("source does not parse, leaving it unchanged")
                    return buffer.data
                raise FixpointError(
                    f"rewrite pass {iteration - 1} produced text that does not parse",
                    line_number=tree.error.line_number,
                    column=tree.error.column,
                    context=tree.error.context,
                    suggestion="run with --verbose to see each pass",
                )
            rewritten = self.rewrite(tree)
            if rewritten == buffer.text:
                self.log(f"rewrite settled after {iteration} pass(es)")
                return buffer.data
            buffer = SourceBuffer.from_text(rewritten)
        raise FixpointError(
            f"rewrite did not settle within {self.settings.max_iterations} passes",
            suggestion="raise max_iterations in mercury.json if the file is very deeply nested",
        )


def _is_or(node):
    children = node.code_children
    return node.kind == "binexp" and len(children) == 3 and children[1].kind == "or"


def _ends_in_ifexp(node):
    """True when the last operand of ``node`` is an if-expression."""
    while node.kind in ("binexp", "unexp"):
        node = node.code_children[-1]
    return node.kind == "ifexp"


def _check_ifexp_shape(node, children):
    """``if C then E (elseif C then E)* else E``, comments excluded."""
    kinds = [c.kind for c in children]
    if len(kinds) < 6 or len(kinds) % 4 != 2 or kinds[0] != "if" or kinds[-2] != "else":
        raise UnhandledNodeError("unexpected if-expression shape", node)
    for i in range(0, len(kinds) - 2, 4):
        if kinds[i] not in ("if", "elseif") or kinds[i + 2] != "then":
            raise UnhandledNodeError("unexpected if-expression shape", node)


def compatify(source, settings=None, parser=None, debug=None):
    """Rewrite ``source`` to plain Lua with a fresh ``CompatRewriter``."""
    return CompatRewriter(settings, parser, debug).run(source)
