"""
String literal delimiters and quote normalization.

Quoted literals are rewritten to whichever of ``'`` and ``"`` needs the fewest
backslash escapes. Long-bracket literals (``[[...]]``, ``[=[...]=]``, ...)
never contain escapes and are left alone.
"""

QUOTES = ("'", '"')


def split_delimiters(literal):
    """Split a string literal into ``(prefix, body, suffix)``."""
    if literal[:1] in QUOTES:
        return literal[0], literal[1:-1], literal[-1]
    if literal.startswith("["):
        open_end = literal.index("[", 1) + 1
        level = open_end - 2
        suffix = "]" + "=" * level + "]"
        return literal[:open_end], literal[open_end:len(literal) - len(suffix)], suffix
    raise ValueError(f"not a string literal: {literal!r}")


def escape_units(body):
    """Split a literal body into escape sequences and single characters."""
    units = []
    i = 0
    while i < len(body):
        if body[i] == "\\" and i + 1 < len(body):
            units.append(body[i:i + 2])
            i += 2
        else:
            units.append(body[i])
            i += 1
    return units


def count_quotes(body):
    """
    Count quote characters in a body.

    Returns ``(escaped_single, escaped_double, literal_single, literal_double)``.
    A backslash that is itself escaped does not escape the quote after it.
    """
    counts = {"\\'": 0, '\\"': 0, "'": 0, '"': 0}
    for unit in escape_units(body):
        if unit in counts:
            counts[unit] += 1
    return counts["\\'"], counts['\\"'], counts["'"], counts['"']


def choose_delimiter(body, current):
    """
    Pick the delimiter needing fewer escapes for ``body``.

    A body without quotes keeps ``current``; equal counts go to single quotes.
    """
    escaped_single, escaped_double, single, double = count_quotes(body)
    singles = escaped_single + single
    doubles = escaped_double + double
    if not singles and not doubles:
        return current
    return "'" if singles <= doubles else '"'


def requote(body, quote):
    """Rewrite ``body`` for ``quote`` delimiters: escape it, unescape the other."""
    other = '"' if quote == "'" else "'"
    rebuilt = []
    for unit in escape_units(body):
        if unit == "\\" + other:
            rebuilt.append(other)
        elif unit == quote:
            rebuilt.append("\\" + quote)
        else:
            rebuilt.append(unit)
    return "".join(rebuilt)


def normalize_quotes(literal):
    """Return ``literal`` with its canonical quote style."""
    prefix, body, suffix = split_delimiters(literal)
    if prefix not in QUOTES:
        return literal
    quote = choose_delimiter(body, prefix)
    return quote + requote(body, quote) + quote
