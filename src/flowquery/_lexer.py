"""Clause splitting for the filter DSL.

The filter language is small enough that it is never tokenized in full:
boolean structure is recovered by splitting on ``and``/``or`` at parenthesis
depth zero, and each remaining clause is cut around its comparison operator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from flowquery._errors import ERR_MSG_INVALID_FILTER_CLAUSE, InvalidFilterClauseError
from flowquery._operators import CLAUSE_OPERATORS

_QUOTES = "'\""

# A quote opens a literal only at the start of a token; ``it's`` is a bare word
_LITERAL_OPENERS = " \t(=<>!"


@dataclass(frozen=True)
class Clause:
    """A single ``field operator value`` comparison cut from filter text."""

    field: str
    operator: str
    value: str


def split_on_logical(text: str, op: str) -> list[str]:
    """Split text on a logical operator outside parentheses and quotes.

    The operator must be delimited by single spaces and is matched
    case-insensitively, so ``a = 1 AND b = 2`` splits on ``and`` while
    ``brand = x`` does not. Quotes only start a literal at the beginning of a
    token, so an apostrophe inside a word never hides a later operator. Parts
    are whitespace-trimmed; a text without the operator yields a single part.

    Raises:
        InvalidFilterClauseError: If a quoted literal is never closed.
    """
    delimiter = f" {op.lower()} "
    width = len(delimiter)
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    last = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in _QUOTES and (i == 0 or text[i - 1] in _LITERAL_OPENERS):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif depth == 0 and text[i:i + width].lower() == delimiter:
            parts.append(text[last:i].strip())
            last = i + width
            i = last
            continue
        i += 1
    if quote is not None:
        raise InvalidFilterClauseError(
            ERR_MSG_INVALID_FILTER_CLAUSE.format(clause=text),
            f"unbalanced {quote} quote",
        )
    parts.append(text[last:].strip())
    return parts


def strip_quotes(value: str) -> str:
    """Strip every surrounding single or double quote character."""
    return value.strip(_QUOTES)


def _search(clause: str, token: str) -> re.Match[str] | None:
    return re.search(re.escape(token), clause, re.IGNORECASE)


def split_clause(clause: str) -> Clause | None:
    """Cut a comparison clause into field, operator and value.

    Operators are tried longest first. A space-delimited operator is
    preferred so that operator characters inside names or values are not
    mistaken for the operator; only when none is found is the clause scanned
    for an unspaced operator (``srcport=443``).

    Returns:
        The clause parts, or None if no operator occurs in the clause.
    """
    for candidate in CLAUSE_OPERATORS:
        match = _search(clause, f" {candidate} ")
        if match is not None:
            return Clause(
                field=clause[:match.start()].strip(),
                operator=candidate,
                value=strip_quotes(clause[match.end():].strip()),
            )

    for candidate in CLAUSE_OPERATORS:
        match = _search(clause, candidate)
        if match is not None:
            return Clause(
                field=clause[:match.start()].strip(),
                operator=candidate,
                value=strip_quotes(clause[match.end():].strip()),
            )

    return None
