"""Filter expression tree and its CloudWatch Logs Insights rendering.

The node set is closed: comparisons (``Eq``, ``Neq``, ``Gt``, ``Lt``, ``Gte``,
``Lte``), pattern matches (``Like``, ``NotLike``), CIDR membership
(``IsIpv4InSubnet``) and the boolean combinators ``And``, ``Or`` and ``Not``.
Nodes are frozen dataclasses; :func:`render` is the single place that turns a
tree into query text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from flowquery._errors import UnsupportedExpressionError

Value = Union[int, float, str]
"""A comparison literal after value coercion."""

_COMPUTED_FIELD_CHARS = frozenset(" -/*+()")

# Integral floats below this render without a fractional part
_MAX_PLAIN_FLOAT = 1e21


class _Node:
    __slots__ = ()

    def __str__(self) -> str:
        return render(self)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Eq(_Node):
    field: str
    value: Value


@dataclass(frozen=True)
class Neq(_Node):
    field: str
    value: Value


@dataclass(frozen=True)
class Gt(_Node):
    field: str
    value: Value


@dataclass(frozen=True)
class Lt(_Node):
    field: str
    value: Value


@dataclass(frozen=True)
class Gte(_Node):
    field: str
    value: Value


@dataclass(frozen=True)
class Lte(_Node):
    field: str
    value: Value


@dataclass(frozen=True)
class Like(_Node):
    """Pattern match; the service treats the literal as a substring."""

    field: str
    value: str


@dataclass(frozen=True)
class NotLike(_Node):
    field: str
    value: str


@dataclass(frozen=True)
class IsIpv4InSubnet(_Node):
    """CIDR membership check, e.g. ``isIpv4InSubnet(srcaddr, '10.0.0.0/24')``."""

    field: str
    value: str


@dataclass(frozen=True)
class And(_Node):
    children: tuple[Expr, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class Or(_Node):
    children: tuple[Expr, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class Not(_Node):
    child: Expr


Comparison = Union[Eq, Neq, Gt, Lt, Gte, Lte]
FieldExpr = Union[Comparison, Like, NotLike, IsIpv4InSubnet]
Expr = Union[FieldExpr, And, Or, Not]

COMPARISON_SYMBOLS: dict[type, str] = {
    Eq: "=",
    Neq: "!=",
    Gt: ">",
    Lt: "<",
    Gte: ">=",
    Lte: "<=",
}

FIELD_EXPR_TYPES: tuple[type, ...] = (
    Eq, Neq, Gt, Lt, Gte, Lte, Like, NotLike, IsIpv4InSubnet,
)


def is_computed_field(field: str) -> bool:
    """Return True if the field is an expression rather than a plain name."""
    return any(ch in _COMPUTED_FIELD_CHARS for ch in field)


def format_field(field: str) -> str:
    """Parenthesize computed expressions so comparisons bind correctly."""
    if is_computed_field(field):
        return f"({field})"
    return field


def quote(value: object) -> str:
    """Render a literal: numbers bare, everything else single-quoted."""
    if isinstance(value, float) and value.is_integer() and abs(value) < _MAX_PLAIN_FLOAT:
        return str(int(value))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return "'" + str(value).replace("'", "\\'") + "'"


def render(expr: Expr) -> str:
    """Render an expression tree as CloudWatch Logs Insights filter syntax.

    ``And`` is never parenthesized while ``Or`` always is, even with a single
    child; downstream consumers of the query text rely on this shape.

    Raises:
        UnsupportedExpressionError: If the object is not an expression node.
    """
    match expr:
        case Eq() | Neq() | Gt() | Lt() | Gte() | Lte():
            symbol = COMPARISON_SYMBOLS[type(expr)]
            return f"{format_field(expr.field)} {symbol} {quote(expr.value)}"
        case Like(field=field, value=value):
            return f"{field} like {quote(value)}"
        case NotLike(field=field, value=value):
            return f"{field} not like {quote(value)}"
        case IsIpv4InSubnet(field=field, value=value):
            return f"isIpv4InSubnet({field}, '{value}')"
        case And(children=children):
            return " and ".join(render(child) for child in children)
        case Or(children=children):
            if not children:
                return ""
            return "(" + " or ".join(render(child) for child in children) + ")"
        case Not(child=child):
            return f"not {render(child)}"
        case _:
            raise UnsupportedExpressionError(
                "unsupported expression type",
                f"cannot render object of type {type(expr).__name__}",
            )
