"""Recursive-descent parser for the filter DSL.

Grammar, lowest precedence first::

    or      := and ("or" and)*
    and     := primary ("and" primary)*
    primary := "(" or ")" | clause
    clause  := field operator value

A level with a single operand produces no wrapper node, so ``And`` and ``Or``
always hold at least two children when they come from text.
"""

from __future__ import annotations

import structlog

from flowquery._errors import (
    ERR_MSG_INVALID_FILTER_CLAUSE,
    InvalidFilterClauseError,
    QueryBuildError,
    UnsupportedExpressionError,
)
from flowquery._lexer import split_clause, split_on_logical
from flowquery._operators import LOGICAL_AND, LOGICAL_OR
from flowquery.expressions import (
    FIELD_EXPR_TYPES,
    And,
    Expr,
    Not,
    Or,
)
from flowquery.fields import FieldRegistry, default_registry
from flowquery.schema import Schema

logger = structlog.get_logger(__name__)


class FilterParser:
    """Parses filter text into an expression tree.

    With a schema, computed fields (``duration``) are replaced by their
    expression (``end - start``) while the value is still checked against the
    logical field's class.
    """

    def __init__(
        self,
        registry: FieldRegistry | None = None,
        schema: Schema | None = None,
        version: int | None = None,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._schema = schema
        if version is None and schema is not None:
            version = schema.get_default_version()
        self._version = version

    def parse(self, text: str) -> Expr | None:
        """Parse filter text; empty or blank text means no filter."""
        text = text.strip()
        if not text:
            return None
        return self._parse_or(text)

    def _parse_or(self, text: str) -> Expr:
        parts = split_on_logical(text, LOGICAL_OR)
        if len(parts) == 1:
            return self._parse_and(text)
        return Or(tuple(self._parse_and(part) for part in parts))

    def _parse_and(self, text: str) -> Expr:
        parts = split_on_logical(text, LOGICAL_AND)
        if len(parts) == 1:
            return self._parse_primary(text)
        return And(tuple(self._parse_primary(part) for part in parts))

    def _parse_primary(self, text: str) -> Expr:
        text = text.strip()
        if text.startswith("(") and text.endswith(")"):
            inner = self.parse(text[1:-1])
            if inner is None:
                raise InvalidFilterClauseError(
                    ERR_MSG_INVALID_FILTER_CLAUSE.format(clause=text),
                    "empty parenthesized group",
                )
            return inner
        return self._parse_clause(text)

    def _parse_clause(self, text: str) -> Expr:
        clause = split_clause(text)
        if clause is None:
            logger.debug("filter_clause_rejected", clause=text, reason="no operator")
            raise InvalidFilterClauseError(
                ERR_MSG_INVALID_FILTER_CLAUSE.format(clause=text),
            )
        if not clause.field:
            logger.debug("filter_clause_rejected", clause=text, reason="empty field")
            raise InvalidFilterClauseError(
                ERR_MSG_INVALID_FILTER_CLAUSE.format(clause=text),
                "empty field",
            )

        field_type = self._registry.resolve(clause.field)
        target = clause.field
        if self._schema is not None:
            computed = self._schema.get_computed_field_expression(clause.field, self._version)
            if computed:
                target = computed

        try:
            return field_type.parse(target, clause.operator, clause.value)
        except QueryBuildError as exc:
            logger.debug(
                "filter_clause_rejected",
                clause=text,
                field_type=field_type.name,
                reason=exc.internal(),
            )
            raise


def parse_filter(text: str, *, registry: FieldRegistry | None = None) -> Expr | None:
    """Parse filter text into an expression tree.

    Args:
        text: Filter text such as ``srcaddr = 10.0.0.0/8 and dstport = 443``.
        registry: Field classes to use. Defaults to the built-in registry.

    Returns:
        The expression tree, or None if the text is empty.

    Raises:
        QueryBuildError: If a clause has no operator, uses an operator its
            field does not support, or carries an invalid value.
    """
    return parse_filter_with_schema(text, None, registry=registry)


def parse_filter_with_schema(
    text: str,
    schema: Schema | None,
    *,
    registry: FieldRegistry | None = None,
    version: int | None = None,
) -> Expr | None:
    """Parse filter text, expanding the schema's computed fields.

    Args:
        text: Filter text.
        schema: Schema resolving computed fields, or None to use names as-is.
        registry: Field classes to use. Defaults to the built-in registry.
        version: Schema version for computed fields. Defaults to the
            schema's default version.

    Returns:
        The expression tree, or None if the text is empty.
    """
    parser = FilterParser(registry=registry, schema=schema, version=version)
    expr = parser.parse(text)
    logger.debug("filter_parsed", text=text, expr=None if expr is None else str(expr))
    return expr


def validate_filter(expr: Expr | None, schema: Schema, version: int) -> None:
    """Check every leaf field of an expression tree against a schema version.

    Values are not re-checked; the text parser already validated them. Trees
    built in code bypass the parser, so field names are checked here.

    Raises:
        InvalidFieldError: If a leaf field is not valid for the version.
        InvalidVersionError: If the version is not supported.
        UnsupportedExpressionError: If a node is not an expression.
    """
    if expr is None:
        return

    match expr:
        case And(children=children) | Or(children=children):
            for child in children:
                validate_filter(child, schema, version)
        case Not(child=child):
            validate_filter(child, schema, version)
        case _ if isinstance(expr, FIELD_EXPR_TYPES):
            schema.validate_field(expr.field, version)
        case _:
            raise UnsupportedExpressionError(
                "unsupported expression type for validation",
                f"cannot validate object of type {type(expr).__name__}",
            )
