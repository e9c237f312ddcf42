"""Query builder: accumulates stats, grouping, filters and limit, then
renders a CloudWatch Logs Insights query.

A builder starts as ``count(*)`` with a limit of 100 on the schema's default
version. Options are applied in order and the first invalid option raises, so
a builder that exists is always valid against its schema::

    builder = new_builder(
        VPCFlowLogsSchema(),
        WithVerb(Verb.SUM),
        WithFields("bytes"),
        WithGroupBy("srcaddr"),
    )
    str(builder)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from flowquery._constants import COUNT_ALIAS, DEFAULT_LIMIT, WILDCARD_FIELD
from flowquery._errors import (
    InvalidFieldError,
    InvalidLimitError,
    InvalidSchemaError,
    InvalidVerbError,
    InvalidVersionError,
    NonNumericFieldError,
    QueryBuildError,
)
from flowquery._parser import validate_filter
from flowquery.expressions import And, Expr, render
from flowquery.schema import Schema
from flowquery.verbs import Verb, parse_verb

logger = structlog.get_logger(__name__)

QUERY_SEPARATOR = " | "


@dataclass(frozen=True)
class AggregationField:
    """A ``stats`` aggregation: a verb applied to a field."""

    field: str
    verb: Verb = Verb.COUNT

    def __post_init__(self) -> None:
        if not isinstance(self.verb, Verb):
            object.__setattr__(self, "verb", parse_verb(self.verb))

    @property
    def alias(self) -> str:
        """Result column name: ``flows`` for ``count(*)``, else ``<field>_<verb>``."""
        if self.field == WILDCARD_FIELD and self.verb is Verb.COUNT:
            return COUNT_ALIAS
        return f"{self.field}_{self.verb.stat_function}"


def _validate_field(schema: Schema, field: str, version: int, context: str) -> None:
    try:
        schema.validate_field(field, version)
    except InvalidFieldError as exc:
        raise InvalidFieldError(
            f"invalid {context} '{field}': {exc.user_message}",
            exc.internal(),
            wrapped=exc,
        ) from exc


def _require_numeric(schema: Schema, agg: AggregationField) -> None:
    if agg.verb is not Verb.COUNT and not schema.is_numeric(agg.field):
        raise NonNumericFieldError(
            f"field '{agg.field}' must be numeric for verb '{agg.verb.value}'",
        )


class Builder:
    """Mutable query accumulator bound to one schema.

    Create it with :func:`new_builder` or configure it fluently; render it
    with :meth:`render` or ``str()``.
    """

    def __init__(self, schema: Schema) -> None:
        if schema is None:
            raise InvalidSchemaError(
                "schema is required",
                "Builder created without a schema",
            )
        self._schema = schema
        self._aggregations: list[AggregationField] = [AggregationField(WILDCARD_FIELD, Verb.COUNT)]
        self._fields: list[str] = []
        self._pending_fields: list[str] = []
        self._group_by: list[str] = []
        self._filters: list[Expr] = []
        self._limit = DEFAULT_LIMIT
        self._version = schema.get_default_version()

    # ---- State ----

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def version(self) -> int:
        return self._version

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def aggregations(self) -> tuple[AggregationField, ...]:
        return tuple(self._aggregations)

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._fields)

    @property
    def group_by(self) -> tuple[str, ...]:
        return tuple(self._group_by)

    @property
    def filters(self) -> tuple[Expr, ...]:
        return tuple(self._filters)

    # ---- Configuration ----

    def apply(self, *options: Option) -> Builder:
        """Apply options in order; the first invalid one raises."""
        for option in options:
            option.apply(self)
        return self

    def with_verb(self, verb: Verb | str) -> Builder:
        return self.apply(WithVerb(verb))

    def with_fields(self, *fields: str) -> Builder:
        return self.apply(WithFields(*fields))

    def with_aggregations(self, *aggregations: AggregationField) -> Builder:
        return self.apply(WithAggregations(*aggregations))

    def with_group_by(self, *fields: str) -> Builder:
        return self.apply(WithGroupBy(*fields))

    def with_limit(self, limit: int) -> Builder:
        return self.apply(WithLimit(limit))

    def with_filter(self, expr: Expr | None) -> Builder:
        return self.apply(WithFilter(expr))

    def with_version(self, version: int) -> Builder:
        return self.apply(WithVersion(version))

    # ---- Rendering ----

    def _resolve(self, field: str) -> str:
        return self._schema.get_computed_field_expression(field, self._version)

    def _aliased(self, field: str) -> str:
        computed = self._resolve(field)
        return f"{computed} as {field}" if computed else field

    def _stats_clause(self) -> str:
        stats = []
        for agg in self._aggregations:
            target = self._resolve(agg.field) or agg.field
            stats.append(f"{agg.verb.stat_function}({target}) as {agg.alias}")
        clause = "stats " + ", ".join(stats)
        if self._group_by:
            clause += " by " + ", ".join(self._aliased(field) for field in self._group_by)
        return clause

    def _sort_clause(self) -> str:
        # The first aggregation always drives ordering, whatever the verb mix
        return f"sort {self._aggregations[0].alias} desc"

    def _display_clause(self) -> str:
        return "display " + ", ".join(self._aliased(field) for field in self._fields)

    def render(self) -> str:
        """Render the query.

        Returns an empty string, never a partial query, when the configured
        version has no parse pattern.
        """
        try:
            parse_pattern = self._schema.get_parse_pattern(self._version)
        except QueryBuildError as exc:
            logger.warning("query_render_failed", version=self._version, reason=exc.internal())
            return ""

        parts = [parse_pattern]
        if self._filters:
            parts.append("filter " + render(And(tuple(self._filters))))
        if self._aggregations:
            parts.append(self._stats_clause())
            parts.append(self._sort_clause())
        elif self._fields and self._fields[0] != WILDCARD_FIELD:
            parts.append(self._display_clause())
        if self._limit > 0:
            parts.append(f"limit {self._limit}")

        query = QUERY_SEPARATOR.join(parts)
        logger.debug("query_rendered", version=self._version, clauses=len(parts))
        return query

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"Builder(schema={type(self._schema).__name__}, version={self._version}, "
            f"aggregations={self._aggregations!r}, fields={self._fields!r}, "
            f"group_by={self._group_by!r}, filters={len(self._filters)}, limit={self._limit})"
        )


# ---- Options ----

class Option(ABC):
    """A configuration step applied to a Builder."""

    @abstractmethod
    def apply(self, builder: Builder) -> None:
        """Mutate the builder, or raise QueryBuildError and leave it unusable."""


@dataclass(frozen=True)
class WithVerb(Option):
    """Select the verb.

    ``raw`` drops all aggregations and lists records, adopting fields given
    earlier with :class:`WithFields`. Aggregation verbs replace the verb of the
    first aggregation.
    """

    verb: Verb

    def __post_init__(self) -> None:
        if not isinstance(self.verb, Verb):
            object.__setattr__(self, "verb", parse_verb(self.verb))

    def apply(self, builder: Builder) -> None:
        if self.verb is Verb.RAW:
            builder._aggregations = []
            if builder._pending_fields:
                builder._fields = builder._pending_fields
                builder._pending_fields = []
            elif not builder._fields:
                builder._fields = [WILDCARD_FIELD]
        elif not builder._aggregations:
            builder._aggregations = [AggregationField(WILDCARD_FIELD, self.verb)]
        else:
            first = builder._aggregations[0]
            agg = AggregationField(first.field, self.verb)
            if agg.field != WILDCARD_FIELD:
                _require_numeric(builder._schema, agg)
            builder._aggregations[0] = agg


@dataclass(frozen=True, init=False)
class WithFields(Option):
    """Select fields: record columns for ``raw``, else the aggregated field."""

    fields: tuple[str, ...]

    def __init__(self, *fields: str) -> None:
        object.__setattr__(self, "fields", tuple(fields))

    def apply(self, builder: Builder) -> None:
        for field in self.fields:
            _validate_field(builder._schema, field, builder._version, "field")

        if not builder._aggregations:
            builder._fields = list(self.fields)
            return
        builder._pending_fields = list(self.fields)
        if self.fields:
            first = builder._aggregations[0]
            agg = AggregationField(self.fields[0], first.verb)
            if agg.field != WILDCARD_FIELD:
                _require_numeric(builder._schema, agg)
            builder._aggregations[0] = agg


@dataclass(frozen=True, init=False)
class WithAggregations(Option):
    """Replace the aggregation list; non-count verbs need numeric fields."""

    aggregations: tuple[AggregationField, ...]

    def __init__(self, *aggregations: AggregationField) -> None:
        object.__setattr__(self, "aggregations", tuple(aggregations))

    def apply(self, builder: Builder) -> None:
        schema = builder._schema
        for agg in self.aggregations:
            if agg.verb is Verb.RAW:
                raise InvalidVerbError(
                    f"verb 'raw' cannot aggregate field '{agg.field}'",
                    "Verb.RAW passed to WithAggregations",
                )
            _validate_field(schema, agg.field, builder._version, "field")
            _require_numeric(schema, agg)
        builder._aggregations = list(self.aggregations)


@dataclass(frozen=True, init=False)
class WithGroupBy(Option):
    fields: tuple[str, ...]

    def __init__(self, *fields: str) -> None:
        object.__setattr__(self, "fields", tuple(fields))

    def apply(self, builder: Builder) -> None:
        for field in self.fields:
            _validate_field(builder._schema, field, builder._version, "group by field")
        builder._group_by = list(self.fields)


@dataclass(frozen=True)
class WithLimit(Option):
    """Set the result limit; zero omits the ``limit`` clause."""

    limit: int

    def apply(self, builder: Builder) -> None:
        if self.limit < 0:
            raise InvalidLimitError(
                "limit must be non-negative",
                f"limit {self.limit} requested",
            )
        builder._limit = self.limit


@dataclass(frozen=True)
class WithFilter(Option):
    """Add a filter; several filters are joined with ``and``."""

    expr: Expr | None

    def apply(self, builder: Builder) -> None:
        if self.expr is None:
            return
        validate_filter(self.expr, builder._schema, builder._version)
        builder._filters.append(self.expr)


@dataclass(frozen=True)
class WithVersion(Option):
    """Select the flow log version; later field options validate against it."""

    version: int

    def apply(self, builder: Builder) -> None:
        try:
            builder._schema.validate_version(self.version)
        except InvalidVersionError as exc:
            raise InvalidVersionError(
                f"invalid version {self.version}: {exc.user_message}",
                exc.internal(),
                wrapped=exc,
            ) from exc
        builder._version = self.version


def new_builder(schema: Schema, *options: Option) -> Builder:
    """Create a builder and apply options in order.

    Args:
        schema: Schema the query targets.
        *options: Configuration steps, applied first to last.

    Returns:
        The configured builder.

    Raises:
        InvalidSchemaError: If no schema is given.
        QueryBuildError: From the first option that fails validation.
    """
    builder = Builder(schema)
    try:
        builder.apply(*options)
    except QueryBuildError as exc:
        logger.debug("builder_option_rejected", error=exc.internal())
        raise
    return builder
