"""Turn command-line shaped input into builder options.

A command reads like ``sum bytes,packets --by srcaddr --filter "dstport = 443"``:
the first word is the verb, the remaining words are a comma-separated field
list, and the flags become grouping, filter, limit and version options.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from flowquery._constants import DEFAULT_COMMAND_LIMIT, DEFAULT_SCHEMA_VERSION
from flowquery._errors import InvalidVerbError
from flowquery._parser import parse_filter_with_schema
from flowquery.builder import (
    AggregationField,
    Option,
    WithAggregations,
    WithFields,
    WithFilter,
    WithGroupBy,
    WithLimit,
    WithVerb,
    WithVersion,
    new_builder,
)
from flowquery.fields import FieldRegistry
from flowquery.schema import Schema
from flowquery.verbs import Verb, parse_verb

logger = structlog.get_logger(__name__)


def parse_fields(args: Sequence[str]) -> list[str]:
    """Join words with spaces, split on commas and trim each field.

    ``["bytes,", "packets"]`` and ``["bytes, packets"]`` both give
    ``["bytes", "packets"]``.
    """
    if not args:
        return []
    return [field.strip() for field in " ".join(args).split(",")]


def _raw_options(args: Sequence[str]) -> list[Option]:
    options: list[Option] = [WithVerb(Verb.RAW)]
    fields = parse_fields(args[1:])
    if fields:
        options.append(WithFields(*fields))
    return options


def _aggregation_options(args: Sequence[str], verb: Verb) -> list[Option]:
    options: list[Option] = [WithVerb(verb)]
    fields = parse_fields(args[1:])
    if fields:
        options.append(WithAggregations(*(AggregationField(field, verb) for field in fields)))
    return options


def build_command_options(
    schema: Schema,
    args: Sequence[str],
    *,
    version: int = DEFAULT_SCHEMA_VERSION,
    limit: int = DEFAULT_COMMAND_LIMIT,
    by: str = "",
    filter_text: str = "",
    registry: FieldRegistry | None = None,
) -> list[Option]:
    """Build the option list for a command.

    Args:
        schema: Schema used to expand computed fields in the filter.
        args: Positional words; the first is the verb, the rest are fields.
        version: Flow log version.
        limit: Result limit.
        by: Comma-separated group-by fields.
        filter_text: Filter DSL text.
        registry: Field classes for the filter parser.

    Returns:
        Options ready for :func:`new_builder`.

    Raises:
        InvalidVerbError: If the verb is missing or unknown.
        QueryBuildError: If the filter text does not parse.
    """
    if not args:
        raise InvalidVerbError("verb is required", "no positional arguments given")
    verb = parse_verb(args[0])

    options: list[Option] = [WithVersion(version), WithLimit(limit)]
    if verb is Verb.RAW:
        options.extend(_raw_options(args))
    else:
        options.extend(_aggregation_options(args, verb))

    if by:
        options.append(WithGroupBy(*(field.strip() for field in by.split(","))))

    if filter_text:
        expr = parse_filter_with_schema(filter_text, schema, registry=registry, version=version)
        options.append(WithFilter(expr))

    logger.debug("command_options_built", verb=verb.value, options=len(options))
    return options


def compile_query(schema: Schema, args: Sequence[str], **kwargs) -> str:
    """Build and render the query for a command.

    Keyword arguments are those of :func:`build_command_options`.
    """
    options = build_command_options(schema, args, **kwargs)
    return new_builder(schema, *options).render()
