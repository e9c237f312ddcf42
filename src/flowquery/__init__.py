"""flowquery - Compile a flow-log filter/aggregation DSL to CloudWatch Logs Insights."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _package_version

try:
    __version__ = _package_version("flowquery")
except PackageNotFoundError:  # running from a source tree
    __version__ = "0.0.0.dev0"

from flowquery._errors import (
    InvalidCIDRError,
    InvalidFieldError,
    InvalidFilterClauseError,
    InvalidIPError,
    InvalidLimitError,
    InvalidNumericValueError,
    InvalidPortError,
    InvalidSchemaError,
    InvalidValueError,
    InvalidVerbError,
    InvalidVersionError,
    NonNumericFieldError,
    QueryBuildError,
    UnsupportedExpressionError,
    UnsupportedOperatorError,
)
from flowquery._parser import (
    FilterParser,
    parse_filter,
    parse_filter_with_schema,
    validate_filter,
)
from flowquery.builder import (
    AggregationField,
    Builder,
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
from flowquery.command import build_command_options, compile_query, parse_fields
from flowquery.expressions import (
    And,
    Eq,
    Expr,
    Gt,
    Gte,
    IsIpv4InSubnet,
    Like,
    Lt,
    Lte,
    Neq,
    Not,
    NotLike,
    Or,
    render,
)
from flowquery.fields import FieldRegistry, FieldType, default_registry
from flowquery.schema import Schema, VPCFlowLogsSchema, get_schema
from flowquery.verbs import Verb, parse_verb

__all__ = [
    "parse_filter",
    "parse_filter_with_schema",
    "validate_filter",
    "new_builder",
    "compile_query",
    "build_command_options",
    "parse_fields",
    "parse_verb",
    "render",
    "get_schema",
    "default_registry",
    "FilterParser",
    "AggregationField",
    "Builder",
    "Option",
    "WithAggregations",
    "WithFields",
    "WithFilter",
    "WithGroupBy",
    "WithLimit",
    "WithVerb",
    "WithVersion",
    "Verb",
    "Schema",
    "VPCFlowLogsSchema",
    "FieldRegistry",
    "FieldType",
    "Expr",
    "And",
    "Eq",
    "Gt",
    "Gte",
    "IsIpv4InSubnet",
    "Like",
    "Lt",
    "Lte",
    "Neq",
    "Not",
    "NotLike",
    "Or",
    "QueryBuildError",
    "InvalidCIDRError",
    "InvalidFieldError",
    "InvalidFilterClauseError",
    "InvalidIPError",
    "InvalidLimitError",
    "InvalidNumericValueError",
    "InvalidPortError",
    "InvalidSchemaError",
    "InvalidValueError",
    "InvalidVerbError",
    "InvalidVersionError",
    "NonNumericFieldError",
    "UnsupportedExpressionError",
    "UnsupportedOperatorError",
]
