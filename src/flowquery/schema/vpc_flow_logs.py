"""VPC Flow Logs schema (record versions 2, 3 and 5)."""

from __future__ import annotations

from flowquery._constants import DEFAULT_SCHEMA_VERSION, WILDCARD_FIELD
from flowquery._errors import InvalidFieldError, InvalidVersionError
from flowquery.schema._base import Schema

_V2_FIELDS: tuple[str, ...] = (
    "version", "account_id", "interface_id", "srcaddr", "dstaddr",
    "srcport", "dstport", "protocol", "packets", "bytes",
    "start", "end", "action", "log_status",
)

_V3_FIELDS: tuple[str, ...] = _V2_FIELDS + (
    "vpc_id", "subnet_id", "instance_id", "tcp_flags", "type",
    "pkt_srcaddr", "pkt_dstaddr", "region", "az_id", "sublocation_type",
    "sublocation_id", "pkt_src_aws_service", "pkt_dst_aws_service",
    "flow_direction", "traffic_path",
)

# Version 5 adds no columns over version 3 in the default format
_V5_FIELDS: tuple[str, ...] = _V3_FIELDS

VERSION_FIELDS: dict[int, tuple[str, ...]] = {
    2: _V2_FIELDS,
    3: _V3_FIELDS,
    5: _V5_FIELDS,
}

NUMERIC_FIELDS = frozenset({
    "srcport", "dstport", "protocol", "packets", "bytes", "start", "end", "duration",
})

COMPUTED_FIELDS: dict[str, str] = {
    "duration": "end - start",
}


PARSE_PATTERN_V2 = (
    'parse @message "* * * * * * * * * * * * * *" as '
    + ", ".join(_V2_FIELDS)
)

# The v3/v5 glob carries 31 wildcards for 29 names
PARSE_PATTERN_V3 = (
    'parse @message "* * * * * * * * * * * * * * * * * * * * * * * * * * * * * * *" as '
    + ", ".join(_V3_FIELDS)
)

PARSE_PATTERN_V5 = (
    'parse @message "* * * * * * * * * * * * * * * * * * * * * * * * * * * * * * *" as '
    + ", ".join(_V5_FIELDS)
)

PARSE_PATTERNS: dict[int, str] = {
    2: PARSE_PATTERN_V2,
    3: PARSE_PATTERN_V3,
    5: PARSE_PATTERN_V5,
}


class VPCFlowLogsSchema(Schema):
    """Schema for AWS VPC Flow Logs delivered to CloudWatch Logs."""

    def get_default_version(self) -> int:
        return DEFAULT_SCHEMA_VERSION

    def validate_version(self, version: int) -> None:
        if version not in VERSION_FIELDS:
            raise InvalidVersionError(
                f"invalid flow log version: {version}",
                f"supported versions: {sorted(VERSION_FIELDS)}",
            )

    def get_parse_pattern(self, version: int) -> str:
        pattern = PARSE_PATTERNS.get(version)
        if pattern is None:
            raise InvalidVersionError(
                f"unsupported VPC Flow Log version for parse pattern: {version}",
            )
        return pattern

    def validate_field(self, field: str, version: int) -> None:
        valid_fields = VERSION_FIELDS.get(version)
        if valid_fields is None:
            raise InvalidVersionError(f"invalid flow log version: {version}")
        # Wildcard and computed fields exist in every version, including
        # their expanded expressions produced by the schema-aware parser
        if field == WILDCARD_FIELD or field in COMPUTED_FIELDS:
            return
        if field in COMPUTED_FIELDS.values():
            return
        if field not in valid_fields:
            raise InvalidFieldError(
                f"invalid field '{field}' for version {version}",
                f"field {field!r} not in {len(valid_fields)} fields of version {version}",
            )

    def is_numeric(self, field: str) -> bool:
        return field in NUMERIC_FIELDS

    def get_computed_field_expression(self, field: str, version: int) -> str:
        return COMPUTED_FIELDS.get(field, "")
