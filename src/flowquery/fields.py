"""Field classes and the registry that maps flow-log fields onto them.

Every field in a filter clause belongs to a class (ip, port, protocol,
numeric, or the default string class). The class decides which operators are
allowed, how the raw value is validated and which expression node the clause
becomes.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from flowquery._constants import MAX_IP_OCTET, MAX_IP_PARTS, MAX_PORT, MIN_PORT
from flowquery._errors import (
    ERR_MSG_INVALID_CIDR_BLOCK,
    ERR_MSG_INVALID_IP_VALUE,
    ERR_MSG_INVALID_NUMERIC_VALUE,
    ERR_MSG_INVALID_PORT_VALUE,
    ERR_MSG_PORT_OUT_OF_RANGE,
    ERR_MSG_UNSUPPORTED_OPERATOR,
    InvalidCIDRError,
    InvalidIPError,
    InvalidNumericValueError,
    InvalidPortError,
    UnsupportedOperatorError,
)
from flowquery._operators import (
    OP_EQ,
    OP_GE,
    OP_GT,
    OP_LE,
    OP_LIKE,
    OP_LT,
    OP_NE,
    OP_NOT_LIKE,
    ORDERED_OPERATORS,
    STRING_OPERATORS,
)
from flowquery.expressions import (
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
    Value,
)

FieldParser = Callable[[str, str, str], Expr]
"""Builds an expression from ``(field, operator, raw_value)``."""

ValueValidator = Callable[[str], None]
"""Raises an InvalidValueError subclass for a malformed raw value."""

IP_FIELDS: tuple[str, ...] = ("srcaddr", "dstaddr", "pkt_srcaddr", "pkt_dstaddr")
PORT_FIELDS: tuple[str, ...] = ("srcport", "dstport")
PROTOCOL_FIELDS: tuple[str, ...] = ("protocol",)
NUMERIC_FIELDS: tuple[str, ...] = ("packets", "bytes", "start", "end", "duration")

PROTOCOL_NUMBERS: dict[str, int] = {
    "tcp": 6,
    "udp": 17,
    "icmp": 1,
    "icmpv6": 58,
    "esp": 50,
    "ah": 51,
}

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_IP_PREFIX_RE = re.compile(r"^\d{1,3}(\.\d{1,3}){0,3}$")
_PREFIX_BITS_RE = re.compile(r"^(0|[1-9]\d*)$")


# ---- Value coercion ----

def parse_int(value: str) -> int | None:
    """Parse a strict decimal integer, optionally signed."""
    if _INT_RE.match(value):
        return int(value)
    return None


def parse_number(value: str) -> int | float | None:
    """Parse an integer, else a finite decimal float."""
    as_int = parse_int(value)
    if as_int is not None:
        return as_int
    if _FLOAT_RE.match(value):
        return float(value)
    return None


def coerce_value(value: str) -> Value:
    """Return the value as int or float when it looks numeric, else as-is."""
    number = parse_number(value)
    return value if number is None else number


_COMPARISON_NODES: dict[str, type] = {
    OP_EQ: Eq,
    OP_NE: Neq,
    OP_GT: Gt,
    OP_LT: Lt,
    OP_GE: Gte,
    OP_LE: Lte,
}

_PATTERN_NODES: dict[str, type] = {
    OP_LIKE: Like,
    OP_NOT_LIKE: NotLike,
}


def build_comparison(field: str, operator: str, value: str) -> Expr:
    """Build the node for an operator, coercing numeric-looking values.

    Pattern operators keep the raw text since patterns are always strings.
    """
    pattern_node = _PATTERN_NODES.get(operator)
    if pattern_node is not None:
        return pattern_node(field, value)
    node = _COMPARISON_NODES.get(operator)
    if node is None:
        raise UnsupportedOperatorError(f"unsupported operator: {operator!r}")
    return node(field, coerce_value(value))


# ---- IP fields ----

def _is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _validate_cidr(value: str) -> None:
    address, _, bits = value.partition("/")
    try:
        ip = ipaddress.ip_address(address)
    except ValueError as exc:
        raise InvalidCIDRError(
            ERR_MSG_INVALID_CIDR_BLOCK.format(value=value),
            str(exc),
            wrapped=exc,
        ) from exc
    if ip.version != 4:
        raise InvalidCIDRError(
            ERR_MSG_INVALID_CIDR_BLOCK.format(value=value),
            "isIpv4InSubnet only accepts IPv4 subnets",
        )
    if not _PREFIX_BITS_RE.match(bits) or int(bits) > ip.max_prefixlen:
        raise InvalidCIDRError(
            ERR_MSG_INVALID_CIDR_BLOCK.format(value=value),
            f"bad prefix length {bits!r} for {ip.max_prefixlen}-bit address",
        )


def is_valid_ip_prefix(prefix: str) -> bool:
    """Check a dotted prefix such as ``10.0`` (1-4 octets, each <= 255)."""
    if not _IP_PREFIX_RE.match(prefix):
        return False
    parts = prefix.split(".")
    if len(parts) > MAX_IP_PARTS:
        return False
    return all(part and int(part) <= MAX_IP_OCTET for part in parts)


def parse_ip_field(field: str, operator: str, value: str) -> Expr:
    """Build an expression for an IP field from the shape of its value.

    * ``10.0.0.0/24`` becomes a subnet membership check,
    * ``10.0.0.1`` an exact comparison (``like`` on a full address is equality),
    * ``10.0`` a pattern match on the address prefix.
    """
    if operator not in STRING_OPERATORS:
        raise UnsupportedOperatorError(
            ERR_MSG_UNSUPPORTED_OPERATOR.format(kind="IP", operator=operator),
        )
    negated = operator in (OP_NE, OP_NOT_LIKE)

    if "/" in value:
        _validate_cidr(value)
        subnet = IsIpv4InSubnet(field, value)
        return Not(subnet) if negated else subnet
    if _is_ip_address(value):
        return Neq(field, value) if negated else Eq(field, value)
    if is_valid_ip_prefix(value):
        return NotLike(field, value) if negated else Like(field, value)

    raise InvalidIPError(ERR_MSG_INVALID_IP_VALUE.format(field=field, value=value))


# ---- Port fields ----

def validate_port(value: str) -> None:
    port = parse_int(value)
    if port is None:
        raise InvalidPortError(ERR_MSG_INVALID_PORT_VALUE.format(value=value))
    if port < MIN_PORT or port > MAX_PORT:
        raise InvalidPortError(
            ERR_MSG_PORT_OUT_OF_RANGE.format(port=port),
            f"port {port} outside [{MIN_PORT}, {MAX_PORT}]",
        )


def parse_port_field(field: str, operator: str, value: str) -> Expr:
    validate_port(value)
    return build_comparison(field, operator, value)


# ---- Protocol field ----

def parse_protocol_field(field: str, operator: str, value: str) -> Expr:
    """Build a protocol comparison, mapping acronyms to IANA numbers.

    Unknown names are compared as literal strings so custom protocol values
    still work.
    """
    number = parse_int(value)
    if number is None:
        number = PROTOCOL_NUMBERS.get(value.lower())
    if number is not None:
        return build_comparison(field, operator, str(number))
    return build_comparison(field, operator, value)


# ---- Numeric fields ----

def parse_numeric_field(field: str, operator: str, value: str) -> Expr:
    if parse_number(value) is None:
        raise InvalidNumericValueError(
            ERR_MSG_INVALID_NUMERIC_VALUE.format(field=field, value=value),
        )
    return build_comparison(field, operator, value)


# ---- String (unregistered) fields ----

def parse_string_field(field: str, operator: str, value: str) -> Expr:
    if operator in (OP_EQ, OP_NE):
        return _COMPARISON_NODES[operator](field, value)
    if operator in _PATTERN_NODES:
        return _PATTERN_NODES[operator](field, value)
    raise UnsupportedOperatorError(
        ERR_MSG_UNSUPPORTED_OPERATOR.format(kind="non-numeric", operator=operator),
    )


@dataclass(frozen=True)
class FieldType:
    """A field class: allowed operators, value validation and node builder."""

    name: str
    supported_operators: frozenset[str]
    parser: FieldParser
    value_validator: ValueValidator | None = None

    def parse(self, field: str, operator: str, value: str) -> Expr:
        """Validate operator and value, then build the expression.

        Raises:
            UnsupportedOperatorError: If the class does not allow the operator.
            InvalidValueError: If the value does not fit the class.
        """
        if operator not in self.supported_operators:
            raise UnsupportedOperatorError(
                ERR_MSG_UNSUPPORTED_OPERATOR.format(kind=self.name, operator=operator),
                f"{self.name} fields allow {sorted(self.supported_operators)}",
            )
        if self.value_validator is not None:
            self.value_validator(value)
        return self.parser(field, operator, value)


IP_TYPE = FieldType("ip", STRING_OPERATORS, parse_ip_field)
PORT_TYPE = FieldType("port", ORDERED_OPERATORS, parse_port_field, validate_port)
PROTOCOL_TYPE = FieldType("protocol", ORDERED_OPERATORS, parse_protocol_field)
NUMERIC_TYPE = FieldType("numeric", ORDERED_OPERATORS, parse_numeric_field)
STRING_TYPE = FieldType("non-numeric", STRING_OPERATORS, parse_string_field)
"""Implicit class of every field absent from a registry."""


class FieldRegistry(Mapping[str, FieldType]):
    """Immutable mapping from field name to field class.

    ``register_field`` returns a new registry, so registries built for
    different schemas or tests never affect each other.
    """

    def __init__(self, fields: Mapping[str, FieldType] | None = None) -> None:
        self._fields: Mapping[str, FieldType] = MappingProxyType(dict(fields or {}))

    def __getitem__(self, field: str) -> FieldType:
        return self._fields[field]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get_field_type(self, field: str) -> FieldType | None:
        return self._fields.get(field)

    def resolve(self, field: str) -> FieldType:
        """Return the field's class, or the string class if unregistered."""
        return self._fields.get(field, STRING_TYPE)

    def register_field(self, field: str, field_type: FieldType) -> FieldRegistry:
        fields = dict(self._fields)
        fields[field] = field_type
        return FieldRegistry(fields)


def _build_default_registry() -> FieldRegistry:
    fields: dict[str, FieldType] = {}
    for name in IP_FIELDS:
        fields[name] = IP_TYPE
    for name in PORT_FIELDS:
        fields[name] = PORT_TYPE
    for name in PROTOCOL_FIELDS:
        fields[name] = PROTOCOL_TYPE
    for name in NUMERIC_FIELDS:
        fields[name] = NUMERIC_TYPE
    return FieldRegistry(fields)


_DEFAULT_REGISTRY = _build_default_registry()


def default_registry() -> FieldRegistry:
    """Return the shared registry of built-in VPC flow-log field classes."""
    return _DEFAULT_REGISTRY
