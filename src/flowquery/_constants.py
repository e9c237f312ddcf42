"""Limits and defaults for flow-log query compilation."""

MIN_PORT = 0
MAX_PORT = 65535
"""Inclusive bounds for srcport/dstport values."""

MAX_IP_OCTET = 255
MAX_IP_PARTS = 4
"""Bounds for dotted IPv4 prefixes such as ``10.0``."""

DEFAULT_SCHEMA_VERSION = 2
"""VPC Flow Logs version used when none is requested."""

DEFAULT_LIMIT = 100
"""Result limit of a freshly created builder."""

DEFAULT_COMMAND_LIMIT = 20
"""Result limit used by the command-options layer when none is given."""

COUNT_ALIAS = "flows"
"""Alias of the ``count(*)`` aggregation."""

WILDCARD_FIELD = "*"
