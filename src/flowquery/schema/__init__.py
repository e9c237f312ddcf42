"""Log schemas describing fields, versions and computed fields."""

from flowquery.schema._base import Schema, SchemaName
from flowquery.schema.vpc_flow_logs import VPCFlowLogsSchema

__all__ = [
    "Schema",
    "SchemaName",
    "VPCFlowLogsSchema",
    "get_schema",
]

_REGISTRY: dict[str, type[Schema]] = {
    SchemaName.VPC_FLOW_LOGS: VPCFlowLogsSchema,
}


def get_schema(name: str) -> Schema:
    """Get a schema instance by name.

    Args:
        name: Schema name (e.g., "vpc-flow-logs").

    Returns:
        A Schema instance.

    Raises:
        ValueError: If the schema name is unknown.
    """
    cls = _REGISTRY.get(name)
    if cls is None:
        raise ValueError(
            f"unknown schema: {name!r}. "
            f"Available: {', '.join(sorted(_REGISTRY))}"
        )
    return cls()
