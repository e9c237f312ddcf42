"""Shared test fixtures."""

import pytest

from flowquery.fields import default_registry
from flowquery.schema import VPCFlowLogsSchema
from flowquery.schema.vpc_flow_logs import PARSE_PATTERN_V2, PARSE_PATTERN_V3, PARSE_PATTERN_V5

V2 = PARSE_PATTERN_V2
V3 = PARSE_PATTERN_V3
V5 = PARSE_PATTERN_V5


def clean(query: str) -> str:
    """Collapse newlines and runs of whitespace into single spaces."""
    return " ".join(query.split())


@pytest.fixture
def schema():
    return VPCFlowLogsSchema()


@pytest.fixture
def registry():
    return default_registry()
