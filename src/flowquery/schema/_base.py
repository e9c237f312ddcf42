"""Abstract base class for log schemas."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod


class SchemaName(enum.StrEnum):
    VPC_FLOW_LOGS = "vpc-flow-logs"


class Schema(ABC):
    """Abstract base class defining a log source's query schema.

    A schema knows which fields exist in each record version, how to extract
    them from the raw message (the ``parse`` clause), which fields are numeric
    and how computed fields expand. Implementations are immutable and may be
    shared freely.
    """

    # --- Versions ---

    @abstractmethod
    def get_default_version(self) -> int: ...

    @abstractmethod
    def validate_version(self, version: int) -> None:
        """Raise InvalidVersionError if the version is not supported."""

    @abstractmethod
    def get_parse_pattern(self, version: int) -> str:
        """Return the ``parse`` clause for a version.

        Raises:
            InvalidVersionError: If the version has no parse pattern.
        """

    # --- Fields ---

    @abstractmethod
    def validate_field(self, field: str, version: int) -> None:
        """Raise InvalidFieldError if the field is not valid for the version."""

    @abstractmethod
    def is_numeric(self, field: str) -> bool: ...

    @abstractmethod
    def get_computed_field_expression(self, field: str, version: int) -> str:
        """Return the query expression for a computed field.

        An empty string means the field is stored in the record and is used
        by name.
        """
