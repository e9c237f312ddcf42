"""Query verbs: raw record listing and the stats aggregations."""

from __future__ import annotations

import enum

from flowquery._errors import InvalidVerbError


class Verb(enum.StrEnum):
    RAW = "raw"
    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"

    @property
    def is_aggregation(self) -> bool:
        return self is not Verb.RAW

    @property
    def stat_function(self) -> str:
        """Name of the ``stats`` function, e.g. ``sum``."""
        if self is Verb.RAW:
            raise InvalidVerbError(
                "raw verb has no stats function",
                "stat_function requested for Verb.RAW",
            )
        return self.value


def parse_verb(text: str) -> Verb:
    """Convert a verb word, in any case, to a Verb.

    Raises:
        InvalidVerbError: If the word is not a known verb.
    """
    try:
        return Verb(text.strip().lower())
    except ValueError as exc:
        raise InvalidVerbError(
            f"unknown verb: {text}",
            f"available verbs: {', '.join(v.value for v in Verb)}",
            wrapped=exc,
        ) from exc
