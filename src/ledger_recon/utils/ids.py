"""Identifier and clock sources used by the pipeline.

The engine never calls ``uuid4`` or ``datetime.now`` directly; it asks an
``IdFactory`` instead so that a run can be replayed with predictable ids.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from itertools import count
from typing import Optional
import uuid


class IdFactory(ABC):
    """Produces unique identifiers and timestamps for one or more runs."""

    @abstractmethod
    def new_id(self, prefix: str) -> str:
        """Return a fresh identifier starting with ``prefix``."""
        pass

    def now(self) -> datetime:
        return datetime.now()


class UuidIdFactory(IdFactory):
    """Default source: prefix plus a random uuid4 suffix."""

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"


class SequentialIdFactory(IdFactory):
    """
    Deterministic source for tests and golden-output comparisons.

    Ids are ``{prefix}-{n}`` with a counter shared across prefixes, and
    ``now()`` always returns the fixed timestamp it was built with.
    """

    def __init__(self, fixed_time: Optional[datetime] = None):
        self._counter = count(1)
        self._fixed_time = fixed_time or datetime(2024, 1, 1, 9, 0, 0)

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"

    def now(self) -> datetime:
        return self._fixed_time
