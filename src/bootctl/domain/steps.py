"""Init step definitions and criticality rules.

A step's criticality decides what its failure does to the bootstrap run:
CRITICAL aborts it, OPTIONAL degrades the subsystem and carries on.

INVARIANT: Steps are immutable once registered.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

STEP_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9]*(?:[-_][a-z0-9]+)*$")

StepAction = Callable[[], Any]
StepGuard = Callable[[], bool]


class Criticality(StrEnum):
    """Whether a step's failure aborts the bootstrap sequence."""

    CRITICAL = "critical"
    OPTIONAL = "optional"


class StepStatus(StrEnum):
    """Outcome of a single step within one bootstrap run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_RUN = "not_run"


@dataclass(frozen=True)
class InitStep:
    """A named initialization step.

    Attributes:
        name: Unique step name (lowercase, ``-``/``_`` separated).
        criticality: CRITICAL aborts the run on failure; OPTIONAL does not.
        action: Zero-argument callable. Returning normally is success;
            raising, or returning a result object whose ``ok`` is False,
            is failure.
        guard: Optional predicate evaluated just before the action. When
            it returns False the step is skipped.
        description: Human-readable summary for listings.
    """

    name: str
    criticality: Criticality
    action: StepAction
    guard: StepGuard | None = None
    description: str = ""

    @property
    def is_critical(self) -> bool:
        return self.criticality is Criticality.CRITICAL


def is_valid_step_name(name: str) -> bool:
    """Check whether *name* is an acceptable step name."""
    return STEP_NAME_PATTERN.match(name) is not None


def parse_criticality(value: str | Criticality) -> Criticality:
    """Coerce a config value (case-insensitive) to :class:`Criticality`.

    Raises ValueError on unknown values.
    """
    if isinstance(value, Criticality):
        return value
    return Criticality(value.strip().lower())
