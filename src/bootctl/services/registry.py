"""SubsystemRegistry — ordered, build-then-freeze table of init steps.

Order is dependency order as configured. Nothing re-sorts it.

INVARIANT: Step names are unique; the registry is read-only once frozen.
"""

from __future__ import annotations

from collections.abc import Iterator

from bootctl.domain.steps import (
    Criticality,
    InitStep,
    StepAction,
    StepGuard,
    is_valid_step_name,
)
from bootctl.errors import ConfigurationError


class SubsystemRegistry:
    """Ordered sequence of :class:`InitStep`.

    Usage::

        registry = SubsystemRegistry()
        registry.add("state-store", open_db, criticality=Criticality.CRITICAL)
        registry.add("cache", warm_cache)
        registry.freeze()
    """

    def __init__(self, steps: list[InitStep] | None = None) -> None:
        self._steps: list[InitStep] = []
        self._names: set[str] = set()
        self._frozen = False
        for step in steps or []:
            self.register(step)

    def register(self, step: InitStep) -> InitStep:
        """Append *step*. Raises ConfigurationError on duplicates or when frozen."""
        if self._frozen:
            msg = f"Cannot register {step.name!r}: registry is frozen"
            raise ConfigurationError(msg)
        if not is_valid_step_name(step.name):
            msg = f"Invalid step name: {step.name!r}"
            raise ConfigurationError(msg)
        if step.name in self._names:
            msg = f"Duplicate step name: {step.name!r}"
            raise ConfigurationError(msg)
        if not callable(step.action):
            msg = f"Step {step.name!r} has a non-callable action"
            raise ConfigurationError(msg)
        self._steps.append(step)
        self._names.add(step.name)
        return step

    def add(
        self,
        name: str,
        action: StepAction,
        *,
        criticality: Criticality = Criticality.OPTIONAL,
        guard: StepGuard | None = None,
        description: str = "",
    ) -> InitStep:
        """Build an :class:`InitStep` and register it."""
        return self.register(
            InitStep(
                name=name,
                criticality=criticality,
                action=action,
                guard=guard,
                description=description,
            )
        )

    def freeze(self) -> SubsystemRegistry:
        """Make the registry read-only. Idempotent; returns self."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def steps(self) -> tuple[InitStep, ...]:
        """The registered steps in execution order."""
        return tuple(self._steps)

    def names(self) -> list[str]:
        return [s.name for s in self._steps]

    def get(self, name: str) -> InitStep | None:
        for step in self._steps:
            if step.name == name:
                return step
        return None

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[InitStep]:
        return iter(self.steps())

    def __contains__(self, name: object) -> bool:
        return name in self._names
