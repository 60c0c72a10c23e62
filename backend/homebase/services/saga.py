"""Saga — ordered {action, compensation} steps unwound on failure.

Invariants:
    - Steps run strictly in order; each awaits the previous (no parallelism)
    - On a failing step, compensations of COMPLETED steps run in reverse order
    - The failing step itself is never compensated (it did not complete)
    - A failing compensation is logged at CRITICAL and recorded, never raised:
      the original step error is what propagates
    - A step may be marked non-fatal: its failure is logged, recorded and skipped

Design Decisions:
    - Explicit compensation over a DB transaction: the DataStore contract commits per
      call (backend-as-a-service semantics), so atomicity has to be rebuilt by hand
    - Step results kept by name so later steps read earlier outputs (e.g. household id)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

StepResults = dict[str, Any]
Action = Callable[[StepResults], Awaitable[Any]]
Compensation = Callable[[StepResults], Awaitable[None]]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensation: Compensation | None = None
    fatal: bool = True


@dataclass
class StepFailure:
    step: str
    error: BaseException


@dataclass
class Saga:
    """Run steps; on fatal failure unwind completed steps, then re-raise."""
    name: str
    steps: list[SagaStep] = field(default_factory=list)
    results: StepResults = field(default_factory=dict)
    completed: list[str] = field(default_factory=list)
    skipped: list[StepFailure] = field(default_factory=list)
    compensation_failures: list[StepFailure] = field(default_factory=list)

    def add_step(
        self,
        name: str,
        action: Action,
        compensation: Compensation | None = None,
        *,
        fatal: bool = True,
    ) -> "Saga":
        self.steps.append(SagaStep(name, action, compensation, fatal))
        return self

    @property
    def rollback_failed(self) -> bool:
        return bool(self.compensation_failures)

    async def execute(self) -> StepResults:
        for step in self.steps:
            try:
                self.results[step.name] = await step.action(self.results)
            except Exception as e:
                if not step.fatal:
                    logger.warning(
                        f"Saga {self.name}: non-fatal step '{step.name}' failed: {e}",
                        extra={"step": step.name},
                    )
                    self.skipped.append(StepFailure(step.name, e))
                    continue
                logger.error(
                    f"Saga {self.name}: step '{step.name}' failed: {e}",
                    extra={"step": step.name},
                )
                await self._compensate()
                raise
            self.completed.append(step.name)
        return self.results

    async def _compensate(self) -> None:
        by_name = {s.name: s for s in self.steps}
        for name in reversed(self.completed):
            step = by_name[name]
            if step.compensation is None:
                continue
            try:
                await step.compensation(self.results)
            except Exception as e:
                logger.critical(
                    f"Saga {self.name}: compensation for '{name}' failed: {e}",
                    extra={"step": name},
                    exc_info=True,
                )
                self.compensation_failures.append(StepFailure(name, e))
