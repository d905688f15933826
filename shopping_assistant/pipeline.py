from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger("shopassist.pipeline")

ContextT = TypeVar("ContextT")


@dataclass
class Step(Generic[ContextT]):
    """Named step of a message pipeline."""
    name: str
    fn: Callable[[ContextT], None]
    skip_if: Optional[Callable[[ContextT], bool]] = None


class StepRunner(Generic[ContextT]):
    """Runs steps in order against one mutable context."""

    def __init__(self, steps: List[Step[ContextT]]) -> None:
        """Purpose: Initialize the runner with an ordered list of steps.
        Inputs/Outputs: Input is a list of Step; no return value.
        Side Effects / State: Stores the step list for later execution.
        Failure Modes: None; assumes valid callables in steps.
        Testing Notes: Provide a minimal step list and ensure order is preserved.
        """
        self._steps = steps

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self._steps]

    def run(self, context: ContextT) -> None:
        """Purpose: Execute steps in order, honoring skip_if guards.
        Inputs/Outputs: Input is a mutable context object; no return value.
        Side Effects / State: Invokes step functions that may mutate context.
        Failure Modes: Exceptions in step functions propagate and stop the run.
        If Removed: Chat messages cannot be processed.
        Testing Notes: Verify skip_if short-circuits a step and later steps still run.
        """
        for step in self._steps:
            if step.skip_if and step.skip_if(context):
                logger.debug("step=%s skipped", step.name)
                continue
            step.fn(context)
