"""Ordered, fail-fast step execution.

A mode pipeline is a list of named ``Step``s. ``run_steps`` executes them in
order and returns the first ``Err``; later steps never start.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from reltool.core.result import Err, Ok, Result
from reltool.output.console import ConsoleProtocol
from reltool.release.errors import ReleaseError

__all__ = ["Step", "StepAction", "run_steps"]

StepAction = Callable[[], Result[None, ReleaseError]]


@dataclass(frozen=True, slots=True)
class Step:
    """One pipeline step.

    Attributes:
        name: Progress line shown before the step runs (empty for none).
        action: Does the work; returns ``Err`` to abort the pipeline.
    """

    name: str
    action: StepAction


def run_steps(steps: Sequence[Step], console: ConsoleProtocol) -> Result[None, ReleaseError]:
    for step in steps:
        if step.name:
            console.info(step.name)
        result = step.action()
        if isinstance(result, Err):
            return result
    return Ok(None)
