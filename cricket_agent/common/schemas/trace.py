"""
Per-request execution trace.

An ``ExecutionTrace`` is created for each question and handed to every
pipeline stage, which appends exactly one step. It is returned with the
response and never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Tuple


@dataclass(frozen=True)
class TraceStep:
    step_id: str
    step_name: str
    used_external_model: bool
    input: Any
    output: Any
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stepId": self.step_id,
            "stepName": self.step_name,
            "usedExternalModel": self.used_external_model,
            "input": self.input,
            "output": self.output,
            "timestamp": self.timestamp.isoformat(),
        }


class ExecutionTrace:
    """Append-only, ordered log of pipeline steps"""

    def __init__(self) -> None:
        self._steps: List[TraceStep] = []

    def record(
        self,
        step_name: str,
        *,
        used_external_model: bool,
        input: Any = None,
        output: Any = None,
    ) -> TraceStep:
        step = TraceStep(
            step_id=str(len(self._steps) + 1),
            step_name=step_name,
            used_external_model=used_external_model,
            input=input,
            output=output,
        )
        self._steps.append(step)
        return step

    @property
    def steps(self) -> Tuple[TraceStep, ...]:
        return tuple(self._steps)

    @property
    def step_names(self) -> List[str]:
        return [s.step_name for s in self._steps]

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[TraceStep]:
        return iter(self._steps)

    def summary(self) -> Dict[str, Any]:
        """Step counts and wall time between first and last step"""
        elapsed_ms = 0
        if self._steps:
            delta = self._steps[-1].timestamp - self._steps[0].timestamp
            elapsed_ms = int(delta.total_seconds() * 1000)
        return {
            "totalSteps": len(self._steps),
            "modelSteps": sum(1 for s in self._steps if s.used_external_model),
            "executionTimeMs": elapsed_ms,
        }

    def to_list(self) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in self._steps]
