"""
Best-effort saga orchestration for cascade deletions

A saga is an ordered list of named steps. Optional steps that fail are
logged and recorded but do not stop the steps after them; a failing
required step marks the whole saga as failed. There is no compensation
and no automatic retry: a cascade is at-least-attempted, and the per-step
record on the returned ``SagaTransaction`` is what callers inspect.
"""

import logging
from typing import List, Dict, Any, Callable, Awaitable, Optional
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone
import uuid

from waitlist_lottery.core.metrics import CASCADE_STEPS


logger = logging.getLogger(__name__)


class SagaStatus(str, Enum):
    """Saga execution status"""
    STARTED = "started"
    EXECUTING = "executing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class StepStatus(str, Enum):
    """Individual step status"""
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


StepAction = Callable[[Dict[str, Any]], Awaitable[Any]]


class StepIncomplete(Exception):
    """Raised by a step whose per-item work partly failed"""

    def __init__(self, step: str, failures: Dict[str, str]):
        self.step = step
        self.failures = failures
        super().__init__(f"{len(failures)} item(s) failed in step {step}")


@dataclass
class SagaStep:
    """
    Individual step in a saga
    """
    name: str
    action: StepAction
    required: bool = False
    status: StepStatus = StepStatus.PENDING
    result: Any = None
    error: Optional[Exception] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # Context data merged over the saga context when the action runs
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "required": self.required,
            "status": self.status.value,
            "error": str(self.error) if self.error else None,
            "failures": getattr(self.error, "failures", None),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass
class SagaTransaction:
    """
    A complete saga with all steps and their outcomes
    """
    saga_id: str
    name: str
    steps: List[SagaStep] = field(default_factory=list)
    status: SagaStatus = SagaStatus.STARTED
    context: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    error: Optional[Exception] = None
    children: List["SagaTransaction"] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status in (SagaStatus.COMPLETED, SagaStatus.PARTIAL)

    @property
    def failed_steps(self) -> List[SagaStep]:
        return [step for step in self.steps if step.status == StepStatus.FAILED]

    def step(self, name: str) -> SagaStep:
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "saga_id": self.saga_id,
            "name": self.name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": str(self.error) if self.error else None,
            "steps": [step.to_dict() for step in self.steps],
            "children": [child.to_dict() for child in self.children],
        }


class SagaOrchestrator:
    """
    Runs saga steps in order and records each outcome
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def create_saga(self, name: str, context: Dict[str, Any] = None) -> SagaTransaction:
        """Create a new saga"""
        return SagaTransaction(
            saga_id=str(uuid.uuid4()),
            name=name,
            context=context or {}
        )

    def add_step(
        self,
        saga: SagaTransaction,
        name: str,
        action: StepAction,
        required: bool = False,
        context: Dict[str, Any] = None
    ) -> SagaStep:
        """Add a step to the saga"""
        step = SagaStep(
            name=name,
            action=action,
            required=required,
            context=context or {}
        )
        saga.steps.append(step)
        return step

    async def execute_saga(self, saga: SagaTransaction) -> SagaTransaction:
        """
        Execute every step in order.

        Optional step failures leave the saga PARTIAL. A required step
        failure marks it FAILED and the remaining steps SKIPPED.
        """
        self.logger.info(f"Starting saga execution: {saga.name} ({saga.saga_id})")
        saga.status = SagaStatus.EXECUTING

        for index, step in enumerate(saga.steps):
            success = await self._execute_step(saga, step)
            if success or not step.required:
                continue

            saga.status = SagaStatus.FAILED
            saga.error = step.error
            for remaining in saga.steps[index + 1:]:
                remaining.status = StepStatus.SKIPPED
                self._record(saga, remaining)
            break

        if saga.status != SagaStatus.FAILED:
            saga.status = SagaStatus.PARTIAL if saga.failed_steps else SagaStatus.COMPLETED

        saga.completed_at = datetime.now(timezone.utc)
        log = self.logger.info if saga.status == SagaStatus.COMPLETED else self.logger.warning
        log(f"Saga {saga.name} finished with status {saga.status.value}")
        return saga

    async def _execute_step(self, saga: SagaTransaction, step: SagaStep) -> bool:
        """Execute a single step once"""
        step.status = StepStatus.EXECUTING
        step.started_at = datetime.now(timezone.utc)

        try:
            self.logger.debug(f"Executing step {step.name}")
            step.result = await step.action({**saga.context, **step.context})
            step.status = StepStatus.COMPLETED
            self.logger.info(f"Step {step.name} completed successfully")
            return True

        except Exception as e:
            step.status = StepStatus.FAILED
            step.error = e
            self.logger.error(
                f"Step {step.name} of saga {saga.name} failed: {e}",
                extra={"saga_id": saga.saga_id, "step": step.name}
            )
            return False

        finally:
            step.finished_at = datetime.now(timezone.utc)
            self._record(saga, step)

    def _record(self, saga: SagaTransaction, step: SagaStep) -> None:
        CASCADE_STEPS.labels(cascade=saga.name, step=step.name, status=step.status.value).inc()


# Global saga orchestrator instance
saga_orchestrator = SagaOrchestrator()
