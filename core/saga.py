"""
Minimal saga runner for multi-step writes that span the identity store and
profile/invitation rows.

Each step is an action plus an optional compensation. Steps run in order;
if one raises, the compensations of the already-completed steps run in
reverse order and a single SagaFailed is raised. A compensation that itself
fails is logged and skipped.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class SagaFailed(Exception):
    """Raised when a saga step fails; carries the failing step name and cause."""

    def __init__(self, step: str, cause: Exception, compensation_errors=None):
        self.step = step
        self.cause = cause
        self.compensation_errors = compensation_errors or []
        super().__init__(f'{step} failed: {cause}')


@dataclass
class SagaStep:
    name: str
    action: Callable[[dict], Any]
    compensation: Optional[Callable[[dict], None]] = None


@dataclass
class Saga:
    """
    Usage:
        saga = Saga()
        saga.add_step('create_identity', create_user, delete_user)
        context = saga.run({'email': ...})

    Every action receives the shared context dict and may store its result
    in it (the return value is also stored under context[step.name]).
    """
    steps: List[SagaStep] = field(default_factory=list)

    def add_step(self, name, action, compensation=None):
        self.steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    def run(self, context=None):
        context = {} if context is None else context
        completed = []
        for step in self.steps:
            try:
                context[step.name] = step.action(context)
            except Exception as exc:
                logger.error('Saga step %s failed: %s', step.name, exc)
                errors = self._compensate(completed, context)
                raise SagaFailed(step.name, exc, errors) from exc
            completed.append(step)
        return context

    def _compensate(self, completed, context):
        errors = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation(context)
                logger.info('Saga compensation %s done', step.name)
            except Exception as exc:
                logger.exception('Saga compensation %s failed: %s', step.name, exc)
                errors.append((step.name, exc))
        return errors
