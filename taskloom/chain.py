"""
Execution chain of a task and the per-invocation state machine.

Chain
- task.actions[0] is the original action, task.actions[i > 0] the overrides in
  registration order. One invoker is bound per action, indexed oldest → newest,
  and the chain starts at the last one.
- the original action is called as action(arguments, environment).
- an override is called as action(arguments, environment, run_super), where
  run_super is an async delegate bound to invoker i - 1. run_super() forwards
  the same arguments; run_super(narrowed) forwards the given mapping as-is.
- the EMPTY placeholder of an overridden empty task does nothing.
- actions may be plain functions or coroutine functions; awaitable results
  are awaited, so the chain result is always a plain value.

Invocation
    PENDING → VALIDATING → FAILED_VALIDATION
                         → RUNNING → FAILED_RUNTIME
                                   → COMPLETED
  VALIDATING covers the empty-task check and argument resolution, so a
  validation failure never reaches RUNNING. Exceptions raised by actions
  propagate unchanged.
"""
import inspect
import logging
from collections.abc import Mapping
from enum import StrEnum

from .actions import EMPTY
from .binding import resolve_arguments
from .definitions import format_id
from .faults import EmptyTaskError
from .utils import Unset, coalesce, rename

logger = logging.getLogger(__name__)


async def _settle(result, /):
    if inspect.isawaitable(result):
        return await result
    return result


class Chain:
    """
    Bound invokers of one task for one invocation.

    loader(index) returns the callable of task.actions[index]; the task passes
    its own cached loader so references resolve once per task.
    """

    def __init__(self, task, environment, loader, /):
        self._task = task
        self._environment = environment
        self._loader = loader
        self._invokers = tuple(map(self._bind, range(len(task.actions))))

    def _bind(self, index, /):
        if self._task.actions[index].action is EMPTY:
            async def invoker(arguments):
                return None
            return rename(invoker, "empty")

        if index == 0:
            async def invoker(arguments):
                callback = self._loader(index)
                return await _settle(callback(arguments, self._environment))
            return rename(invoker, "original")

        async def invoker(arguments):
            callback = self._loader(index)

            @rename("run_super")
            async def run_super(narrowed=Unset, /):
                if narrowed is not Unset and not isinstance(narrowed, Mapping):
                    raise TypeError(f"run_super() argument must be a mapping, got {type(narrowed).__name__!r}")
                logger.debug("task %r delegates from action %d to action %d", format_id(self._task.id), index, index - 1)
                return await self._invokers[index - 1](coalesce(narrowed, arguments))

            return await _settle(callback(arguments, self._environment, run_super))
        return rename(invoker, f"override{index}")

    async def __call__(self, arguments, /):
        return await self._invokers[-1](arguments)


class InvocationState(StrEnum):
    PENDING = "pending"
    VALIDATING = "validating"
    FAILED_VALIDATION = "failed-validation"
    RUNNING = "running"
    FAILED_RUNTIME = "failed-runtime"
    COMPLETED = "completed"


_TRANSITIONS = {
    InvocationState.PENDING: {InvocationState.VALIDATING},
    InvocationState.VALIDATING: {InvocationState.FAILED_VALIDATION, InvocationState.RUNNING},
    InvocationState.RUNNING: {InvocationState.FAILED_RUNTIME, InvocationState.COMPLETED},
}


class Invocation:
    """
    One run of one task; single use.

    Parameters
    - task: the resolved Task.
    - arguments: raw argument mapping (or None).
    - environment: opaque object handed to every action.
    - coerce: parse string values before validation (command-line input).
    """

    def __init__(self, task, arguments=None, environment=None, /, *, coerce=False):
        self._task = task
        self._arguments = arguments
        self._environment = environment
        self._coerce = bool(coerce)
        self._state = InvocationState.PENDING

    @property
    def task(self):
        return self._task

    @property
    def state(self):
        return self._state

    def _advance(self, state, /):
        if state not in _TRANSITIONS.get(self._state, ()):
            raise RuntimeError(f"invocation cannot move from {self._state} to {state}")
        logger.debug("task %r invocation: %s → %s", format_id(self._task.id), self._state, state)
        self._state = state

    async def run(self):
        """
        Validate the arguments and run the chain; returns the chain result.

        Raises
        - EmptyTaskError: the task is an empty task that was never overridden.
        - ValidationError subclasses: see resolve_arguments().
        - InvalidActionUrlError / InvalidActionError: an action reference
          cannot be resolved.
        - anything raised by the actions themselves.
        """
        self._advance(InvocationState.VALIDATING)
        try:
            if self._task.empty:
                raise EmptyTaskError(
                    f"task {format_id(self._task.id)!r} is empty and cannot be run",
                    task=format_id(self._task.id),
                )
            arguments = resolve_arguments(self._task, self._arguments, coerce=self._coerce)
        except BaseException:
            self._advance(InvocationState.FAILED_VALIDATION)
            raise

        self._advance(InvocationState.RUNNING)
        try:
            result = await Chain(self._task, self._environment, self._task.load_action)(arguments)
        except BaseException:
            self._advance(InvocationState.FAILED_RUNTIME)
            raise
        self._advance(InvocationState.COMPLETED)
        return result


__all__ = (
    "Chain",
    "InvocationState",
    "Invocation",
)
