"""
Task registry: folding ordered contributors into resolved tasks.

Contributors
- A Contributor is an identity (a plugin id, or None for the user's own
  configuration) plus the task definitions and global options it declares.
- resolve() processes contributors strictly in the given order; configuration
  is expected last. There is no re-ordering and no dependency inference.

Fold
- Global options of every contributor are registered first; a name declared
  twice fails with GlobalParameterAlreadyDefinedError.
- Parameter and global option names are compared by their command-line
  spelling (kebab-case), so param_one and paramOne are the same name.
- Definitions are then folded one by one into immutable per-task states:
  • NEW / EMPTY: fails on an empty id, an id that is already registered, a
    subtask whose parent is not registered yet, or a parameter named like a
    global option of another contributor.
  • OVERRIDE: fails when the target is not registered yet, when an added
    parameter already exists in the merged schema, or when it is named like a
    global option of another contributor. On success the next state carries
    the appended action, the merged parameters and, when the override has a
    non-empty description, the new description.
- Any failure aborts the whole resolve; no partial registry is produced.

Result
- Task objects are materialized once the fold is complete, subtasks are
  attached to their parents, and the Registry exposes lookups by id, the root
  tasks (single segment ids, registration order) and every task.
"""
import logging
from collections.abc import Iterable, Sequence
from types import MappingProxyType
from typing import NamedTuple

from .arguments import GlobalOption
from .chain import Invocation
from .definitions import NewTaskDefinition, TaskOverrideDefinition, EmptyTaskDefinition, format_id
from .actions import EMPTY, load_action
from .faults import (
    EmptyTaskIdError,
    TaskAlreadyDefinedError,
    SubtaskWithoutParentError,
    TaskParameterAlreadyDefinedError,
    TaskOverrideParameterAlreadyDefinedError,
    TaskNotFoundError,
    GlobalParameterAlreadyDefinedError,
)
from .utils import kebab

logger = logging.getLogger(__name__)


class Contributor(NamedTuple):
    identity: str | None
    tasks: tuple = ()
    global_options: tuple = ()


class ActionEntry(NamedTuple):
    action: object
    identity: str | None


class _TaskState(NamedTuple):
    id: tuple
    descr: str
    identity: str | None
    named_parameters: MappingProxyType
    positional_parameters: tuple
    actions: tuple


def _actor(identity, /):
    return "your configuration" if identity is None else f"plugin {identity!r}"


class Task:
    """
    A resolved task; read-only once the registry is built.

    Attributes
    - id: tuple of segments; name is its last segment.
    - descr: description after overrides.
    - identity: contributor of the original definition (None for configuration).
    - named_parameters: name → Option | Flag (original first, then override-added).
    - positional_parameters: tuple of Cardinal, optionally ending with a Variadic.
    - actions: tuple of ActionEntry, original first.
    - parent / subtasks: hierarchy links; root is True for single segment ids.
    """

    def __init__(self, state, environment=None, /):
        self._state = state
        self._environment = environment
        self._parent = None
        self._subtasks = {}
        self._callbacks = {}

    def _attach_to_parent(self, parent, /):
        self._parent = parent
        parent._subtasks.setdefault(self.name, self)

    @property
    def id(self):
        return self._state.id

    @property
    def name(self):
        return self._state.id[-1]

    @property
    def descr(self):
        return self._state.descr

    @property
    def identity(self):
        return self._state.identity

    @property
    def named_parameters(self):
        return self._state.named_parameters

    @property
    def positional_parameters(self):
        return self._state.positional_parameters

    @property
    def actions(self):
        return self._state.actions

    @property
    def parent(self):
        return self._parent

    @property
    def subtasks(self):
        return MappingProxyType(self._subtasks)

    @property
    def root(self):
        return len(self._state.id) == 1

    @property
    def empty(self):
        """True for an empty task that no override has given an action."""
        return len(self._state.actions) == 1 and self._state.actions[0].action is EMPTY

    def load_action(self, index, /):
        """
        Callable of actions[index]; references are resolved once and cached.
        """
        try:
            return self._callbacks[index]
        except KeyError:
            callback = self._callbacks[index] = load_action(self._state.actions[index].action, task=format_id(self.id))
            return callback

    async def run(self, arguments=None, /, *, coerce=False):
        """
        Run the task with the given raw arguments and return the chain result.

        See Invocation.run() for the faults it can raise.
        """
        return await Invocation(self, arguments, self._environment, coerce=coerce).run()

    def __repr__(self):
        return f"task({format_id(self.id)!r}, actions={len(self.actions)})"


class Registry:
    """
    Read-only view over the resolved tasks, keyed by id tuple.
    """

    def __init__(self, tasks, global_options, /):
        self._tasks = MappingProxyType(dict(tasks))
        self._global_options = MappingProxyType(dict(global_options))

    @property
    def tasks(self):
        return self._tasks

    @property
    def root_tasks(self):
        return MappingProxyType({id[0]: task for id, task in self._tasks.items() if task.root})

    @property
    def global_options(self):
        return self._global_options

    def get_task(self, id, /):
        """
        Look a task up by id ("name" or a sequence of segments).

        Raises
        - TaskNotFoundError: no task has this id (an empty id included).
        - TypeError: id is neither a string nor a sequence of strings.
        """
        if isinstance(id, str):
            key = (id,) if id else ()
        elif isinstance(id, Sequence):
            key = tuple(id)
        else:
            raise TypeError("get_task() argument must be a string or a sequence of strings")
        try:
            return self._tasks[key]
        except (KeyError, TypeError):
            raise TaskNotFoundError(
                f"task {format_id(key)!r} not found",
                task=format_id(key),
            ) from None

    def __len__(self):
        return len(self._tasks)

    def __iter__(self):
        return iter(self._tasks)

    def __contains__(self, id):
        if isinstance(id, str):
            id = (id,)
        return tuple(id) in self._tasks if isinstance(id, Iterable) else False

    def __repr__(self):
        return f"registry(tasks={len(self._tasks)}, global_options={len(self._global_options)})"


def _check_global(globals, name, identity, id, /):
    if (entry := globals.get(kebab(name))) is not None and entry[1] != identity:
        raise TaskParameterAlreadyDefinedError(
            f"{_actor(identity)} cannot define parameter {name!r} in task {format_id(id)!r},"
            f" {_actor(entry[1])} already defines the global option {entry[0].name!r}",
            task=format_id(id),
            parameter=name,
            actor=identity,
            owner=entry[1],
        )


def _register(states, globals, definition, identity, /):
    id = definition.id
    if not id:
        raise EmptyTaskIdError("task id cannot be empty", task="", actor=identity)
    if (existing := states.get(id)) is not None:
        raise TaskAlreadyDefinedError(
            f"{_actor(identity)} cannot define task {format_id(id)!r},"
            f" it is already defined by {_actor(existing.identity)}",
            task=format_id(id),
            actor=identity,
            owner=existing.identity,
        )
    if len(id) > 1 and id[:-1] not in states:
        raise SubtaskWithoutParentError(
            f"subtask {format_id(id)!r} needs its parent task {format_id(id[:-1])!r} to be defined first",
            task=format_id(id[:-1]),
            subtask=format_id(id),
            actor=identity,
        )
    for parameter in (*definition.named_parameters.values(), *definition.positional_parameters):
        _check_global(globals, parameter.name, identity, id)

    states[id] = _TaskState(
        id,
        definition.descr,
        identity,
        MappingProxyType(dict(definition.named_parameters)),
        tuple(definition.positional_parameters),
        (ActionEntry(definition.action, identity),),
    )
    logger.debug("registered %s task %r from %s", definition.kind, format_id(id), _actor(identity))


def _override(states, globals, definition, identity, /):
    id = definition.id
    if (state := states.get(id)) is None:
        raise TaskNotFoundError(
            f"{_actor(identity)} cannot override task {format_id(id)!r}, it is not defined",
            task=format_id(id),
            actor=identity,
        )
    taken = {kebab(name) for name in (*state.named_parameters, *(parameter.name for parameter in state.positional_parameters))}
    for name in definition.named_parameters:
        if kebab(name) in taken:
            raise TaskOverrideParameterAlreadyDefinedError(
                f"{_actor(identity)} cannot add parameter {name!r} to task {format_id(id)!r}, it is already defined",
                task=format_id(id),
                parameter=name,
                actor=identity,
            )
        _check_global(globals, name, identity, id)

    states[id] = state._replace(
        descr=definition.descr or state.descr,
        named_parameters=MappingProxyType(dict(state.named_parameters) | dict(definition.named_parameters)),
        actions=state.actions + (ActionEntry(definition.action, identity),),
    )
    logger.debug("registered override of task %r from %s (%d actions)", format_id(id), _actor(identity), len(state.actions) + 1)


def _sanitize_contributor(contributor, /):
    if not isinstance(contributor, Contributor):
        raise TypeError(f"resolve() contributors must be Contributor records, got {type(contributor).__name__!r}")
    if not isinstance(contributor.identity, str | None):
        raise TypeError("contributor identity must be a string or None")
    for option in contributor.global_options:
        if not isinstance(option, GlobalOption):
            raise TypeError(f"contributor global options must be global-option specs, got {option!r}")
    return contributor


def resolve(contributors=(), /, environment=None):
    """
    Fold ordered contributors into a Registry.

    Parameters
    - contributors: Iterable[Contributor], plugins in load order then the
      configuration (identity None).
    - environment: opaque object later handed to every action.

    Raises
    - RegistrationError subclasses (and EmptyTaskIdError) on conflicts.
    - TypeError: malformed contributors or definitions of an unknown kind.
    """
    contributors = tuple(map(_sanitize_contributor, contributors))

    globals = {}
    for contributor in contributors:
        for option in contributor.global_options:
            if (entry := globals.get(kebab(option.name))) is not None:
                raise GlobalParameterAlreadyDefinedError(
                    f"{_actor(contributor.identity)} cannot define global option {option.name!r},"
                    f" {_actor(entry[1])} already defines {entry[0].name!r}",
                    parameter=option.name,
                    actor=contributor.identity,
                    owner=entry[1],
                )
            globals[kebab(option.name)] = (option, contributor.identity)

    states = {}
    for contributor in contributors:
        for definition in contributor.tasks:
            match definition:
                case NewTaskDefinition() | EmptyTaskDefinition():
                    _register(states, globals, definition, contributor.identity)
                case TaskOverrideDefinition():
                    _override(states, globals, definition, contributor.identity)
                case _:
                    raise TypeError(f"unknown task definition {definition!r}")

    tasks = {}
    for id, state in states.items():
        tasks[id] = Task(state, environment)
        if len(id) > 1:
            tasks[id]._attach_to_parent(tasks[id[:-1]])

    logger.debug("resolved %d tasks from %d contributors", len(tasks), len(contributors))
    return Registry(tasks, {option.name: option for option, _ in globals.values()})


__all__ = (
    "Contributor",
    "ActionEntry",
    "Task",
    "Registry",
    "resolve",
)
