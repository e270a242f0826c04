"""
Fluent builders for task definitions.

Each builder validates the shape of one definition while it is assembled, so
malformed definitions fail where they are written rather than when the
registry is built:
- ids are a non-empty string or a non-empty sequence of non-empty strings;
- parameter names are unique within the definition, across every kind, and
  so are their command-line spellings (param_one and paramOne clash);
- a variadic parameter is the last positional one, and there is at most one;
- NEW and OVERRIDE definitions need exactly one action.

    >>> from taskloom import task, override, empty
    >>> compile = (
    ...     task("compile", "compile the sources")
    ...     .option("target", type="file", default="out")
    ...     .flag("quiet")
    ...     .variadic("sources", type="file")
    ...     .action(lambda arguments, environment: ...)
    ...     .build()
    ... )
    >>> tools = empty("tools", "helper tasks").build()

A positional parameter without a default declared after one with a default is
accepted, but RequiredAfterOptionalWarning is emitted: values are matched in
order, so the optional parameter can never actually be omitted.
"""
import warnings
from collections.abc import Iterable
from types import MappingProxyType

from .actions import as_action
from .arguments import Option, Flag, Cardinal, Variadic
from .definitions import NewTaskDefinition, TaskOverrideDefinition, EmptyTaskDefinition, format_id
from .faults import (
    EmptyTaskIdError,
    DuplicatedParameterNameError,
    MissingActionError,
    PositionalAfterVariadicError,
    RequiredAfterOptionalWarning,
)
from .utils import Unset, kebab


def _sanitize_id(id, /):
    """
    Internal: normalize a task id into a tuple of segments.

    Raises
    - TypeError: id is neither a string nor an iterable of strings.
    - EmptyTaskIdError: id (or one of its segments) is empty.
    """
    if isinstance(id, str):
        segments = (id,)
    elif isinstance(id, Iterable):
        segments = tuple(id)
    else:
        raise TypeError("task id must be a string or a sequence of strings")

    if not segments:
        raise EmptyTaskIdError("task id cannot be empty", task="")
    for segment in segments:
        if not isinstance(segment, str):
            raise TypeError("task id segments must be strings")
        elif not segment.strip():
            raise EmptyTaskIdError(f"task id {format_id(segments)!r} has an empty segment", task=format_id(segments))
    return segments


def _sanitize_descr(descr, /):
    if not isinstance(descr, str):
        raise TypeError("task description must be a string")
    return descr.strip()


def _build_spec(cls, spec, /, **metadata):
    if isinstance(spec, cls):
        if metadata:
            raise TypeError(f"{cls.__typename__} instances cannot be combined with extra metadata")
        return spec
    elif isinstance(spec, str):
        return cls(spec, **metadata)
    raise TypeError(f"expected a {cls.__typename__} or a parameter name, got {type(spec).__name__!r}")


class _TaskBuilder:
    """
    Shared state of the builders: id, description, named parameters, action.
    """

    def __init__(self, id, /):
        self._id = _sanitize_id(id)
        self._descr = ""
        self._action = Unset
        self._named_parameters = {}

    @property
    def id(self):
        return self._id

    def _claim(self, parameter, /):
        spellings = {kebab(name): name for name in self._names()}
        if (clash := spellings.get(kebab(parameter.name))) is not None:
            raise DuplicatedParameterNameError(
                f"parameter {parameter.name!r} is already defined in task {format_id(self._id)!r}"
                + ("" if clash == parameter.name else f" as {clash!r}"),
                task=format_id(self._id),
                parameter=parameter.name,
            )

    def _names(self):
        return self._named_parameters.keys()

    def describe(self, descr, /):
        """Set the description (trimmed)."""
        self._descr = _sanitize_descr(descr)
        return self

    def option(self, spec, /, **metadata):
        """
        Add a named parameter.

        spec is either an Option or a parameter name; in the latter case the
        keyword arguments (type, default, descr) are forwarded to Option.
        """
        option = _build_spec(Option, spec, **metadata)
        self._claim(option)
        self._named_parameters[option.name] = option
        return self

    def flag(self, spec, /, **metadata):
        """
        Add a boolean flag (default False); spec is a Flag or a name.
        """
        flag = _build_spec(Flag, spec, **metadata)
        self._claim(flag)
        self._named_parameters[flag.name] = flag
        return self

    def action(self, action, /):
        """
        Set the action: a callable, or a module reference resolved when the
        task first runs. Can only be set once.
        """
        if self._action is not Unset:
            raise TypeError(f"task {format_id(self._id)!r} action can only be set once")
        self._action = as_action(action)
        return self

    def _require_action(self):
        if self._action is Unset:
            raise MissingActionError(
                f"task {format_id(self._id)!r} has no action",
                task=format_id(self._id),
            )
        return self._action


class NewTaskBuilder(_TaskBuilder):
    """
    Builder of a new task: description, full parameter schema and action.
    """

    def __init__(self, id, descr="", /):
        super().__init__(id)
        self._descr = _sanitize_descr(descr)
        self._positional_parameters = []

    def _names(self):
        return self._named_parameters.keys() | {parameter.name for parameter in self._positional_parameters}

    def _append_positional(self, parameter, /):
        self._claim(parameter)
        if self._positional_parameters and isinstance(last := self._positional_parameters[-1], Variadic):
            raise PositionalAfterVariadicError(
                f"positional parameter {parameter.name!r} follows the variadic {last.name!r} in task {format_id(self._id)!r}",
                task=format_id(self._id),
                parameter=parameter.name,
            )
        if parameter.required and any(not other.required for other in self._positional_parameters):
            warnings.warn(RequiredAfterOptionalWarning(
                f"required positional parameter {parameter.name!r} follows an optional one in task {format_id(self._id)!r}",
                task=format_id(self._id),
                parameter=parameter.name,
            ), stacklevel=3)
        self._positional_parameters.append(parameter)
        return self

    def cardinal(self, spec, /, **metadata):
        """
        Add a positional parameter; spec is a Cardinal or a name.
        """
        return self._append_positional(_build_spec(Cardinal, spec, **metadata))

    def variadic(self, spec, /, **metadata):
        """
        Add the trailing variadic parameter; spec is a Variadic or a name.
        """
        return self._append_positional(_build_spec(Variadic, spec, **metadata))

    def build(self):
        """
        Produce the NewTaskDefinition.

        Raises
        - MissingActionError: no action was set.
        """
        return NewTaskDefinition(
            self._id,
            self._descr,
            self._require_action(),
            MappingProxyType(dict(self._named_parameters)),
            tuple(self._positional_parameters),
        )


class TaskOverrideBuilder(_TaskBuilder):
    """
    Builder of a task override.

    Only named parameters and flags can be added: the positional call shape
    of a task belongs to its original definition. The description replaces
    the current one only when it is non-empty.
    """

    def __init__(self, id, /):
        super().__init__(id)
        self._descr = None

    def build(self):
        """
        Produce the TaskOverrideDefinition.

        Raises
        - MissingActionError: no action was set.
        """
        return TaskOverrideDefinition(
            self._id,
            self._descr or None,
            self._require_action(),
            MappingProxyType(dict(self._named_parameters)),
        )


class EmptyTaskBuilder:
    """
    Builder of an empty task: a namespace for subtasks, without parameters.
    """

    def __init__(self, id, descr="", /):
        self._id = _sanitize_id(id)
        self._descr = _sanitize_descr(descr)

    @property
    def id(self):
        return self._id

    def describe(self, descr, /):
        self._descr = _sanitize_descr(descr)
        return self

    def build(self):
        return EmptyTaskDefinition(self._id, self._descr)


def task(id, descr="", /):
    """Start a new task definition."""
    return NewTaskBuilder(id, descr)


def override(id, /):
    """Start an override of an existing task."""
    return TaskOverrideBuilder(id)


def empty(id, descr="", /):
    """Start an empty (namespace) task definition."""
    return EmptyTaskBuilder(id, descr)


__all__ = (
    "NewTaskBuilder",
    "TaskOverrideBuilder",
    "EmptyTaskBuilder",
    "task",
    "override",
    "empty",
)
