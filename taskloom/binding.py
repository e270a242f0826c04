"""
Argument resolution: raw input values → finalized task arguments.

resolve_arguments(task, arguments) walks the task's merged schema in order
(named parameters first, then positional ones, then the variadic one) and
for each parameter:
- takes the supplied value and checks it against the declared type, or
- falls back to the default (flags default to False), or
- fails with MissingValueForParameterError when there is no default.

Any supplied name left over afterwards fails with UnrecognizedNamedParamError.
The result is a new dict holding exactly the declared names; variadic values
are always lists.

With coerce=True, string values are first parsed with ParameterType.parse.
The command-line front-end uses it; programmatic callers pass typed values.
"""
import logging
from collections.abc import Mapping

from .arguments import Variadic
from .definitions import format_id
from .faults import MissingValueForParameterError, InvalidValueForTypeError, UnrecognizedNamedParamError

logger = logging.getLogger(__name__)


def _invalid(task, parameter, value, /):
    return InvalidValueForTypeError(
        f"invalid value {value!r} for parameter {parameter.name!r} of type {parameter.type.value}"
        f" in task {format_id(task.id)!r}",
        value=value,
        parameter=parameter.name,
        type=parameter.type,
        task=format_id(task.id),
    )


def _coerce(task, parameter, value, /):
    def parse(item):
        if not isinstance(item, str):
            return item
        try:
            return parameter.type.parse(item)
        except ValueError:
            raise _invalid(task, parameter, value) from None

    if isinstance(parameter, Variadic):
        if isinstance(value, str):
            return [parse(value)]
        if isinstance(value, list | tuple):
            return list(map(parse, value))
        return value
    return parse(value)


def resolve_arguments(task, arguments=None, /, *, coerce=False):
    """
    Validate and complete the arguments of one task invocation.

    Parameters
    - task: the resolved Task (only id and the parameter schema are read).
    - arguments: Mapping[str, object] | None, raw values keyed by parameter name.
    - coerce: parse string values into the declared types first.

    Returns
    - dict[str, object]: one entry per declared parameter, in schema order.

    Raises
    - TypeError: arguments is not a mapping.
    - MissingValueForParameterError: a required parameter has no value.
    - InvalidValueForTypeError: a value does not match its type; for a
      variadic parameter the whole supplied value is reported.
    - UnrecognizedNamedParamError: a supplied name is not declared.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise TypeError(f"task arguments must be a mapping, got {type(arguments).__name__!r}")

    remaining = dict(arguments)
    resolved = {}

    for parameter in (*task.named_parameters.values(), *task.positional_parameters):
        variadic = isinstance(parameter, Variadic)
        if parameter.name not in remaining:
            if parameter.required:
                raise MissingValueForParameterError(
                    f"missing value for parameter {parameter.name!r} in task {format_id(task.id)!r}",
                    parameter=parameter.name,
                    task=format_id(task.id),
                )
            resolved[parameter.name] = list(parameter.default) if variadic else parameter.default
            continue

        value = remaining.pop(parameter.name)
        if coerce:
            value = _coerce(task, parameter, value)
        if not parameter.validate(value):
            raise _invalid(task, parameter, value)
        resolved[parameter.name] = list(value) if variadic else value

    if remaining:
        name = next(iter(remaining))
        raise UnrecognizedNamedParamError(
            f"unrecognized parameter {name!r} in task {format_id(task.id)!r}",
            parameter=name,
            task=format_id(task.id),
        )

    logger.debug("resolved arguments of task %r: %r", format_id(task.id), resolved)
    return resolved


__all__ = (
    "resolve_arguments",
)
