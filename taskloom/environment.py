"""
Runtime environment: the object that owns the task registry.

create_environment(config) builds the contributors from a configuration
mapping (plugins first, in the given order, then the configuration's own
tasks as the last, unattributed contributor), resolves them once, and hands
itself to every action as their environment argument.

Configuration keys
- "plugins": Sequence[Plugin]
- "tasks": Sequence of task definitions
Any other key is kept untouched on environment.config for actions to read.

Global option values start at their declared defaults; the command-line
front-end stores the parsed ones with set_global_values() before a run, and
actions read them from environment.global_values.

Presentation flags (shell, fancy, colorful) only matter when faults are
surfaced through the command-line front-end.
"""
import logging
from collections.abc import Mapping
from types import MappingProxyType

from .faults import InvalidValueForTypeError, UnrecognizedNamedParamError
from .plugins import Plugin
from .tasks import Contributor, resolve
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class Environment:
    """
    Resolved runtime: configuration, registry and presentation flags.

    Raises (on construction)
    - TypeError: config is not a mapping, or holds malformed plugins.
    - RegistrationError subclasses: see taskloom.tasks.resolve().
    """

    def __init__(self, config=Unset, /, *, shell=False, fancy=False, colorful=False):
        if not isinstance(config := coalesce(config, {}), Mapping):
            raise TypeError(f"environment config must be a mapping, got {type(config).__name__!r}")
        self._config = MappingProxyType(dict(config))
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

        plugins = tuple(config.get("plugins", ()))
        for plugin in plugins:
            if not isinstance(plugin, Plugin):
                raise TypeError(f"environment plugins must be Plugin instances, got {plugin!r}")

        contributors = [plugin.__contributor__() for plugin in plugins]
        contributors.append(Contributor(None, tuple(config.get("tasks", ()))))
        logger.debug("building environment from %d plugins and the configuration", len(plugins))
        self._tasks = resolve(contributors, self)
        self._global_values = {name: option.default for name, option in self._tasks.global_options.items()}

    @property
    def config(self):
        return self._config

    @property
    def tasks(self):
        return self._tasks

    @property
    def global_options(self):
        return self._tasks.global_options

    @property
    def global_values(self):
        return MappingProxyType(self._global_values)

    def set_global_values(self, values, /):
        """
        Set the current values of global options, by option name.

        Options that are not mentioned keep their value. Values are checked
        against the declared type without coercion.

        Raises
        - TypeError: values is not a mapping.
        - UnrecognizedNamedParamError: a name is not a declared global option.
        - InvalidValueForTypeError: a value does not match the option type.
        """
        if not isinstance(values, Mapping):
            raise TypeError(f"global option values must be a mapping, got {type(values).__name__!r}")
        options = self._tasks.global_options
        for name, value in values.items():
            if (option := options.get(name)) is None:
                raise UnrecognizedNamedParamError(f"unrecognized global option {name!r}", parameter=name)
            if not option.validate(value):
                raise InvalidValueForTypeError(
                    f"invalid value {value!r} for global option {name!r} of type {option.type.value}",
                    value=value,
                    parameter=name,
                    type=option.type,
                )
        self._global_values.update(values)

    @property
    def shell(self):
        return self._shell

    @property
    def fancy(self):
        return self._fancy

    @property
    def colorful(self):
        return self._colorful

    async def run(self, id, arguments=None, /, *, coerce=False):
        """
        Look a task up and run it; shorthand for tasks.get_task(id).run(...).
        """
        return await self._tasks.get_task(id).run(arguments, coerce=coerce)

    def __repr__(self):
        return f"Environment(tasks={len(self._tasks)}, shell={self._shell})"


def create_environment(config=Unset, /, *, shell=False, fancy=False, colorful=False):
    """Build an Environment; see Environment for the parameters."""
    return Environment(config, shell=shell, fancy=fancy, colorful=colorful)


__all__ = (
    "Environment",
    "create_environment",
)
