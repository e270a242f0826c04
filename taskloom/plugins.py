"""
Plugins: named contributors of tasks and global options.

A Plugin is a plain record; the environment turns plugins into Contributor
entries in the order it receives them. discover() collects Plugin instances
exposed at the top level of modules matching a module glob:

    >>> # acme/plugins/deploy.py
    >>> plugin = Plugin("acme-deploy", tasks=[task("deploy").action(run).build()])
    >>>
    >>> discover("acme.plugins.*")
    [Plugin(id='acme-deploy', tasks=1, global_options=0)]
"""
import importlib
import inspect
import logging

from .arguments import GlobalOption
from .definitions import TaskDefinition
from .tasks import Contributor
from .utils import mglob

logger = logging.getLogger(__name__)


class Plugin:
    """
    A plugin descriptor.

    Parameters
    - id: non-empty string identifying the plugin in faults and task attribution.
    - tasks: Iterable of task definitions (builders' build() results).
    - global_options: Iterable of GlobalOption specs.

    Raises
    - TypeError / ValueError: malformed id or entries.
    """

    def __init__(self, id, /, tasks=(), global_options=()):
        if not isinstance(id, str):
            raise TypeError("plugin id must be a string")
        elif not (id := id.strip()):
            raise ValueError("plugin id cannot be empty")
        tasks = tuple(tasks)
        for definition in tasks:
            if not isinstance(definition, TaskDefinition):
                raise TypeError(f"plugin {id!r} tasks must be task definitions, got {definition!r}")
        global_options = tuple(global_options)
        for option in global_options:
            if not isinstance(option, GlobalOption):
                raise TypeError(f"plugin {id!r} global options must be global-option specs, got {option!r}")
        self._id = id
        self._tasks = tasks
        self._global_options = global_options

    @property
    def id(self):
        return self._id

    @property
    def tasks(self):
        return self._tasks

    @property
    def global_options(self):
        return self._global_options

    def __contributor__(self):
        return Contributor(self._id, self._tasks, self._global_options)

    def __repr__(self):
        return f"Plugin(id={self._id!r}, tasks={len(self._tasks)}, global_options={len(self._global_options)})"


def discover(source, /):
    """
    Import the modules matching a module glob and collect their plugins.

    Modules are visited in sorted order and members in name order; only
    Plugin instances are picked up.

    Raises
    - TypeError: source is not a string, or a matched module cannot be imported.
    """
    if not isinstance(source, str):
        raise TypeError("discover() argument must be a string")
    modules = mglob(source)

    def imp(module):
        try:
            return importlib.import_module(module)
        except ImportError:
            raise TypeError(f"unable to import module {module!r}")

    plugins = []
    for module in map(imp, modules):
        for name, object in inspect.getmembers(module):
            if isinstance(object, Plugin) and object not in plugins:
                logger.debug("discovered plugin %r in %s.%s", object.id, module.__name__, name)
                plugins.append(object)
    return plugins


__all__ = (
    "Plugin",
    "discover",
)
