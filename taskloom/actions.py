"""
Task actions: what a task runs, and how a reference becomes a callable.

Variants
- InlineAction(callback): an in-process callable.
- ReferenceAction(locator): an opaque module locator, resolved on first use.
- EMPTY: placeholder action of an empty (namespace) task.

Locators
- "pkg.module"              → attribute "action" of the imported module
- "pkg.module:attribute"    → that attribute
- "path/to/file.py"         → attribute "action" of the loaded file
- "file:///abs/file.py:run" → attribute "run" of the loaded file

Resolution failures are reported as faults: a locator that cannot be
imported raises InvalidActionUrlError (with the original error chained), an
export that is missing or not callable raises InvalidActionError.
"""
import functools
import importlib
import importlib.util
import logging
import pathlib
import re
import sys
from collections.abc import Callable
from typing import NamedTuple, final

from .faults import InvalidActionError, InvalidActionUrlError
from .utils import Unset

logger = logging.getLogger(__name__)

DEFAULT_EXPORT = "action"


class InlineAction(NamedTuple):
    callback: Callable


class ReferenceAction(NamedTuple):
    locator: str


@final
class EmptyActionType:
    """
    Placeholder action of an empty task; a no-op when reached through run_super.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __repr__(self):
        return "EMPTY"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'EmptyActionType' is not an acceptable base type")


EMPTY = EmptyActionType()


def as_action(action, /):
    """
    Normalize a user supplied action into one of the action variants.

    - InlineAction / ReferenceAction: returned unchanged
    - callable: wrapped in InlineAction
    - non-empty string: wrapped in ReferenceAction (kept opaque until run)

    Raises
    - TypeError: anything else.
    - ValueError: an empty locator string.
    """
    if isinstance(action, InlineAction | ReferenceAction):
        return action
    if isinstance(action, str):
        if not (locator := action.strip()):
            raise ValueError("action reference cannot be empty")
        return ReferenceAction(locator)
    if callable(action):
        return InlineAction(action)
    raise TypeError(f"action must be a callable or a module reference, got {type(action).__name__!r}")


def _split(locator, /):
    head, separator, tail = locator.rpartition(":")
    if separator and head and tail.isidentifier():
        return head, tail
    return locator, DEFAULT_EXPORT


def _import(source, /):
    path = source.removeprefix("file://")
    if path.endswith(".py") or "/" in path or "\\" in path:
        path = pathlib.Path(path).expanduser().resolve()
        name = "taskloom.actions." + re.sub(r"\W", "_", str(path))
        if name in sys.modules:
            return sys.modules[name]
        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot load a module from {str(path)!r}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[name]
            raise
        return module
    return importlib.import_module(source)


def load_action(action, /, *, task=""):
    """
    Resolve an action variant into a callable.

    task is the printable task id used as fault context.

    Raises
    - InvalidActionUrlError: the referenced module cannot be imported.
    - InvalidActionError: the export is missing or not callable.
    - TypeError: action is not an action variant, or is EMPTY.
    """
    match action:
        case InlineAction(callback):
            return callback
        case ReferenceAction(locator):
            source, attribute = _split(locator)
            logger.debug("loading action %r of task %r", locator, task)
            try:
                module = _import(source)
            except Exception as error:
                raise InvalidActionUrlError(
                    f"unable to import the action {locator!r} of task {task!r}",
                    action=locator,
                    task=task,
                ) from error
            if (export := getattr(module, attribute, Unset)) is Unset:
                raise InvalidActionError(
                    f"the action {locator!r} of task {task!r} has no {attribute!r} export",
                    action=locator,
                    task=task,
                )
            if not callable(export):
                raise InvalidActionError(
                    f"the {attribute!r} export of action {locator!r} of task {task!r} is not callable",
                    action=locator,
                    task=task,
                )
            return export
        case _:
            raise TypeError(f"load_action() argument must be an inline or reference action, got {action!r}")


__all__ = (
    "InlineAction",
    "ReferenceAction",
    "EmptyActionType",
    "EMPTY",
    "DEFAULT_EXPORT",
    "as_action",
    "load_action",
)
