"""
Small helpers shared by the definition, registry and front-end layers.

Contents
- Unset (UnsetType): "no value was given", kept apart from None because None
  can be a meaningful value (a parameter default, an override description).
- coalesce(value, default): Unset → default, anything else kept as-is.
- rename(callable, name) / @rename(name): readable names for generated
  closures such as run_super and the chain invokers.
- mirror(name): read-only property over "_name" that hands out copies of
  container values.
- kebab(name): command-line spelling of a parameter name.
- mglob(pattern): module globbing used by plugin discovery.

    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> kebab("paramOne")
    'param-one'
"""
import builtins
import functools
import importlib
import itertools
import pkgutil
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset singleton; falsy, sealed, and pickled by reference.

    It joins PEP 604 unions (str | Unset) so isinstance checks can list it
    next to real types.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __or__(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented

    __ror__ = __or__

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Replace Unset by default; None, 0, "" and other falsy values are kept.
    """
    return default if object is Unset else object


def rename(target, name=Unset, /):
    """
    Update __name__ and __qualname__ of a callable.

    rename(function, "name") renames in place and returns the function;
    rename("name") returns a decorator doing the same.

    Raises
    - TypeError: non-string name, non-callable target, or a callable whose
      names are read-only (most built-ins).
    """
    if name is Unset:
        if not isinstance(target, str):
            raise TypeError(f"rename() expected a name, got {type(target).__name__!r}")
        return functools.partial(_rename, name=target)
    return _rename(target, name=name)


def _rename(target, /, *, name):
    if not isinstance(name, str):
        raise TypeError(f"rename() expected a string name, got {type(name).__name__!r}")
    if not builtins.callable(target):
        raise TypeError(f"rename() target {target!r} is not callable")
    try:
        target.__name__ = target.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError(f"cannot rename {target!r}") from None
    return target


def _copy(object):
    """
    Recursive copy of container values handed out by mirror().

    Tuples stay tuples (specs store their sequences as tuples), other
    sequences become lists, mappings dicts and sets sets.
    """
    match object:
        case str():
            return object
        case tuple():
            return tuple(map(_copy, object))
        case Sequence():
            return [_copy(item) for item in object]
        case Mapping():
            return {key: _copy(value) for key, value in object.items()}
        case Set():
            return {_copy(item) for item in object}
    return object


def mirror(name, /):
    """
    Build a read-only property returning a copy of self._{name}.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() expected an attribute name")

    def getter(self):
        return _copy(getattr(self, f"_{name}"))

    return property(rename(getter, name))


@functools.cache
def kebab(name, /):
    """
    Command-line spelling of a parameter name.

    Underscores become hyphens and camelCase humps are split, so param_one
    and paramOne are both spelled param-one.
    """
    if not isinstance(name, str):
        raise TypeError("kebab() expected a string")
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", name).replace("_", "-").lower()


_IDENTIFIER = re.compile(r"(?!\d)\w+")

# escaped char | * | ? | [class] or [!class] | any other char
_WILDCARD = re.compile(r"\\(.)|(\*)|(\?)|\[([!^]?)([^\]]+)\]|(.)", re.DOTALL)


@functools.cache
def _pattern(source):
    """
    regex for a whole module glob. wildcards never cross a dot; a "**"
    segment stands for any number of whole segments (none included).
    """
    body = ""
    for segment in source.split("."):
        if segment == "**":
            body += r"(?:\.(?!\d)\w+)*"
            continue
        body += r"\."
        for escaped, star, question, negation, members, literal in _WILDCARD.findall(segment):
            if star:
                body += r"[^.]*"
            elif question:
                body += r"[^.]"
            elif members:
                body += f"[{'^' if negation else ''}{members}]"
            else:
                body += re.escape(escaped or literal)
    return re.compile(body.removeprefix(r"\."))


def mglob(source, /):
    """
    expand a module glob ("acme.plugins.*", "acme.**.tasks") into the sorted
    names of the importable modules it matches.

    the pattern must start with a concrete package; a pattern without
    wildcards is returned untouched, a package that cannot be imported
    matches nothing.
    """
    if not isinstance(source, str):
        raise TypeError("mglob() expected a string pattern")
    if not (source := source.strip()):
        raise ValueError("mglob() pattern cannot be empty")

    segments = source.split(".")
    concrete = list(itertools.takewhile(_IDENTIFIER.fullmatch, segments))
    if len(concrete) == len(segments):
        return [source]
    if not concrete:
        raise ValueError(f"mglob() pattern {source!r} must start with a package name")

    prefix = ".".join(concrete)
    try:
        package = importlib.import_module(prefix)
    except ImportError:
        return []

    pattern = _pattern(source)
    found = {prefix} if pattern.fullmatch(prefix) else set()
    for module in pkgutil.walk_packages(getattr(package, "__path__", ()), prefix + "."):
        if pattern.fullmatch(module.name):
            found.add(module.name)
    return sorted(found)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "kebab",
    "mglob",
)
