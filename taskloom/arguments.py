r"""
Taskloom parameter specifications and value types.

Overview
- ParameterType
  • STRING, BOOLEAN, INT, BIGINT, FLOAT, FILE.
  • validate(value): strict predicate used on programmatic arguments.
  • parse(text): string coercion used by the command-line front-end.

- Specs
  • Option: named, value-bearing parameter (--name value).
  • Flag: named boolean parameter defaulting to False, set by presence alone.
  • Cardinal: positional parameter, matched by declaration order.
  • Variadic: trailing positional parameter collecting a sequence of values.
  • GlobalOption: runtime-wide named parameter declared by a contributor; the
    core only needs it to detect name clashes with task parameters.

- Introspection & representation
  • ArgumentType metaclass exposes the fields listed in __introspectable__ as
    read-only properties and provides stable __repr__/__rich_repr__.
  • Concrete specs are sealed against subclassing.

Metadata (sanitized on construction)
- name: a Python identifier not starting with an underscore; it is the key
  under which the resolved value is handed to actions.
- type: a ParameterType member or its value ("int", "file", ...).
- default: Unset (required) or a value satisfying the type. A variadic
  default is a sequence of such values and is stored as a tuple. None is not
  a valid value of any type.
- descr: Unset | str (short help), non-empty when provided.

Validation highlights
- BOOLEAN accepts only True/False.
- INT and BIGINT accept int but not bool (Python ints are unbounded, so both
  are the same domain; BIGINT exists for schema compatibility and parse()
  accepts the trailing "n" literal form).
- FLOAT accepts int or float but not bool.
- STRING and FILE accept str; FILE is a path-like label for tooling only.

Quick example:
    >>> from taskloom.arguments import Option, Flag, Cardinal, Variadic
    >>> Option("target", type="file", descr="where to write")
    option(name='target', type=<ParameterType.FILE: 'file'>, default=Unset, descr='where to write')
    >>> Flag("quiet").default
    False
    >>> Variadic("files", type="file", default=["a.txt"]).default
    ('a.txt',)
"""
import functools
import operator
import re
from collections.abc import Sequence
from enum import StrEnum

from .utils import *


class ParameterType(StrEnum):
    """
    value types a parameter can declare.

    members compare equal to their lowercase value, so "int" and
    ParameterType.INT are interchangeable wherever a type is accepted.
    """
    STRING  = "string"
    BOOLEAN = "boolean"
    INT     = "int"
    BIGINT  = "bigint"
    FLOAT   = "float"
    FILE    = "file"

    def validate(self, value, /):
        """
        Return True when value belongs to this type (no coercion).
        """
        match self:
            case ParameterType.BOOLEAN:
                return isinstance(value, bool)
            case ParameterType.INT | ParameterType.BIGINT:
                return isinstance(value, int) and not isinstance(value, bool)
            case ParameterType.FLOAT:
                return isinstance(value, int | float) and not isinstance(value, bool)
            case _:
                return isinstance(value, str)

    def parse(self, text, /):
        """
        Coerce command-line text into a value of this type.

        Accepted forms
        - BOOLEAN: "true" / "false" (any case).
        - INT: decimal or 0x-prefixed hexadecimal, optionally signed.
        - BIGINT: same as INT, with an optional trailing "n".
        - FLOAT: decimal or scientific notation, or an INT form.
        - STRING / FILE: the text itself.

        Raises
        - TypeError: text is not a string.
        - ValueError: text does not spell a value of this type.
        """
        if not isinstance(text, str):
            raise TypeError(f"{self.value} parse() argument must be a string")

        match self:
            case ParameterType.BOOLEAN:
                if (lowered := text.strip().lower()) in ("true", "false"):
                    return lowered == "true"
            case ParameterType.INT | ParameterType.BIGINT:
                source = text.strip()
                if self is ParameterType.BIGINT:
                    source = source.removesuffix("n")
                if re.fullmatch(r"[+-]?0[xX][0-9a-fA-F]+", source):
                    return int(source, 16)
                if re.fullmatch(r"[+-]?\d+", source):
                    return int(source, 10)
            case ParameterType.FLOAT:
                source = text.strip()
                if re.fullmatch(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", source):
                    return float(source)
                if re.fullmatch(r"[+-]?0[xX][0-9a-fA-F]+", source):
                    return float(int(source, 16))
            case _:
                return text

        raise ValueError(f"{text!r} is not a valid {self.value}")


class ArgumentType(type):
    """
    Metaclass turning parameter specs into introspectable, read-only records.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" field (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations.
    - Seal classes created with sealed=True against subclassing.

    Conventions
    - __typename__ is derived from the class name (camel-case split with
      hyphens) and used in messages: "global-option 'x' ...".
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the fields every spec shares.

    - name: str, stripped, a Python identifier not starting with "_".
    - descr: Unset | str, non-empty after trimming; stored as None when Unset.

    Raises
    - TypeError: name/descr of the wrong type.
    - ValueError: empty name/descr, or a name that is not a usable identifier.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not name.isidentifier() or name.startswith("_"):
        raise ValueError(f"{cls.__typename__} 'name' must be an identifier not starting with an underscore, got {name!r}")
    metadata["name"] = name

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_typed_metadata(cls, metadata, /, *, variadic=False):
    """
    Internal: validate the value type and the default against it.

    - type: ParameterType or its string value (case-insensitive).
    - default: Unset, or a value the type validates. With variadic=True the
      default must be a non-string sequence whose items the type validates;
      it is normalized into a tuple.

    Raises
    - TypeError: type is neither a ParameterType nor a string.
    - ValueError: unknown type name, or a default that does not fit the type.
    """
    type = metadata["type"]
    if isinstance(type, str) and not isinstance(type, ParameterType):
        try:
            type = ParameterType(type.strip().lower())
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'type' must be one of {", ".join(map(str, ParameterType))}, got {type!r}") from None
    elif not isinstance(type, ParameterType):
        raise TypeError(f"{cls.__typename__} 'type' must be a parameter-type or a string")
    metadata["type"] = type

    if (default := metadata["default"]) is Unset:
        return
    if variadic:
        if isinstance(default, str | bytes | bytearray | memoryview) or not isinstance(default, Sequence):
            raise ValueError(f"{cls.__typename__} {metadata["name"]!r} default must be a sequence of {type.value} values")
        if not all(map(type.validate, default)):
            raise ValueError(f"{cls.__typename__} {metadata["name"]!r} default items must be valid {type.value} values")
        metadata["default"] = tuple(default)
    elif not type.validate(default):
        raise ValueError(f"{cls.__typename__} {metadata["name"]!r} default must be a valid {type.value} value, got {default!r}")


class Parameter(metaclass=ArgumentType):
    """
    Common base of every parameter spec.

    Instances are immutable records; the public fields are read-only
    properties generated from __introspectable__.
    """
    __introspectable__ = (
        "name",
        "type",
        "default",
        "descr",
    )

    @property
    def required(self):
        """True when the parameter has no default."""
        return self._default is Unset

    def validate(self, value, /):
        """
        Return True when value satisfies the declared type.
        """
        return self._type.validate(value)

    @classmethod
    def _build(cls, metadata, /):
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __setattr__(self, name, value, /):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} attributes are read-only")
        super().__setattr__(name, value)


class Option(Parameter, sealed=True):
    """
    Named, value-bearing parameter.

    On the command line it is spelled "--{kebab-name} VALUE" or
    "--{kebab-name}=VALUE"; programmatically it is passed by name.
    """

    def __new__(cls, name, /, type=ParameterType.STRING, default=Unset, descr=Unset):
        metadata = {"name": name, "type": type, "default": default, "descr": descr}
        _sanitize_metadata(cls, metadata)
        _sanitize_typed_metadata(cls, metadata)
        return cls._build(metadata)


class Flag(Parameter, sealed=True):
    """
    Boolean named parameter defaulting to False; presence alone sets it.
    """

    def __new__(cls, name, /, descr=Unset):
        metadata = {"name": name, "type": ParameterType.BOOLEAN, "default": False, "descr": descr}
        _sanitize_metadata(cls, metadata)
        return cls._build(metadata)


class Cardinal(Parameter, sealed=True):
    """
    Positional parameter; values are matched in declaration order.
    """

    def __new__(cls, name, /, type=ParameterType.STRING, default=Unset, descr=Unset):
        metadata = {"name": name, "type": type, "default": default, "descr": descr}
        _sanitize_metadata(cls, metadata)
        _sanitize_typed_metadata(cls, metadata)
        return cls._build(metadata)


class Variadic(Parameter, sealed=True):
    """
    Trailing positional parameter collecting zero or more values of one type.

    The declared type is the element type; the resolved value is a list.
    """

    def __new__(cls, name, /, type=ParameterType.STRING, default=Unset, descr=Unset):
        metadata = {"name": name, "type": type, "default": default, "descr": descr}
        _sanitize_metadata(cls, metadata)
        _sanitize_typed_metadata(cls, metadata, variadic=True)
        return cls._build(metadata)

    def validate(self, value, /):
        """
        Return True when value is a sequence of valid items; strings and
        bytes-like values are not sequences of values here.
        """
        if isinstance(value, str | bytes | bytearray | memoryview) or not isinstance(value, Sequence):
            return False
        return all(map(self._type.validate, value))


class GlobalOption(Parameter, sealed=True):
    """
    Runtime-wide named parameter declared by a contributor.

    Global options are always optional, so a default is mandatory.
    """

    def __new__(cls, name, /, type=ParameterType.STRING, default=Unset, descr=Unset):
        metadata = {"name": name, "type": type, "default": default, "descr": descr}
        _sanitize_metadata(cls, metadata)
        _sanitize_typed_metadata(cls, metadata)
        if metadata["default"] is Unset:
            raise ValueError(f"{cls.__typename__} {metadata["name"]!r} must specify a default")
        return cls._build(metadata)


__all__ = (
    # Types
    "ParameterType",
    "Parameter",

    # Specs
    "Option",
    "Flag",
    "Cardinal",
    "Variadic",
    "GlobalOption",
)
