"""
Immutable task definition records, as produced by the builders.

A definition is what one contributor says about one task id:
- NewTaskDefinition: a new task with its full parameter schema and action.
- TaskOverrideDefinition: an extra action (and optional extra named
  parameters) layered on top of an already registered task.
- EmptyTaskDefinition: a parameterless namespace placeholder.

Parameter collections are stored read-only: named parameters as a
MappingProxyType keyed by name (declaration order kept), positional ones as a
tuple (cardinals first, then at most one trailing variadic).
"""
from enum import StrEnum
from types import MappingProxyType
from typing import NamedTuple

from .actions import EMPTY


class TaskDefinitionKind(StrEnum):
    NEW = "new"
    OVERRIDE = "override"
    EMPTY = "empty"


class NewTaskDefinition(NamedTuple):
    id: tuple
    descr: str
    action: object
    named_parameters: MappingProxyType
    positional_parameters: tuple

    @property
    def kind(self):
        return TaskDefinitionKind.NEW


class TaskOverrideDefinition(NamedTuple):
    id: tuple
    descr: str | None
    action: object
    named_parameters: MappingProxyType

    @property
    def kind(self):
        return TaskDefinitionKind.OVERRIDE


class EmptyTaskDefinition(NamedTuple):
    id: tuple
    descr: str

    @property
    def kind(self):
        return TaskDefinitionKind.EMPTY

    @property
    def action(self):
        return EMPTY

    @property
    def named_parameters(self):
        return MappingProxyType({})

    @property
    def positional_parameters(self):
        return ()


TaskDefinition = NewTaskDefinition | TaskOverrideDefinition | EmptyTaskDefinition


def format_id(id, /):
    """Printable form of a task id: ("task1", "subtask1") → "task1 subtask1"."""
    return " ".join(id)


__all__ = (
    "format_id",
    "TaskDefinitionKind",
    "NewTaskDefinition",
    "TaskOverrideDefinition",
    "EmptyTaskDefinition",
    "TaskDefinition",
)
