"""
Taskloom faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every fault the core can raise,
  grouped by the phase that raises them.
- TaskException / TaskWarning: base types carrying a message plus a read-only
  options mapping (code, title, hint and structured context such as the task
  id, the parameter name or the offending value). They render themselves with
  rich in a lowercased, actionable tone.
- DefinitionError / RegistrationError / ValidationError / ExecutionError:
  one intermediate base per phase so callers can catch a whole family.
- trigger(): central entry point to surface a fault (respecting shell/fancy/colorful).
- getdoc(): optional documentation lookup for a code from the host application.

Phases
- definition (211xx): raised by the builders while a definition is shaped.
- registration (212xx): raised while contributors are folded into a registry;
  any of them aborts the whole build.
- validation (213xx): raised per invocation before any action runs.
- execution (214xx): raised per invocation while the action chain runs.
  Exceptions raised by user actions are never wrapped.

Integration
- The core raises faults directly; the command-line front-end surfaces them
  through trigger(fault, shell=..., fancy=..., colorful=...).
- In non-shell mode trigger() raises; in shell mode it renders via rich and exits.
"""
import copy
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the core (stable identifiers).

    grouping (by phase)
    - definition (211xx)
      • EMPTY_TASK_ID, DUPLICATED_PARAMETER_NAME, MISSING_ACTION,
        POSITIONAL_AFTER_VARIADIC
    - registration (212xx)
      • TASK_ALREADY_DEFINED, SUBTASK_WITHOUT_PARENT, TASK_PARAMETER_ALREADY_DEFINED,
        TASK_OVERRIDE_PARAMETER_ALREADY_DEFINED, TASK_NOT_FOUND,
        GLOBAL_PARAMETER_ALREADY_DEFINED
    - validation (213xx)
      • MISSING_VALUE_FOR_PARAMETER, INVALID_VALUE_FOR_TYPE,
        UNRECOGNIZED_NAMED_PARAM, UNRECOGNIZED_POSITIONAL_ARGUMENT
    - execution (214xx)
      • EMPTY_TASK, INVALID_ACTION_URL, INVALID_ACTION
    - warnings (22xxx)
      • REQUIRED_AFTER_OPTIONAL

    normalize() lets the host remap codes to its own labels.
    """
    # --- definition errors (211xx) ---
    EMPTY_TASK_ID                           = 21101
    DUPLICATED_PARAMETER_NAME               = 21102
    MISSING_ACTION                          = 21103
    POSITIONAL_AFTER_VARIADIC               = 21104

    # --- registration errors (212xx) ---
    TASK_ALREADY_DEFINED                    = 21201
    SUBTASK_WITHOUT_PARENT                  = 21202
    TASK_PARAMETER_ALREADY_DEFINED          = 21203
    TASK_OVERRIDE_PARAMETER_ALREADY_DEFINED = 21204
    TASK_NOT_FOUND                          = 21205
    GLOBAL_PARAMETER_ALREADY_DEFINED        = 21206

    # --- validation errors (213xx) ---
    MISSING_VALUE_FOR_PARAMETER             = 21301
    INVALID_VALUE_FOR_TYPE                  = 21302
    UNRECOGNIZED_NAMED_PARAM                = 21303
    UNRECOGNIZED_POSITIONAL_ARGUMENT        = 21304

    # --- execution errors (214xx) ---
    EMPTY_TASK                              = 21401
    INVALID_ACTION_URL                      = 21402
    INVALID_ACTION                          = 21403

    # --- warnings (22xxx) ---
    REQUIRED_AFTER_OPTIONAL                 = 22101

    def normalize(self):
        """
        printable label of this code.

        a __codes__ mapping in __main__ (FaultCode → label) lets the host
        tool show its own labels; otherwise the number is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, title_style, message_style):
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    code = options["code"]
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    prog = text(getattr(main, "__prog__", "taskloom"), styler("prog-name"))
    header = Text.assemble(
        "[ ",
        prog,
        " | ",
        text(code.normalize() if code else "-", styler("code")),
        " | ",
        text(options["title"].title(), styler(title_style)),
        " ]"
    )
    message = text(fault.message, styler(message_style))
    lines = [message]
    if options.get("hint"):
        lines.append(Text.assemble(text(" → ", styler("hint-arrow")), text(options["hint"], styler("hint"))))
    if docs := options.get("docs") or (code and getdoc(code)):
        lines.append(text(docs, styler("docs")))

    if fancy:
        width = console.width - 4
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*lines), title=header, title_align="left", width=width)
    return Group(header, *lines)


class TaskException(Exception):
    """
    base fault raised by the task core.

    subclasses pin their code/title/hint through __fault__, __title__ and
    __hint__; any of them can be overridden per instance through options.
    the structured context travels in options as well (task, parameter, ...).
    """
    __fault__ = Unset
    __title__ = "task error"
    __hint__ = ""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__fault__,
            "title": type(self).__title__,
            "hint": type(self).__hint__,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    def __str__(self):
        return str(self.message) if self.message is not Unset else type(self).__title__

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # green arrow
            "hint": "italic #9CE19C",  # green hint text
            "docs": "underline #00E5FF dim",
        }, "error-title", "error-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "faults are replaced by keyword only"
        replica = type(self)(self.message, **{**self.options, **overrides})
        replica.__cause__ = self.__cause__
        return replica


class DefinitionError(TaskException):
    __title__ = "malformed definition"


class RegistrationError(TaskException):
    __title__ = "registration conflict"


class ValidationError(TaskException):
    __title__ = "invalid arguments"


class ExecutionError(TaskException):
    __title__ = "execution failure"


class EmptyTaskIdError(DefinitionError):
    __fault__ = FaultCode.EMPTY_TASK_ID
    __title__ = "empty task id"
    __hint__ = "give the task at least one non-empty name segment"


class DuplicatedParameterNameError(DefinitionError):
    __fault__ = FaultCode.DUPLICATED_PARAMETER_NAME
    __title__ = "duplicated parameter"
    __hint__ = "every parameter of a task needs its own name"


class MissingActionError(DefinitionError):
    __fault__ = FaultCode.MISSING_ACTION
    __title__ = "missing action"
    __hint__ = "call .action(...) before .build()"


class PositionalAfterVariadicError(DefinitionError):
    __fault__ = FaultCode.POSITIONAL_AFTER_VARIADIC
    __title__ = "positional after variadic"
    __hint__ = "the variadic parameter must be the last positional one"


class TaskAlreadyDefinedError(RegistrationError):
    __fault__ = FaultCode.TASK_ALREADY_DEFINED
    __title__ = "task already defined"
    __hint__ = "use an override to change an existing task"


class SubtaskWithoutParentError(RegistrationError):
    __fault__ = FaultCode.SUBTASK_WITHOUT_PARENT
    __title__ = "subtask without parent"
    __hint__ = "define the parent task (an empty one is enough) first"


class TaskParameterAlreadyDefinedError(RegistrationError):
    __fault__ = FaultCode.TASK_PARAMETER_ALREADY_DEFINED
    __title__ = "parameter clashes with a global"
    __hint__ = "rename the parameter, global parameters are shared by every task"


class TaskOverrideParameterAlreadyDefinedError(RegistrationError):
    __fault__ = FaultCode.TASK_OVERRIDE_PARAMETER_ALREADY_DEFINED
    __title__ = "override parameter already defined"
    __hint__ = "overrides can only add parameters the task does not have yet"


class TaskNotFoundError(RegistrationError):
    __fault__ = FaultCode.TASK_NOT_FOUND
    __title__ = "task not found"
    __hint__ = "check the task id, or register the task before overriding it"


class GlobalParameterAlreadyDefinedError(RegistrationError):
    __fault__ = FaultCode.GLOBAL_PARAMETER_ALREADY_DEFINED
    __title__ = "global parameter already defined"
    __hint__ = "global parameter names must be unique across contributors"


class MissingValueForParameterError(ValidationError):
    __fault__ = FaultCode.MISSING_VALUE_FOR_PARAMETER
    __title__ = "missing value"
    __hint__ = "provide a value for every parameter without a default"


class InvalidValueForTypeError(ValidationError):
    __fault__ = FaultCode.INVALID_VALUE_FOR_TYPE
    __title__ = "invalid value"
    __hint__ = "the value must match the declared parameter type"


class UnrecognizedNamedParamError(ValidationError):
    __fault__ = FaultCode.UNRECOGNIZED_NAMED_PARAM
    __title__ = "unrecognized parameter"
    __hint__ = "only declared parameters can be passed to a task"


class UnrecognizedPositionalArgumentError(ValidationError):
    __fault__ = FaultCode.UNRECOGNIZED_POSITIONAL_ARGUMENT
    __title__ = "unrecognized positional argument"
    __hint__ = "the task takes fewer positional arguments"


class EmptyTaskError(ExecutionError):
    __fault__ = FaultCode.EMPTY_TASK
    __title__ = "empty task"
    __hint__ = "run one of its subtasks instead"


class InvalidActionUrlError(ExecutionError):
    __fault__ = FaultCode.INVALID_ACTION_URL
    __title__ = "invalid action reference"
    __hint__ = "the action reference must name an importable module"


class InvalidActionError(ExecutionError):
    __fault__ = FaultCode.INVALID_ACTION
    __title__ = "invalid action"
    __hint__ = "the referenced module must export a callable action"


class TaskWarning(Warning):
    """
    base warning emitted by the task core (shape oddities that are accepted).
    """
    __fault__ = Unset
    __title__ = "task warning"
    __hint__ = ""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__fault__,
            "title": type(self).__title__,
            "hint": type(self).__hint__,
        } | options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title

            # body
            "warning-message": "#D6D6DE",  # lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning-title", "warning-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "warnings are replaced by keyword only"
        return type(self)(self.message, **{**self.options, **overrides})


class RequiredAfterOptionalWarning(TaskWarning):
    __fault__ = FaultCode.REQUIRED_AFTER_OPTIONAL
    __title__ = "required after optional"
    __hint__ = "positional values are matched in order, so the optional one is never skipped"


def trigger(fault, /, **options):
    """
    surface a fault under the given presentation options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(...) before triggering.
    - in shell mode, rendering happens via rich console; otherwise errors are
      raised and warnings go through the warnings machinery.

    typical options
    - shell, fancy, colorful, plus any context the reporter may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError(f"cannot trigger {fault!r}, it is not a task fault")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    documentation line for a fault code, if the host provides one.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode members and values are short documentation strings; None
    when absent.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "TaskException",
    "DefinitionError",
    "RegistrationError",
    "ValidationError",
    "ExecutionError",
    "EmptyTaskIdError",
    "DuplicatedParameterNameError",
    "MissingActionError",
    "PositionalAfterVariadicError",
    "TaskAlreadyDefinedError",
    "SubtaskWithoutParentError",
    "TaskParameterAlreadyDefinedError",
    "TaskOverrideParameterAlreadyDefinedError",
    "TaskNotFoundError",
    "GlobalParameterAlreadyDefinedError",
    "MissingValueForParameterError",
    "InvalidValueForTypeError",
    "UnrecognizedNamedParamError",
    "UnrecognizedPositionalArgumentError",
    "EmptyTaskError",
    "InvalidActionUrlError",
    "InvalidActionError",
    "TaskWarning",
    "RequiredAfterOptionalWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
