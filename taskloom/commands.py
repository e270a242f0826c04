"""
Command-line front-end over an environment's task registry.

Overview
- parse(registry, prompt): turn command-line tokens into a task and its raw
  arguments.
- invoke(environment, prompt): parse, then either print help or run the task
  with string coercion; faults are surfaced through trigger() using the
  environment's shell/fancy/colorful flags.
- render_help(task) / render_tasks(registry): rich renderables for task help
  and for the list of root tasks.

Token grammar
- leading tokens select a root task, then descend into subtasks while the next
  token names a subtask of the current one:
      prog deploy staging --region eu-west-1 --dry-run app1 app2
- "--name value" and "--name=value" set named parameters. The command-line
  spelling of a parameter is its kebab-case name: param_one and paramOne are
  both spelled --param-one.
- flags take no value; "--flag=value" is rejected.
- any other token fills the positional parameters in declaration order; a
  variadic parameter collects the remaining ones.
- "--" ends named parsing: every later token is positional.
- global options of the registry are accepted by their kebab-case name
  before the task name or among its parameters; a task parameter with the
  same spelling takes precedence. A boolean global option is a switch
  ("--verbose", or "--verbose=false"); others take a value parsed with
  ParameterType.parse.
- "--help" / "-h" (before "--") prints help instead of running. With no task
  at all, the list of root tasks is printed.

Task values stay strings until run time, where resolve_arguments(coerce=True)
parses them with ParameterType.parse.
"""
import logging
import shlex
import sys
from collections import defaultdict, deque
from collections.abc import Iterable
from typing import NamedTuple

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Flag, Variadic, ParameterType
from .definitions import format_id
from .faults import (
    TaskException,
    TaskNotFoundError,
    MissingValueForParameterError,
    InvalidValueForTypeError,
    UnrecognizedNamedParamError,
    UnrecognizedPositionalArgumentError,
    trigger,
)
from .utils import Unset, kebab

logger = logging.getLogger(__name__)

console = Console()

HELP_SWITCHES = ("--help", "-h")


class Parsed(NamedTuple):
    task: object
    arguments: dict
    help: bool
    globals: dict


def _tokenize(prompt, /):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("prompt tokens must be strings")
        return tokens
    raise TypeError("prompt must be a string or an iterable of strings")


def _split(token, /):
    name, separator, value = token[2:].partition("=")
    return name, value if separator else Unset


def _switch_value(name, value, tokens, where, /, **context):
    if value is not Unset:
        return value
    if not tokens or tokens[0].startswith("--"):
        raise MissingValueForParameterError(f"missing value for parameter '--{name}'{where}", **context)
    return tokens.popleft()


def _global_value(option, name, value, tokens, where, /):
    if option.type is ParameterType.BOOLEAN and value is Unset:
        return True
    text = _switch_value(name, value, tokens, where, parameter=option.name)
    try:
        return option.type.parse(text)
    except ValueError:
        raise InvalidValueForTypeError(
            f"invalid value {text!r} for global option '--{name}' of type {option.type.value}",
            value=text,
            parameter=option.name,
            type=option.type,
        ) from None


def parse(registry, prompt=Unset, /):
    """
    Parse command-line tokens against a registry.

    Returns
    - Parsed(task, arguments, help, globals): task is None when no task was
      named (help is then True); arguments hold raw strings, True for flags
      and lists for variadic parameters; globals holds every global option
      of the registry, parsed into its type or left at its default.

    Raises
    - TaskNotFoundError: the first token is not a root task.
    - UnrecognizedNamedParamError: unknown --switch.
    - MissingValueForParameterError: a named parameter without a value.
    - InvalidValueForTypeError: a value given to a flag, or a global option
      value that does not parse.
    - UnrecognizedPositionalArgumentError: more positional tokens than parameters.
    """
    tokens = deque(_tokenize(prompt))
    options = {kebab(name): option for name, option in registry.global_options.items()}
    globals = {}

    while tokens and tokens[0].startswith("--") and tokens[0] != "--" and tokens[0] not in HELP_SWITCHES:
        name, value = _split(tokens.popleft())
        if (option := options.get(name)) is None:
            raise UnrecognizedNamedParamError(f"unrecognized global option '--{name}'", parameter=name)
        globals[option.name] = _global_value(option, name, value, tokens, "")

    def parsed(task, arguments, help):
        values = {name: globals.get(name, option.default) for name, option in registry.global_options.items()}
        return Parsed(task, arguments, help, values)

    if not tokens or tokens[0] in HELP_SWITCHES:
        return parsed(None, {}, True)

    task = registry.get_task(tokens.popleft())
    while tokens and tokens[0] in task.subtasks:
        task = task.subtasks[tokens.popleft()]

    switches = {kebab(name): parameter for name, parameter in task.named_parameters.items()}
    positionals = deque(task.positional_parameters)
    where = f" in task {format_id(task.id)!r}"
    arguments = {}
    help = False
    terminated = False

    while tokens:
        token = tokens.popleft()
        if not terminated and token == "--":
            terminated = True
            continue
        if not terminated and token in HELP_SWITCHES:
            help = True
            continue
        if not terminated and token.startswith("--"):
            name, value = _split(token)
            if (parameter := switches.get(name)) is None:
                if (option := options.get(name)) is None:
                    raise UnrecognizedNamedParamError(
                        f"unrecognized parameter '--{name}'{where}",
                        parameter=name,
                        task=format_id(task.id),
                    )
                globals[option.name] = _global_value(option, name, value, tokens, where)
                continue
            if isinstance(parameter, Flag):
                if value is not Unset:
                    raise InvalidValueForTypeError(
                        f"flag '--{name}'{where} does not take a value",
                        value=value,
                        parameter=parameter.name,
                        type=ParameterType.BOOLEAN,
                        task=format_id(task.id),
                    )
                arguments[parameter.name] = True
                continue
            arguments[parameter.name] = _switch_value(
                name, value, tokens, where,
                parameter=parameter.name,
                task=format_id(task.id),
            )
            continue

        if not positionals:
            raise UnrecognizedPositionalArgumentError(
                f"unrecognized positional argument {token!r}{where}",
                value=token,
                task=format_id(task.id),
            )
        if isinstance(parameter := positionals[0], Variadic):
            arguments.setdefault(parameter.name, []).append(token)
        else:
            arguments[parameter.name] = token
            positionals.popleft()

    logger.debug("parsed task %r with arguments %r and globals %r", format_id(task.id), arguments, globals)
    return parsed(task, arguments, help)


async def invoke(environment, prompt=Unset, /):
    """
    Parse a prompt and run the selected task in an environment.

    Returns the task result, or None when help was printed. Before the task
    runs, the parsed global options are stored on the environment
    (environment.global_values).

    Faults are surfaced with trigger(): raised when environment.shell is
    False, printed to stderr followed by exit status 1 otherwise. Exceptions
    raised by actions that are not task faults propagate unchanged.
    """
    options = {"shell": environment.shell, "fancy": environment.fancy, "colorful": environment.colorful}
    try:
        parsed = parse(environment.tasks, prompt)
        if parsed.help:
            if parsed.task is None:
                console.print(render_tasks(environment.tasks, fancy=environment.fancy, colorful=environment.colorful))
            else:
                console.print(render_help(parsed.task, fancy=environment.fancy, colorful=environment.colorful))
            return None
        environment.set_global_values(parsed.globals)
        return await parsed.task.run(parsed.arguments, coerce=True)
    except TaskException as fault:
        trigger(fault, **options)


def _palette(colorful, /):
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # cyan signature label
        "program-name": "bold #FF4D94",  # magenta-pink brand
        "task-name": "bold #36C5F0",  # sky-blue task path
        "description-section": "italic #A3A3A3",  # neutral gray

        # === Parameters ===
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",  # cyan options
        "flag-name": "bold #22C55E",  # green flags
        "metavar": "bold #FFD600",  # amber parameters
        "argument-description": "#9CA3AF",
        "default": "italic #737373",

        # === Tables ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",  # slate border
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

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

    return styler, text


def _prog():
    return getattr(__import__("__main__"), "__prog__", "taskloom")


def _metavar(parameter, text, styler, /):
    metavar = text(f"<{kebab(parameter.name)}>", styler("metavar"))
    if isinstance(parameter, Variadic):
        metavar = Text.assemble(metavar, " ...")
    if not parameter.required:
        metavar = Text.assemble("[", metavar, "]")
    return metavar


def render_help(task, /, *, fancy=False, colorful=False):
    """
    Build the help renderable of a task.

    Sections: usage line, description, subtasks table, named parameters,
    positional parameters. Palette keys can be overridden through __styles__
    in __main__; styling is dropped when colorful is False.
    """
    styler, text = _palette(colorful)
    renders = []

    usage = Text()
    usage.append(text("usage", styler("usage-label"))).append(": ")
    usage.append(text(_prog(), styler("program-name"))).append(" ")
    usage.append(text(format_id(task.id), styler("task-name")))
    for name, parameter in task.named_parameters.items():
        switch = text(f"--{kebab(name)}", styler("flag-name" if isinstance(parameter, Flag) else "option-name"))
        if isinstance(parameter, Flag):
            usage.append(" ").append(Text.assemble("[", switch, "]"))
        elif parameter.required:
            usage.append(" ").append(Text.assemble(switch, " ", _metavar(parameter, text, styler)))
        else:
            usage.append(" ").append(Text.assemble("[", switch, " ", text(f"<{kebab(name)}>", styler("metavar")), "]"))
    for parameter in task.positional_parameters:
        usage.append(" ").append(_metavar(parameter, text, styler))
    renders.append(usage.append("\n"))

    if task.descr:
        renders.append(text(task.descr, styler("description-section")).append("\n"))

    if task.subtasks:
        table = Table(
            "name", "help",
            title=text("subtasks", styler("children-title")),
            box=ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        for name, subtask in task.subtasks.items():
            table.add_row(
                text(name, styler("children")),
                text(subtask.descr or "no description", styler("children-description")),
            )
        renders.append(table)

    def section(label, parameters, spelling):
        if not parameters:
            return
        body = Text()
        body.append(text(label, styler("group-label"))).append(":\n")
        for parameter in parameters:
            line = Text("  ")
            line.append(spelling(parameter))
            line.append(text(f"  ({parameter.type.value})", styler("default")))
            if parameter.descr:
                line.append("  ").append(text(parameter.descr, styler("argument-description")))
            if not parameter.required and not isinstance(parameter, Flag):
                line.append(text(f"  default: {parameter.default!r}", styler("default")))
            body.append(line).append("\n")
        renders.append(body)

    section(
        "parameters",
        list(task.named_parameters.values()),
        lambda parameter: text(
            f"--{kebab(parameter.name)}",
            styler("flag-name" if isinstance(parameter, Flag) else "option-name"),
        ),
    )
    section(
        "positional parameters",
        list(task.positional_parameters),
        lambda parameter: text(kebab(parameter.name), styler("metavar")),
    )

    if fancy:
        return Panel(Group(*renders), title=text(_prog(), styler("panel-title")), title_align="left")
    return Group(*renders)


def render_tasks(registry, /, *, fancy=False, colorful=False):
    """
    Build the renderable listing the root tasks and the global options.
    """
    styler, text = _palette(colorful)
    renders = []

    usage = Text()
    usage.append(text("usage", styler("usage-label"))).append(": ")
    usage.append(text(_prog(), styler("program-name"))).append(" <task> [<parameters> ...]\n")
    renders.append(usage)

    table = Table(
        "name", "help",
        title=text("tasks", styler("children-title")),
        box=ROUNDED,
        style=styler("children-table"),
        header_style=styler("children-title"),
    )
    for name, task in registry.root_tasks.items():
        table.add_row(
            text(name, styler("children")),
            text(task.descr or "no description", styler("children-description")),
        )
    renders.append(table)

    if registry.global_options:
        body = Text("\n")
        body.append(text("global options", styler("group-label"))).append(":\n")
        for name, option in registry.global_options.items():
            line = Text("  ")
            line.append(text(f"--{kebab(name)}", styler("option-name")))
            if option.descr:
                line.append("  ").append(text(option.descr, styler("argument-description")))
            body.append(line).append("\n")
        renders.append(body)

    if fancy:
        return Panel(Group(*renders), title=text(_prog(), styler("panel-title")), title_align="left")
    return Group(*renders)


__all__ = (
    "Parsed",
    "parse",
    "invoke",
    "render_help",
    "render_tasks",
)
