# python
"""
Faults module behavioral tests (codes, context, rendering and triggering).

Scope
- Validate class-level code/title/hint and per-instance options.
- Validate copy.replace() support and cause preservation.
- Validate trigger() in raising and shell modes, for errors and warnings.
- Validate host hooks read from __main__ (__codes__, __docs__, __prog__).

Conventions
- Test method names follow CamelCase per project convention.
- Rendering goes to an in-memory rich Console.
"""

from __future__ import annotations

import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from taskloom import (
    FaultCode,
    TaskException,
    RegistrationError,
    TaskNotFoundError,
    MissingValueForParameterError,
    RequiredAfterOptionalWarning,
    trigger,
    getdoc,
)


def render(renderable, width=120):
    output = io.StringIO()
    Console(file=output, width=width, color_system=None).print(renderable)
    return output.getvalue()


class TestFaultShape(TestCase):

    def testClassLevelMetadata(self):
        fault = TaskNotFoundError("task 'deploy' not found", task="deploy")
        self.assertIs(fault.code, FaultCode.TASK_NOT_FOUND)
        self.assertEqual(fault.options["title"], "task not found")
        self.assertTrue(fault.options["hint"])
        self.assertEqual(fault.options["task"], "deploy")
        self.assertIsInstance(fault, RegistrationError)

    def testOptionsAreReadOnly(self):
        fault = TaskNotFoundError("missing", task="deploy")
        with self.assertRaises(TypeError):
            fault.options["task"] = "other"

    def testPerInstanceOverrides(self):
        fault = TaskNotFoundError("missing", title="custom title", hint="")
        self.assertEqual(fault.options["title"], "custom title")
        self.assertEqual(fault.options["hint"], "")

    def testStr(self):
        self.assertEqual(str(TaskNotFoundError("missing")), "missing")
        self.assertEqual(str(TaskNotFoundError()), "task not found")

    def testCodesAreStable(self):
        self.assertEqual(FaultCode.EMPTY_TASK_ID, 21101)
        self.assertEqual(FaultCode.TASK_NOT_FOUND, 21205)
        self.assertEqual(FaultCode.INVALID_VALUE_FOR_TYPE, 21302)
        self.assertEqual(FaultCode.INVALID_ACTION, 21403)


class TestReplace(TestCase):

    def testReplaceMergesOptions(self):
        fault = MissingValueForParameterError("missing", parameter="target", task="compile")
        replica = copy.replace(fault, shell=True)
        self.assertIsNot(replica, fault)
        self.assertIs(type(replica), MissingValueForParameterError)
        self.assertEqual(replica.options["parameter"], "target")
        self.assertTrue(replica.options["shell"])
        self.assertNotIn("shell", fault.options)

    def testReplaceKeepsCause(self):
        try:
            try:
                raise RuntimeError("inner")
            except RuntimeError as error:
                raise TaskNotFoundError("missing") from error
        except TaskNotFoundError as fault:
            replica = copy.replace(fault, fancy=True)
        self.assertIsInstance(replica.__cause__, RuntimeError)


class TestRendering(TestCase):

    def testPlainRendering(self):
        output = render(TaskNotFoundError("task 'deploy' not found", task="deploy"))
        self.assertIn("21205", output)
        self.assertIn("Task Not Found", output)
        self.assertIn("task 'deploy' not found", output)
        self.assertIn("→", output)

    def testFancyRendering(self):
        output = render(TaskNotFoundError("task 'deploy' not found", fancy=True, colorful=True))
        self.assertIn("task 'deploy' not found", output)
        self.assertIn("╭", output)

    def testDocsOption(self):
        output = render(TaskNotFoundError("missing", docs="see the task list"))
        self.assertIn("see the task list", output)

    def testHostHooks(self):
        main = sys.modules["__main__"]
        with (
            mock.patch.object(main, "__codes__", {FaultCode.TASK_NOT_FOUND: "E-NOTFOUND"}, create=True),
            mock.patch.object(main, "__docs__", {FaultCode.TASK_NOT_FOUND: "run with --help"}, create=True),
            mock.patch.object(main, "__prog__", "acme", create=True),
        ):
            self.assertEqual(FaultCode.TASK_NOT_FOUND.normalize(), "E-NOTFOUND")
            self.assertEqual(getdoc(FaultCode.TASK_NOT_FOUND), "run with --help")
            output = render(TaskNotFoundError("missing"))
        self.assertIn("E-NOTFOUND", output)
        self.assertIn("run with --help", output)
        self.assertIn("acme", output)

    def testNormalizeWithoutHost(self):
        self.assertEqual(FaultCode.EMPTY_TASK.normalize(), "21401")

    def testGetdocRequiresCode(self):
        with self.assertRaises(TypeError):
            getdoc(21205)

    def testWarningRendering(self):
        output = render(RequiredAfterOptionalWarning("required after optional", task="compile"))
        self.assertIn("22101", output)


class TestTrigger(TestCase):

    def testRaisesOutsideShell(self):
        with self.assertRaises(TaskNotFoundError) as context:
            trigger(TaskNotFoundError("missing", task="deploy"), colorful=True)
        self.assertTrue(context.exception.options["colorful"])
        self.assertEqual(context.exception.options["task"], "deploy")

    def testExitsInShell(self):
        output = io.StringIO()
        with mock.patch("taskloom.faults.console", Console(file=output, width=120)):
            with self.assertRaises(SystemExit) as context:
                trigger(TaskNotFoundError("task 'deploy' not found"), shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("task 'deploy' not found", output.getvalue())

    def testWarnsOutsideShell(self):
        with self.assertWarns(RequiredAfterOptionalWarning):
            trigger(RequiredAfterOptionalWarning("careful"))

    def testWarningPrintsInShell(self):
        output = io.StringIO()
        with mock.patch("taskloom.faults.console", Console(file=output, width=120)):
            trigger(RequiredAfterOptionalWarning("careful"), shell=True)
        self.assertIn("careful", output.getvalue())

    def testRejectsPlainExceptions(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testGenericFaultIsTriggerable(self):
        with self.assertRaises(TaskException):
            trigger(TaskException("generic"))


if __name__ == "__main__":
    unittest.main()
