# python
"""
Execution behavioral tests (action chain, run_super and invocation states).

Scope
- Validate chain order: the newest override runs first, run_super walks back.
- Validate argument forwarding, narrowing and short-circuiting.
- Validate empty tasks, reference actions and their lazy resolution.
- Validate the invocation state machine.

Conventions
- Test method names follow CamelCase per project convention.
- Reference actions point at files under test/fixtures/actions.
"""

from __future__ import annotations

import pathlib
import unittest
from unittest import IsolatedAsyncioTestCase

from taskloom import (
    resolve,
    Contributor,
    Invocation,
    InvocationState,
    task,
    override,
    empty,
    EmptyTaskError,
    InvalidActionUrlError,
    InvalidActionError,
    MissingValueForParameterError,
    FaultCode,
)

FIXTURES = pathlib.Path(__file__).resolve().parent / "fixtures" / "actions"


def fixture(name, export=None):
    locator = str(FIXTURES / f"{name}.py")
    return f"{locator}:{export}" if export else locator


def registry(*contributors, environment=None):
    return resolve(contributors, environment)


class TestChain(IsolatedAsyncioTestCase):

    async def testOriginalOnly(self):
        calls = []

        def original(arguments, environment):
            calls.append(("original", dict(arguments), environment))
            return "done"

        sentinel = object()
        tasks = registry(Contributor(None, [task("task1").option("param1").action(original).build()]), environment=sentinel)
        self.assertEqual(await tasks.get_task("task1").run({"param1": "value"}), "done")
        self.assertEqual(calls, [("original", {"param1": "value"}, sentinel)])

    async def testNewestOverrideRunsFirst(self):
        order = []

        def original(arguments, environment):
            order.append("original")
            return "original"

        async def first(arguments, environment, run_super):
            order.append("first")
            return await run_super()

        async def second(arguments, environment, run_super):
            order.append("second")
            return await run_super()

        tasks = registry(
            Contributor("plugin1", [task("task1").action(original).build()]),
            Contributor("plugin2", [override("task1").action(first).build()]),
            Contributor(None, [override("task1").action(second).build()]),
        )
        self.assertEqual(await tasks.get_task("task1").run(), "original")
        self.assertEqual(order, ["second", "first", "original"])

    async def testRunSuperForwardsSameArguments(self):
        seen = []

        def original(arguments, environment):
            seen.append(arguments)

        async def extended(arguments, environment, run_super):
            seen.append(arguments)
            await run_super()

        tasks = registry(Contributor(None, [
            task("task1").option("param1").action(original).build(),
            override("task1").flag("flag1").action(extended).build(),
        ]))
        await tasks.get_task("task1").run({"param1": "value", "flag1": True})
        self.assertEqual(seen, [{"param1": "value", "flag1": True}] * 2)
        self.assertIs(seen[0], seen[1])

    async def testRunSuperNarrowedArguments(self):
        seen = []

        def original(arguments, environment):
            seen.append(dict(arguments))
            return arguments["param1"]

        async def narrowing(arguments, environment, run_super):
            return await run_super({"param1": arguments["param1"].upper()})

        tasks = registry(Contributor(None, [
            task("task1").option("param1").action(original).build(),
            override("task1").flag("flag1").action(narrowing).build(),
        ]))
        self.assertEqual(await tasks.get_task("task1").run({"param1": "value"}), "VALUE")
        self.assertEqual(seen, [{"param1": "VALUE"}])

    async def testRunSuperRequiresMapping(self):
        async def wrong(arguments, environment, run_super):
            return await run_super(["param1"])

        tasks = registry(Contributor(None, [
            task("task1").action(lambda arguments, environment: None).build(),
            override("task1").action(wrong).build(),
        ]))
        with self.assertRaises(TypeError):
            await tasks.get_task("task1").run()

    async def testShortCircuit(self):
        called = []

        def original(arguments, environment):
            called.append("original")

        def replacing(arguments, environment, run_super):
            return "replaced"

        tasks = registry(Contributor(None, [
            task("task1").action(original).build(),
            override("task1").action(replacing).build(),
        ]))
        self.assertEqual(await tasks.get_task("task1").run(), "replaced")
        self.assertEqual(called, [])

    async def testRunSuperName(self):
        names = []

        async def inspecting(arguments, environment, run_super):
            names.append(run_super.__name__)

        tasks = registry(Contributor(None, [
            task("task1").action(lambda arguments, environment: None).build(),
            override("task1").action(inspecting).build(),
        ]))
        await tasks.get_task("task1").run()
        self.assertEqual(names, ["run_super"])

    async def testActionErrorsPropagate(self):
        def failing(arguments, environment):
            raise LookupError("boom")

        tasks = registry(Contributor(None, [task("task1").action(failing).build()]))
        with self.assertRaisesRegex(LookupError, "boom"):
            await tasks.get_task("task1").run()


class TestEmptyTasks(IsolatedAsyncioTestCase):

    async def testEmptyTaskCannotRun(self):
        tasks = registry(Contributor(None, [empty("task1").build()]))
        with self.assertRaises(EmptyTaskError) as context:
            await tasks.get_task("task1").run()
        self.assertEqual(context.exception.code, FaultCode.EMPTY_TASK)
        self.assertEqual(context.exception.options["task"], "task1")

    async def testOverriddenEmptyTaskRuns(self):
        async def filled(arguments, environment, run_super):
            return ("filled", await run_super())

        tasks = registry(Contributor(None, [
            empty("task1").build(),
            override("task1").action(filled).build(),
        ]))
        self.assertEqual(await tasks.get_task("task1").run(), ("filled", None))


class TestReferenceActions(IsolatedAsyncioTestCase):

    async def testDefaultExport(self):
        sentinel = object()
        tasks = registry(Contributor(None, [task("task1").option("message").action(fixture("echo")).build()]), environment=sentinel)
        result = await tasks.get_task("task1").run({"message": "hi"})
        self.assertEqual(result, {"arguments": {"message": "hi"}, "environment": sentinel})

    async def testNamedExport(self):
        tasks = registry(Contributor(None, [task("task1").option("message").action(fixture("echo", "shout")).build()]))
        self.assertEqual(await tasks.get_task("task1").run({"message": "hi"}), "HI")

    async def testFileUrl(self):
        tasks = registry(Contributor(None, [task("task1").option("message").action("file://" + fixture("echo", "shout")).build()]))
        self.assertEqual(await tasks.get_task("task1").run({"message": "hi"}), "HI")

    async def testModuleReference(self):
        tasks = registry(Contributor(None, [task("task1").action("operator:is_").build()]), environment={})
        self.assertFalse(await tasks.get_task("task1").run())

    async def testAsyncOverrideReference(self):
        tasks = registry(Contributor(None, [
            task("task1").option("message").action(fixture("echo")).build(),
            override("task1").action(fixture("replace")).build(),
        ]))
        self.assertEqual(await tasks.get_task("task1").run({"message": "hi"}), "replaced")

    async def testMissingExport(self):
        tasks = registry(Contributor(None, [task("task1").action(fixture("no_action")).build()]))
        with self.assertRaises(InvalidActionError) as context:
            await tasks.get_task("task1").run()
        self.assertEqual(context.exception.options["task"], "task1")

    async def testNonCallableExport(self):
        tasks = registry(Contributor(None, [task("task1").action(fixture("not_callable")).build()]))
        with self.assertRaises(InvalidActionError):
            await tasks.get_task("task1").run()

    async def testUnimportableModule(self):
        tasks = registry(Contributor(None, [task("task1").action(fixture("broken")).build()]))
        with self.assertRaises(InvalidActionUrlError) as context:
            await tasks.get_task("task1").run()
        self.assertIsInstance(context.exception.__cause__, RuntimeError)
        self.assertEqual(context.exception.options["action"], fixture("broken"))

    async def testMissingFile(self):
        tasks = registry(Contributor(None, [task("task1").action(fixture("does_not_exist")).build()]))
        with self.assertRaises(InvalidActionUrlError):
            await tasks.get_task("task1").run()

    async def testResolutionIsLazy(self):
        # Broken references only fail when the chain actually reaches them.
        async def replacing(arguments, environment, run_super):
            return "replaced"

        tasks = registry(Contributor(None, [
            task("task1").action(fixture("broken")).build(),
            override("task1").action(replacing).build(),
        ]))
        self.assertEqual(await tasks.get_task("task1").run(), "replaced")

    async def testLoadedOnce(self):
        tasks = registry(Contributor(None, [task("task1").option("message").action(fixture("echo", "shout")).build()]))
        resolved = tasks.get_task("task1")
        self.assertIs(resolved.load_action(0), resolved.load_action(0))


class TestInvocation(IsolatedAsyncioTestCase):

    async def testCompleted(self):
        tasks = registry(Contributor(None, [task("task1").action(lambda arguments, environment: 1).build()]))
        invocation = Invocation(tasks.get_task("task1"))
        self.assertIs(invocation.state, InvocationState.PENDING)
        self.assertEqual(await invocation.run(), 1)
        self.assertIs(invocation.state, InvocationState.COMPLETED)

    async def testFailedValidation(self):
        called = []
        tasks = registry(Contributor(None, [task("task1").option("param1").action(lambda arguments, environment: called.append(1)).build()]))
        invocation = Invocation(tasks.get_task("task1"), {})
        with self.assertRaises(MissingValueForParameterError):
            await invocation.run()
        self.assertIs(invocation.state, InvocationState.FAILED_VALIDATION)
        self.assertEqual(called, [])

    async def testEmptyTaskFailsValidation(self):
        tasks = registry(Contributor(None, [empty("task1").build()]))
        invocation = Invocation(tasks.get_task("task1"))
        with self.assertRaises(EmptyTaskError):
            await invocation.run()
        self.assertIs(invocation.state, InvocationState.FAILED_VALIDATION)

    async def testFailedRuntime(self):
        def failing(arguments, environment):
            raise ValueError("boom")

        tasks = registry(Contributor(None, [task("task1").action(failing).build()]))
        invocation = Invocation(tasks.get_task("task1"))
        with self.assertRaises(ValueError):
            await invocation.run()
        self.assertIs(invocation.state, InvocationState.FAILED_RUNTIME)

    async def testSingleUse(self):
        tasks = registry(Contributor(None, [task("task1").action(lambda arguments, environment: 1).build()]))
        invocation = Invocation(tasks.get_task("task1"))
        await invocation.run()
        with self.assertRaises(RuntimeError):
            await invocation.run()


if __name__ == "__main__":
    unittest.main()
