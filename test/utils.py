# python
"""
Utils module behavioral tests (sentinel, helpers and module globbing).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from unittest import TestCase

from taskloom.utils import Unset, UnsetType, coalesce, rename, mirror, kebab, mglob


class TestUnset(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFalsey(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testSealed(self):
        with self.assertRaises(TypeError):
            class Custom(UnsetType):
                pass

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):

    def testDirectForm(self):
        def function():
            pass
        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("renamed")
        def function():
            pass
        self.assertEqual(function.__name__, "renamed")

    def testInvalidArguments(self):
        with self.assertRaises(TypeError):
            rename(5, "renamed")
        with self.assertRaises(TypeError):
            rename(len, "renamed")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):

    def testReturnsCopies(self):
        class Record:
            items = mirror("items")
            pair = mirror("pair")

            def __init__(self):
                self._items = [1, 2]
                self._pair = (1, [2])

        record = Record()
        record.items.append(3)
        self.assertEqual(record.items, [1, 2])
        self.assertEqual(record.pair, (1, [2]))
        self.assertIsNot(record.pair[1], record._pair[1])
        with self.assertRaises(AttributeError):
            record.items = []


class TestKebab(TestCase):

    def testSpellings(self):
        self.assertEqual(kebab("param_one"), "param-one")
        self.assertEqual(kebab("paramOne"), "param-one")
        self.assertEqual(kebab("target"), "target")
        self.assertEqual(kebab("dryRun2x"), "dry-run2x")

    def testRequiresString(self):
        with self.assertRaises(TypeError):
            kebab(5)


class TestMglob(TestCase):

    def testConcreteNameReturnedAsIs(self):
        self.assertEqual(mglob("taskloom.commands"), ["taskloom.commands"])

    def testWildcard(self):
        modules = mglob("taskloom.*")
        self.assertIn("taskloom.tasks", modules)
        self.assertIn("taskloom.faults", modules)
        self.assertEqual(modules, sorted(modules))

    def testCharacterClass(self):
        self.assertEqual(mglob("taskloom.[bc]*"), ["taskloom.binding", "taskloom.builders", "taskloom.chain", "taskloom.commands"])

    def testMissingPackage(self):
        self.assertEqual(mglob("nonexistent_package_xyz.*"), [])

    def testInvalidPatterns(self):
        with self.assertRaises(ValueError):
            mglob("   ")
        with self.assertRaises(ValueError):
            mglob("*.tasks")
        with self.assertRaises(TypeError):
            mglob(None)


if __name__ == "__main__":
    unittest.main()
