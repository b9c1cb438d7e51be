"""
Tests for the internal helpers (Unset, coalesce, rename, mirror).

This module verifies:
- Singleton identity, falsy semantics and representation of Unset.
- Copying, deep copying and pickling preserve Unset's identity.
- Finality (UnsetType cannot be subclassed).
- coalesce/rename/mirror contracts.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from bindery.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the Unset sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyPreservesIdentity(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPicklePreservesIdentity(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            class Subclass(UnsetType):  # NOQA: F-841
                pass


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and mirror().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameFunctionForm(self) -> None:
        def f():
            pass

        self.assertIs(rename(f, "work"), f)
        self.assertEqual((f.__name__, f.__qualname__), ("work", "work"))

    def testRenameDecoratorForm(self) -> None:
        @rename("work")
        def f():
            pass

        self.assertEqual(f.__name__, "work")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(len, "size")
        with self.assertRaises(TypeError):
            rename(1, "x")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorFreezesContainers(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")
            name = mirror("name")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._name = "holder"

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        with self.assertRaises(TypeError):
            holder.table["b"] = 2
        self.assertEqual(holder.name, "holder")
        with self.assertRaises(AttributeError):
            holder.items = ()


if __name__ == "__main__":
    unittest.main()
