"""
Tests for the internal helpers.

This module verifies:
- The Unset sentinel (singleton, falsy, printable, final, usable in unions).
- coalesce() only replacing Unset.
- rename() in both call forms.
- view() exposing containers immutably.
"""
import unittest
from types import MappingProxyType
from unittest import TestCase

from argline.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(Unset, UnsetType())

    def testFalsyAndRepr(self) -> None:
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionIsinstance(self) -> None:
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testSchemaDefaultsUseSentinel(self) -> None:
        # The metaclass body reads Unset at import time.
        self.assertIs(SchemaType.__displayable__, Unset)

        class Sample(metaclass=SchemaType):
            __introspectable__ = ("name",)

            def __init__(self):
                self._name = "sample"

        self.assertEqual(repr(Sample()), "sample(name='sample')")

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and view().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)

    def testRenameDirect(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testRenameArgumentCount(self) -> None:
        with self.assertRaises(TypeError):
            rename()

    def testViewContainers(self) -> None:
        class Holder:
            items = view("items")
            table = view("table")
            tags = view("tags")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._tags = {"x"}

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.tags, frozenset({"x"}))
        with self.assertRaises(AttributeError):
            holder.items = ()


if __name__ == '__main__':
    unittest.main()
