"""
Utility module tests.

Scope
- Unset sentinel semantics (falsy, singleton, copy-stable, sealed).
- coalesce() and rename() helpers.
- IntrospectiveType records: mirrored read-only fields, repr and rich repr.
- Class-model collaborators: linearize(), clone(), define(), resolve().

Conventions
- Test method names follow CamelCase per project convention.
- Modules are named test_<module>.py so unittest discovery and pytest collect them.
"""
import copy
import unittest
from unittest import TestCase

from attributed.utils import *


class TestUnset(TestCase):

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testCopiesPreserveIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(clone({"value": Unset})["value"], Unset)

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            class Other(UnsetType):
                pass

    def testNoUnionOperators(self):
        with self.assertRaises(TypeError):
            Unset | int
        with self.assertRaises(TypeError):
            int | Unset


class TestHelpers(TestCase):

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameDirect(self):
        def original():
            pass

        self.assertIs(rename(original, "renamed"), original)
        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")

    def testRenameDecorator(self):
        @rename("get_count")
        def getter(self):
            pass

        self.assertEqual(getter.__name__, "get_count")

    def testRenameRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()


class TestIntrospectiveType(TestCase):

    def setUp(self):
        class SampleRecord(metaclass=IntrospectiveType):
            __introspectable__ = ("alpha", "beta")

            def __init__(self, alpha, beta):
                self._alpha = alpha
                self._beta = beta

        self.SampleRecord = SampleRecord

    def testTypename(self):
        self.assertEqual(self.SampleRecord.__typename__, "sample-record")

    def testMirrorIsReadOnly(self):
        record = self.SampleRecord([1, 2], "b")
        with self.assertRaises(AttributeError):
            record.alpha = []

    def testMirrorHandsOutCopies(self):
        record = self.SampleRecord([1, 2], "b")
        record.alpha.append(3)
        self.assertEqual(record.alpha, [1, 2])

    def testRepr(self):
        self.assertEqual(repr(self.SampleRecord(1, "b")), "sample-record(alpha=1, beta='b')")

    def testRichRepr(self):
        self.assertEqual(list(self.SampleRecord(1, 2).__rich_repr__()), [("alpha", 1), ("beta", 2)])


class TestCollaborators(TestCase):

    def testLinearizeDiamond(self):
        class A:
            pass

        class B(A):
            pass

        class C(A):
            pass

        class D(B, C):
            pass

        self.assertEqual(linearize(D), (D, B, C, A, object))

    def testLinearizeRejectsInstances(self):
        with self.assertRaises(TypeError):
            linearize(object())

    def testCloneIsDeep(self):
        original = {"items": [[1], [2]]}
        copied = clone(original)
        copied["items"][0].append(9)
        self.assertEqual(original, {"items": [[1], [2]]})

    def testDefineInstallsAndReturns(self):
        class Host:
            pass

        def method(self):
            return "called"

        self.assertIs(define(Host, "method", method), method)
        self.assertEqual(Host().method(), "called")

    def testDefineRejectsInvalidNames(self):
        class Host:
            pass

        with self.assertRaises(TypeError):
            define(Host, "not an identifier", lambda self: None)

    def testResolveReturnsOwnerAndRawCallable(self):
        class Base:
            def method(self):
                pass

        class Child(Base):
            pass

        owner, found = resolve(Child, "method")
        self.assertIs(owner, Base)
        self.assertIs(found, vars(Base)["method"])

    def testResolveSkipsNonCallables(self):
        class Base:
            def method(self):
                pass

        class Child(Base):
            method = 42

        self.assertIs(resolve(Child, "method")[0], Base)

    def testResolveStaticMethod(self):
        class Host:
            @staticmethod
            def helper():
                pass

        self.assertIs(resolve(Host, "helper")[0], Host)

    def testResolveMissing(self):
        class Host:
            pass

        self.assertEqual(resolve(Host, "missing"), (Unset, Unset))


if __name__ == "__main__":
    unittest.main()
