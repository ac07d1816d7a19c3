"""
Accessor dispatch tests.

Scope
- Call shapes: obj.P() reads, obj.P(value, ...) writes; explicit read/write/dispatch.
- Access enforcement and the public get_<P>/set_<P> bypass.
- Late binding: handlers resolved through the runtime class's ancestor order.
- Resolution cache invalidation and missing-handler faults.

Conventions
- Test method names follow CamelCase per project convention.
- Modules are named test_<module>.py so unittest discovery and pytest collect them.
"""
import unittest
from unittest import TestCase

from attributed import (
    Access,
    Accessor,
    Attributed,
    prop,
    define_property,
    AccessDeniedError,
    UndefinedHandlerError,
)


class TestAccessControl(TestCase):

    def setUp(self):
        class Person(Attributed):
            age = prop("read", value=30)
            secret = prop("write")

        self.Person = Person

    def testReadOnlyWriteDenied(self):
        person = self.Person()
        with self.assertRaises(AccessDeniedError) as context:
            person.age(31)
        self.assertIn("read-only", context.exception.message)
        self.assertEqual(context.exception.options["property"], "age")
        self.assertIs(context.exception.options["mode"], Access.WRITE)
        self.assertIs(context.exception.options["owner"], self.Person)
        self.assertEqual(person.age(), 30)

    def testWriteOnlyReadDenied(self):
        person = self.Person()
        self.assertIs(person.secret("s3cr3t"), person)
        with self.assertRaises(AccessDeniedError) as context:
            person.secret()
        self.assertIn("write-only", context.exception.message)

    def testBypassMethodsStayPublic(self):
        person = self.Person()
        self.assertIs(person.set_age(40), person)
        self.assertEqual(person.age(), 40)
        self.assertEqual(person.get_secret(), None)


class TestCallShapes(TestCase):

    def setUp(self):
        class Counter(Attributed):
            count = prop("read", "write", value=0)

            @prop("write", "setter")
            def pair(self, first, second):
                self["pair"] = first, second
                return 42

        self.Counter = Counter

    def testClassLookupReturnsAccessor(self):
        self.assertIsInstance(self.Counter.count, Accessor)
        self.assertEqual(self.Counter.count.descriptor.name, "count")
        self.assertEqual(self.Counter.count.__name__, "count")

    def testExplicitModes(self):
        counter = self.Counter()
        self.assertIs(self.Counter.count.write(counter, 3), counter)
        self.assertEqual(self.Counter.count.read(counter), 3)
        self.assertEqual(self.Counter.count(counter), 3)
        self.Counter.count.dispatch(counter, "write", (7,))
        self.assertEqual(self.Counter.count.dispatch(counter, Access.READ), 7)

    def testWriteWithoutValues(self):
        counter = self.Counter()
        with self.assertRaises(TypeError):
            self.Counter.count.write(counter)
        with self.assertRaises(TypeError):
            self.Counter.count.dispatch(counter, "write")
        with self.assertRaises(TypeError):
            self.Counter.pair.write(counter)
        self.assertEqual(counter.count(), 0)
        self.assertEqual(counter["count"], 0)

    def testResultIsReturnedUnmodified(self):
        counter = self.Counter()
        self.assertEqual(counter.pair(1, 2), 42)
        self.assertEqual(counter["pair"], (1, 2))

    def testRepr(self):
        self.assertTrue(repr(self.Counter.count).endswith("Counter.count (read, write)>"))
        self.assertEqual(dict(self.Counter.count.__rich_repr__())["name"], "count")


class TestLateBinding(TestCase):

    def testRuntimeClassOrderWins(self):
        class A(Attributed):
            value = prop("read", value="a")

        class B(A):
            def get_value(self):
                return "b"

        class C(A):
            pass

        class D(C, B):
            pass

        self.assertEqual(A().value(), "a")
        self.assertEqual(C().value(), "a")
        self.assertEqual(D().value(), "b")

    def testCustomSubclassHandlerWithoutInjection(self):
        class Base(Attributed):
            label = prop("read", "write")

        class Child(Base):
            def set_label(self, value):
                self["label"] = value.title()
                return self

        child = Child()
        child.label("hello world")
        self.assertEqual(child.label(), "Hello World")

    def testCacheInvalidatedByNewDeclarations(self):
        class Sample(Attributed):
            value = prop("read", value=1)

        sample = Sample()
        self.assertEqual(sample.value(), 1)
        define_property(Sample, "value", "read", getter=lambda self: 99)
        self.assertEqual(sample.value(), 99)

    def testMissingHandler(self):
        class Sample(Attributed):
            value = prop("read", value=1)

        del Sample.get_value
        with self.assertRaises(UndefinedHandlerError) as context:
            Sample().value()
        self.assertEqual(context.exception.options["property"], "value")


if __name__ == "__main__":
    unittest.main()
