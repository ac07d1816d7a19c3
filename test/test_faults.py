"""
Fault module tests.

Scope
- FaultCode normalization through the host's __codes__ mapping.
- AttributedException options (defaults, overrides, read-only view) and __replace__.
- Rich rendering (plain and panel) and report() on the stderr console.

Conventions
- Test method names follow CamelCase per project convention.
- Modules are named test_<module>.py so unittest discovery and pytest collect them.
- Host configuration (__prog__, __codes__, __styles__) is installed on __main__
  for the duration of one test and restored afterwards.
"""
import unittest
from unittest import TestCase, mock

from rich.console import Console

from attributed import faults
from attributed.faults import *
from attributed.utils import Unset


class HostConfigured(TestCase):

    def configure(self, **attributes):
        main = __import__("__main__")
        for name, value in attributes.items():
            previous = getattr(main, name, Unset)
            setattr(main, name, value)
            if previous is Unset:
                self.addCleanup(delattr, main, name)
            else:
                self.addCleanup(setattr, main, name, previous)

    def render(self, renderable):
        console = Console(record=True, width=120, color_system=None, force_terminal=False)
        console.print(renderable)
        return console.export_text()


class TestFaultCode(HostConfigured):

    def testNormalizeDefaultsToNumericValue(self):
        self.configure(__codes__={})
        self.assertEqual(FaultCode.ACCESS_DENIED.normalize(), "22101")

    def testNormalizeUsesHostMapping(self):
        self.configure(__codes__={FaultCode.ACCESS_DENIED: "E-ACCESS"})
        self.assertEqual(FaultCode.ACCESS_DENIED.normalize(), "E-ACCESS")
        self.assertEqual(FaultCode.UNDEFINED_HANDLER.normalize(), "22102")

    def testCodesAreGroupedByPhase(self):
        self.assertTrue(all(21100 < code < 21300 for code in (
            FaultCode.INVALID_SPECIFIER,
            FaultCode.MALFORMED_INITIALIZER,
            FaultCode.UNRESOLVED_HANDLER,
        )))
        self.assertTrue(all(22100 < code < 22300 for code in (
            FaultCode.ACCESS_DENIED,
            FaultCode.EXPRESSION_FAILURE,
        )))


class TestAttributedException(HostConfigured):

    def testOptionsCarryClassDefaults(self):
        error = AccessDeniedError("denied", property="age")
        self.assertEqual(error.message, "denied")
        self.assertEqual(str(error), "denied")
        self.assertIs(error.options["code"], FaultCode.ACCESS_DENIED)
        self.assertEqual(error.options["title"], "access denied")
        self.assertEqual(error.options["property"], "age")

    def testOptionsOverrideCode(self):
        error = DeclarationError("bad", code=FaultCode.MISSING_ACCESS_MODE)
        self.assertIs(error.options["code"], FaultCode.MISSING_ACCESS_MODE)

    def testOptionsAreReadOnly(self):
        error = DeclarationError("bad")
        with self.assertRaises(TypeError):
            error.options["code"] = FaultCode.INVALID_PARAMETER

    def testReplace(self):
        error = UndefinedHandlerError("missing", hint="define it")
        replaced = error.__replace__(fancy=True)
        self.assertIsNot(replaced, error)
        self.assertIsInstance(replaced, UndefinedHandlerError)
        self.assertEqual(replaced.message, "missing")
        self.assertTrue(replaced.options["fancy"])
        self.assertEqual(replaced.options["hint"], "define it")
        self.assertNotIn("fancy", error.options)

    def testHierarchy(self):
        for kind in (
            DeclarationError,
            HandlerResolutionError,
            AccessDeniedError,
            UndefinedHandlerError,
            ExpressionEvaluationError,
        ):
            self.assertTrue(issubclass(kind, AttributedException))

    def testRenderPlain(self):
        self.configure(__prog__="demo", __codes__={})
        text = self.render(DeclarationError("bad specifier", hint="use 'read'", colorful=False))
        self.assertIn("[ demo — 21101 | Invalid Declaration ]", text)
        self.assertIn("bad specifier", text)
        self.assertIn("use 'read'", text)

    def testRenderFancy(self):
        self.configure(__prog__="demo", __styles__={"code": "bold red"})
        text = self.render(AccessDeniedError("'age' is read-only, write access denied", fancy=True))
        self.assertIn("demo", text)
        self.assertIn("Access Denied", text)
        self.assertIn("read-only", text)
        self.assertIn("╭", text)


class TestReport(HostConfigured):

    def testReportPrintsWithoutRaising(self):
        recorder = Console(record=True, width=120, color_system=None, force_terminal=False)
        self.configure(__prog__="demo")
        with mock.patch.object(faults, "console", recorder):
            report(HandlerResolutionError("undefined getter 'compute'"), colorful=False)
        text = recorder.export_text()
        self.assertIn("Unresolved Handler", text)
        self.assertIn("undefined getter 'compute'", text)

    def testReportRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            report(ValueError("nope"))


if __name__ == "__main__":
    unittest.main()
