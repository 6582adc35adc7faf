"""
Registry behavioral tests (registration, lookup, listing, parsing).

Scope
- register()/make(): variant selection, replacement, argument checks.
- lookup()/enumerate()/print(): exact matches, sorted rows, live values.
- parse(): argv sources (Unset, str, iterables), recorded faults, strict modes.
- The end-to-end properties a caller relies on (boolean presence, last write
  wins, stop at the first positional, unknown flags consume nothing).

Conventions
- Test method names follow CamelCase per project convention.
"""
from __future__ import annotations

import io
import os.path
import sys
import tempfile
import unittest
from types import SimpleNamespace
from unittest import TestCase
from unittest.mock import patch

from flagstore import (
    Registry,
    Entry,
    Variable,
    OptionKind,
    Boolean,
    Text,
    Convertible,
    Sink,
    FaultCode,
    UnknownFlagError,
    ParseExit,
)


class TestRegistration(TestCase):
    """
    register() and make().
    """

    def setUp(self) -> None:
        """
        Start from an empty registry.
        """
        self.registry = Registry()

    def testMakeInfersVariant(self) -> None:
        """
        The current value picks the variant.
        """
        cases = {
            "y": (Variable(False), Boolean),
            "t": (Variable("x"), Text),
            "p": (Variable(100.0), Convertible),
            "l": (Variable(io.StringIO()), Sink),
        }
        for name, (variable, variant) in cases.items():
            with self.subTest(name=name):
                self.assertIsInstance(self.registry.make(variable, name), variant)
        self.assertEqual(len(self.registry), 4)

    def testMakeWithConverter(self) -> None:
        """
        type= selects a Convertible.
        """
        option = self.registry.make(Variable(), "n", type=int)
        self.assertIsInstance(option, Convertible)
        self.assertIs(option.type, int)

    def testMakeWithMode(self) -> None:
        """
        mode= selects a Sink.
        """
        self.assertIsInstance(self.registry.make(Variable(), "l", mode="a"), Sink)

    def testMakeWithExplicitKind(self) -> None:
        """
        kind= forces the variant and must be a known kind.
        """
        option = self.registry.make(Variable(None), "t", kind="text")
        self.assertIs(option.kind, OptionKind.TEXT)
        with self.assertRaises(ValueError):
            self.registry.make(Variable(None), "t", kind="list")

    def testMakeWithKeyOnMapping(self) -> None:
        """
        key= binds a mapping entry.
        """
        settings = {"port": 80}
        self.registry.make(settings, "port", key="port")
        self.registry.parse(["prog", "-port", "8080"])
        self.assertEqual(settings["port"], 8080)

    def testMakeWithKeyOnObject(self) -> None:
        """
        key= binds an object attribute.
        """
        namespace = SimpleNamespace(verbose=False)
        self.registry.make(namespace, "v", key="verbose")
        self.registry.parse(["prog", "-v"])
        self.assertTrue(namespace.verbose)

    def testMakeSeedsMissingMappingKey(self) -> None:
        """
        A sink on an absent key is seeded with None and listed.
        """
        settings = {}
        option = self.registry.make(settings, "l", key="log", mode="w")
        self.assertIsInstance(option, Sink)
        self.assertEqual(settings, {"log": None})
        self.assertEqual(self.registry.enumerate(), [Entry("l", "file", "sink")])
        buffer = io.StringIO()
        self.registry.print(buffer)
        self.assertEqual(buffer.getvalue(), "option\tdefault\ttype\nl\tfile\tsink\n")

    def testMakeSeedsMissingAttribute(self) -> None:
        """
        A convertible on an absent attribute is seeded with None.
        """
        namespace = SimpleNamespace()
        self.registry.make(namespace, "n", key="count", type=int)
        self.assertIsNone(namespace.count)
        self.registry.parse(["prog", "-n", "3"])
        self.assertEqual(namespace.count, 3)

    def testMakeKeepsExistingValueWhenSeeding(self) -> None:
        """
        An existing value is never overwritten by seeding.
        """
        settings = {"count": 7}
        self.registry.make(settings, "n", key="count", type=int)
        self.assertEqual(settings["count"], 7)

    def testMakeWithoutVariantHintNeedsExistingKey(self) -> None:
        """
        Inference reads the key, so it must exist.
        """
        with self.assertRaises(KeyError):
            self.registry.make({}, "l", key="log")

    def testMakeKeyIsKeywordOnly(self) -> None:
        """
        key cannot be passed positionally.
        """
        with self.assertRaises(TypeError):
            self.registry.make({"port": 80}, "port", "port")

    def testMakeRejectsUnknownEncoding(self) -> None:
        """
        An unknown encoding fails before anything is registered.
        """
        with self.assertRaises(ValueError):
            self.registry.make(Variable(), "l", encoding="no-such-codec")
        self.assertNotIn("l", self.registry)

    def testMakeRejectsUnbindableTarget(self) -> None:
        """
        A plain value without a key is refused.
        """
        with self.assertRaises(TypeError):
            self.registry.make(42, "n")

    def testRegisterReplaces(self) -> None:
        """
        Registering a name again replaces the option.
        """
        first = Variable(0)
        second = Variable(0)
        self.registry.make(first, "n")
        replacement = self.registry.make(second, "n")
        self.assertIs(self.registry.lookup("n"), replacement)
        self.registry.parse(["prog", "-n", "5"])
        self.assertEqual((first.value, second.value), (0, 5))
        self.assertEqual(len(self.registry), 1)

    def testRegisterAcceptsAnyName(self) -> None:
        """
        Names are not validated.
        """
        option = Boolean(Variable(False))
        self.assertIs(self.registry.register("", option), option)
        self.assertIn("", self.registry)

    def testRegisterRejectsBadArguments(self) -> None:
        """
        The name must be a string and the handle an Option.
        """
        with self.assertRaises(TypeError):
            self.registry.register(1, Boolean(Variable(False)))
        with self.assertRaises(TypeError):
            self.registry.register("y", Variable(False))

    def testRegistrationIsLogged(self) -> None:
        """
        Registrations and replacements are logged at DEBUG.
        """
        with self.assertLogs("flagstore.registry", level="DEBUG") as logs:
            self.registry.make(Variable(False), "y")
            self.registry.make(Variable(False), "y")
        self.assertEqual(len(logs.output), 2)
        self.assertIn("replacing", logs.output[1])

    def testLookup(self) -> None:
        """
        lookup() is an exact match on the bare name.
        """
        option = self.registry.make(Variable(False), "y")
        self.assertIs(self.registry.lookup("y"), option)
        self.assertIsNone(self.registry.lookup("Y"))
        self.assertIsNone(self.registry.lookup("-y"))

    def testPrefixValidation(self) -> None:
        """
        The prefix must be a non-empty string.
        """
        with self.assertRaises(ValueError):
            Registry(prefix="")
        with self.assertRaises(TypeError):
            Registry(prefix=1)


class TestListing(TestCase):
    """
    enumerate(), iteration and print().
    """

    def setUp(self) -> None:
        """
        Register a boolean, a float and a text option.
        """
        self.registry = Registry()
        self.yesno = Variable(False)
        self.param = Variable(100.0)
        self.test = Variable("")
        self.registry.make(self.yesno, "y")
        self.registry.make(self.param, "p")
        self.registry.make(self.test, "t")

    def testEnumerateIsSortedAndLive(self) -> None:
        """
        Rows are sorted by name and render current values.
        """
        self.param.set(2.5)
        self.assertEqual(self.registry.enumerate(), [
            Entry("p", "2.5", "convertible[float]"),
            Entry("t", "", "text"),
            Entry("y", "false", "bool"),
        ])

    def testIterationIsSorted(self) -> None:
        """
        Iteration yields sorted names.
        """
        self.assertEqual(list(self.registry), ["p", "t", "y"])

    def testPlainPrint(self) -> None:
        """
        The plain listing is tab separated under a fixed header.
        """
        buffer = io.StringIO()
        self.registry.print(buffer)
        self.assertEqual(buffer.getvalue(), (
            "option\tdefault\ttype\n"
            "p\t100.0\tconvertible[float]\n"
            "t\t\ttext\n"
            "y\tfalse\tbool\n"
        ))

    def testPrintDefaultsToStdout(self) -> None:
        """
        Without a file the listing goes to sys.stdout.
        """
        with patch.object(sys, "stdout", io.StringIO()) as stdout:
            self.registry.print()
        self.assertTrue(stdout.getvalue().startswith("option\tdefault\ttype\n"))

    def testFancyPrint(self) -> None:
        """
        The fancy listing renders a rich table.
        """
        registry = Registry(fancy=True, colorful=False)
        registry.make(self.param, "p")
        registry.make(self.yesno, "y")
        buffer = io.StringIO()
        registry.print(buffer)
        output = buffer.getvalue()
        for fragment in ("option", "value", "type", "convertible[float]", "100.0", "false"):
            self.assertIn(fragment, output)

    def testRowCountMatchesRegistrations(self) -> None:
        """
        One row per registration, plus the header.
        """
        self.registry.parse(["prog", "-y"])
        self.assertEqual(len(self.registry.enumerate()), 3)
        buffer = io.StringIO()
        self.registry.print(buffer)
        self.assertEqual(len(buffer.getvalue().splitlines()), 1 + 3)

    def testRepr(self) -> None:
        """
        repr() lists the prefix, mode and names.
        """
        self.assertEqual(repr(self.registry), "registry(prefix='-', strict=False, flags=['p', 't', 'y'])")


class TestParsing(TestCase):
    """
    Registry.parse() argument sources and faults.
    """

    def setUp(self) -> None:
        """
        Register an int option.
        """
        self.registry = Registry()
        self.count = Variable(0)
        self.registry.make(self.count, "n")

    def testParseShellString(self) -> None:
        """
        A string is split like a shell command line.
        """
        self.assertEqual(self.registry.parse("prog -n 3 'a file'"), 3)
        self.assertEqual(self.count.value, 3)

    def testParseIterable(self) -> None:
        """
        Any iterable of strings is accepted.
        """
        self.assertEqual(self.registry.parse(iter(["prog", "-n", "4"])), 3)
        self.assertEqual(self.count.value, 4)

    def testParseDefaultsToSysArgv(self) -> None:
        """
        Without arguments sys.argv is parsed.
        """
        with patch.object(sys, "argv", ["prog", "-n", "5", "input.txt"]):
            self.assertEqual(self.registry.parse(), 3)
        self.assertEqual(self.count.value, 5)

    def testParseRejectsNonIterable(self) -> None:
        """
        Other argument types are refused.
        """
        with self.assertRaises(TypeError):
            self.registry.parse(42)

    def testFaultsAreReported(self) -> None:
        """
        Lenient parses record their faults.
        """
        self.registry.parse(["prog", "-z", "-n", "abc"])
        self.assertEqual(
            [(fault.kind, fault.token) for fault in self.registry.faults],
            [(FaultCode.UNKNOWN_FLAG, "-z"), (FaultCode.CONVERSION_FAILURE, "abc")],
        )
        self.assertIsInstance(self.registry.faults, tuple)

    def testFaultsReflectLastParseOnly(self) -> None:
        """
        faults is reset by every parse.
        """
        self.registry.parse(["prog", "-z"])
        self.registry.parse(["prog", "-n", "1"])
        self.assertEqual(self.registry.faults, ())

    def testStrictRegistryRaisesAndRecords(self) -> None:
        """
        Strict registries raise and still record the fault.
        """
        registry = Registry(strict=True)
        with self.assertRaises(UnknownFlagError):
            registry.parse(["prog", "-z"])
        self.assertEqual(len(registry.faults), 1)

    def testStrictDeferredRegistry(self) -> None:
        """
        Strict deferred registries raise one group after the full walk.
        """
        registry = Registry(strict=True, deferred=True)
        registry.make(self.count, "n")
        with self.assertRaises(ParseExit) as context:
            registry.parse(["prog", "-a", "-b", "-n", "7"])
        self.assertEqual(len(context.exception.exceptions), 2)
        self.assertEqual(self.count.value, 7)

    def testCustomPrefix(self) -> None:
        """
        The registry prefix reaches the parser.
        """
        registry = Registry(prefix="+")
        registry.make(self.count, "n")
        self.assertEqual(registry.parse(["prog", "+n", "2", "-n", "3"]), 3)
        self.assertEqual(self.count.value, 2)


class TestCommandLineProperties(TestCase):
    """
    What a caller relies on when binding variables and parsing once.
    """

    def setUp(self) -> None:
        """
        Start from an empty registry.
        """
        self.registry = Registry()

    def testBooleanAbsentKeepsValue(self) -> None:
        """
        An absent boolean flag keeps its value.
        """
        yesno = Variable(False)
        self.registry.make(yesno, "y")
        self.registry.parse(["prog"])
        self.assertFalse(yesno.value)

    def testBooleanPresentConsumesOneSlot(self) -> None:
        """
        A present boolean flag takes one slot.
        """
        yesno = Variable(False)
        self.registry.make(yesno, "y")
        self.assertEqual(self.registry.parse(["prog", "-y"]), 2)
        self.assertTrue(yesno.value)

    def testTextConsumesTwoSlots(self) -> None:
        """
        A text flag takes its value slot too.
        """
        test = Variable("")
        self.registry.make(test, "t")
        self.assertEqual(self.registry.parse(["prog", "-t", "a.b/c:d"]), 3)
        self.assertEqual(test.value, "a.b/c:d")

    def testNumericValidAndInvalid(self) -> None:
        """
        Valid numbers are stored, invalid ones ignored.
        """
        count = Variable(1)
        self.registry.make(count, "n")
        self.registry.parse(["prog", "-n", "42"])
        self.assertEqual(count.value, 42)
        self.registry.parse(["prog", "-n", "abc"])
        self.assertEqual(count.value, 42)

    def testLastWriteWins(self) -> None:
        """
        A repeated flag keeps the last value.
        """
        count = Variable(0)
        self.registry.make(count, "n")
        self.registry.parse(["prog", "-n", "1", "-n", "2"])
        self.assertEqual(count.value, 2)

    def testStopsAtFirstPositional(self) -> None:
        """
        The returned index points at the first positional.
        """
        a = Variable(0)
        self.registry.make(a, "a")
        args = ["prog", "-a", "1", "positional", "-b", "2"]
        index = self.registry.parse(args)
        self.assertEqual(args[index], "positional")
        self.assertEqual(a.value, 1)

    def testUnknownFlagNeverConsumesValue(self) -> None:
        """
        An unknown flag leaves the next token in place.
        """
        args = ["prog", "-z", "1"]
        index = self.registry.parse(args)
        self.assertEqual(index, 2)
        self.assertEqual(args[index], "1")

    def testSinkOpensFile(self) -> None:
        """
        A sink flag opens the file and lists its name.
        """
        with tempfile.TemporaryDirectory() as directory:
            log = Variable()
            self.registry.make(log, "l", mode="w")
            path = os.path.join(directory, "run.log")
            self.registry.parse(["prog", "-l", path])
            try:
                self.assertEqual(log.value.name, path)
                self.assertEqual(self.registry.enumerate()[0], Entry("l", path, "sink"))
            finally:
                log.value.close()


if __name__ == "__main__":
    unittest.main()
