"""
Flagstore registry: the explicit context object tying names to options.

What this module provides
- Registry: mapping from flag name to one Option handle, plus the three
  operations callers need:
  • make(target, name) / register(name, option): bind variables before parsing.
  • parse(argv): one pass over the command line, returns the first positional index.
  • print(file): diagnostic table of name, current value and type descriptor.
- Entry: one diagnostic row (name, value, type).

Lifetime
- A registry is built by the caller, used to parse once near process start,
  and dropped with its scope. There is no process-wide instance.
- No locking: register everything, then parse, from one thread.

Quick start
    from flagstore import Registry, Variable

    registry = Registry()
    test = registry.make(Variable(""), "t")        # -t <text>
    yesno = registry.make(Variable(False), "y")    # -y
    param = registry.make(Variable(100.0), "p")    # -p <float>
    log = registry.make(Variable(), "l", mode="w")  # -l <file to open>

    registry.print()
    first = registry.parse()                       # sys.argv by default
"""
import builtins
import logging
import shlex
import sys
from collections.abc import Iterable
from typing import NamedTuple

from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .bindings import bind
from .options import *
from .parser import Parser
from .utils import *

logger = logging.getLogger(__name__)


class Entry(NamedTuple):
    """
    one row of the diagnostic listing.
    """
    name: str
    value: str
    type: str


class Registry:
    """
    Explicit option registry.

    Parameters (keyword-only)
    - prefix: str
      Flag prefix recognized by parse(); "-" by default.
    - strict: bool
      Raise faults (UnknownFlagError, MissingValueError, ConversionFailureError)
      instead of absorbing them.
    - deferred: bool
      With strict, collect every fault of a parse and raise one ParseExit.
    - fancy: bool
      print() renders a rich table instead of tab-separated lines; faults
      render inside panels.
    - colorful: bool
      Allow styles in rich output.

    Notes
    - Names are not validated: "", duplicates, anything goes. Registering a
      name again replaces the previous option, which is then dropped.
    - faults holds what the last parse() recorded, even in lenient mode.
    """

    prefix = mirror("prefix")
    strict = mirror("strict")
    deferred = mirror("deferred")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    faults = mirror("faults")

    def __init__(self, *, prefix="-", strict=False, deferred=False, fancy=False, colorful=True):
        if not isinstance(prefix, str):
            raise TypeError("registry 'prefix' must be a string")
        elif not prefix:
            raise ValueError("registry 'prefix' cannot be empty")
        self._prefix = prefix
        self._strict = bool(strict)
        self._deferred = bool(deferred)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._flags = {}
        self._faults = ()

    def register(self, name, option, /):
        """
        Insert or replace the option registered under `name`.

        Returns the option, so calls can be chained into an assignment.
        """
        if not isinstance(name, str):
            raise TypeError("register() first argument must be a string")
        if not isinstance(option, Option):
            raise TypeError("register() second argument must be an option")
        if name in self._flags:
            logger.debug("replacing flag %r: %r -> %r", name, self._flags[name], option)
        else:
            logger.debug("registering flag %r: %r", name, option)
        self._flags[name] = option
        return option

    def make(self, target, name, /, *, key=Unset, kind=Unset, **options):
        """
        Bind a variable to a flag name and register the resulting option.

        Parameters
        - target: a binding (Variable, Attribute, Item, any get()/set() object),
          or an owner object/mapping when `key` is given.
        - name: flag name as typed after the prefix ("p" for -p).
        - key: attribute name or mapping key inside `target`.
        - kind: OptionKind (or its string value) forcing the variant.
        - options: forwarded to the variant (type= for Convertible,
          mode=/encoding= for Sink).

        Variant selection without `kind`
        - mode= or encoding= given → Sink
        - type= given → Convertible
        - otherwise from the variable's current value: bool → Boolean,
          str → Text, open stream → Sink, anything else → Convertible.
        - when the variant is chosen by `kind` or the options, a key that does
          not exist yet in `target` is seeded with None.

        Returns
        - the registered Option.
        """
        binding = bind(target, key)
        if kind is not Unset or options.keys() & {"mode", "encoding", "type"}:
            # the variant is known without reading; an empty slot starts as None
            try:
                binding.get()
            except (KeyError, AttributeError):
                binding.set(None)
        if kind is not Unset:
            kind = OptionKind(kind)
        elif "mode" in options or "encoding" in options:
            kind = OptionKind.SINK
        elif "type" in options:
            kind = OptionKind.CONVERTIBLE
        else:
            kind = infer_kind(binding.get())
        return self.register(name, VARIANTS[kind](binding, **options))

    def lookup(self, name, /):
        """
        Exact-match lookup; None when `name` is not registered.
        """
        return self._flags.get(name)

    def enumerate(self):
        """
        One Entry per registered flag, sorted by name, rendering current values.
        """
        return [
            Entry(name, option.current(), option.typename())
            for name, option in sorted(self._flags.items(), key=lambda item: item[0])
        ]

    def parse(self, args=Unset, /):
        """
        Parse a command line and return the index of the first positional argument.

        Parameters
        - args:
          • Unset: sys.argv (program name included).
          • str: shell-like string split with shlex.split; its first word is
            the program name.
          • Iterable[str]: argv-like sequence, program name first.

        Raises
        - TypeError: args is none of the above.
        - ParseFault / ParseExit: strict registries only.
        """
        if args is Unset:
            tokens = sys.argv
        elif isinstance(args, str):
            tokens = shlex.split(args)
        elif isinstance(args, Iterable):
            tokens = list(args)
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        parser = Parser(
            self.lookup,
            prefix=self.prefix,
            strict=self.strict,
            deferred=self.deferred,
            fancy=self.fancy,
            colorful=self.colorful,
        )
        try:
            return parser(tokens)
        finally:
            self._faults = tuple(parser.faults)

    def print(self, file=Unset, /):
        """
        Write the table of flags, current values and type descriptors.

        - plain: "option\\tdefault\\ttype" header, then one tab-separated line per flag.
        - fancy: a rich table with the same three columns.
        """
        file = coalesce(file, sys.stdout)
        entries = self.enumerate()

        if not self.fancy:
            builtins.print("option\tdefault\ttype", file=file)
            for entry in entries:
                builtins.print(*entry, sep="\t", file=file)
            return

        table = Table(
            "option", "value", "type",
            title="options",
            box=ROUNDED,
            header_style="bold #00E5FF" if self.colorful else "",
        )
        for entry in entries:
            table.add_row(*map(escape, entry))
        Console(file=file, no_color=not self.colorful).print(table)

    def __len__(self):
        return len(self._flags)

    def __contains__(self, name):
        return name in self._flags

    def __iter__(self):
        return iter(sorted(self._flags))

    def __rich_repr__(self):
        yield "prefix", self.prefix
        yield "strict", self.strict
        yield "flags", [entry.name for entry in self.enumerate()]

    def __repr__(self):
        return "registry(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "Entry",
    "Registry",
)
