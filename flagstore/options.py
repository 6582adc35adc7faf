r"""
Flagstore option variants (type-erased handles over bound variables).

Overview
- Option: the uniform handle the registry stores, whatever the bound type.
  Every variant answers the same four questions:
  • parse_flag()        -> bool   does the parser still need to hand me a value token?
  • parse_value(raw)    -> bool   convert and store raw; False when it was absorbed as a failure
  • typename()          -> str    fixed descriptor for diagnostics
  • current()           -> str    the bound variable's *current* value, as text
- Variants (closed set, sealed against subclassing)
  • Boolean      presence-only; parse_flag() stores True and asks for nothing more.
  • Text         stores the following token verbatim.
  • Convertible  stores type(token); the converter defaults to the type of the
                 variable's current value (int, float, Decimal, Path, ...).
  • Sink         opens the file named by the following token and stores the stream.
- OptionKind: the enumerated descriptor behind typename(), portable across
  interpreters (no run-time type ids leak into the diagnostic table).

Failure policy
- parse_value() never raises for bad user input. Conversion errors
  (ValueError/TypeError/ArithmeticError) and open errors (OSError) leave the
  variable untouched, are logged at DEBUG and reported as a False return; the
  parser decides whether that becomes a fault.

Quick example
    >>> from flagstore.bindings import Variable
    >>> level = Variable(3)
    >>> option = Convertible(level)
    >>> option.parse_flag(), option.parse_value("7"), level.value
    (True, True, 7)
    >>> option.parse_value("seven"), level.value
    (False, 7)
"""
import builtins
import codecs
import io
import logging
import re
from abc import ABCMeta, abstractmethod
from enum import StrEnum

from .bindings import bind
from .utils import *

logger = logging.getLogger(__name__)


class OptionKind(StrEnum):
    """
    enumerated descriptor of the closed variant set.
    """
    BOOLEAN     = "bool"
    TEXT        = "text"
    CONVERTIBLE = "convertible"
    SINK        = "sink"


class OptionType(ABCMeta):
    """
    Metaclass that turns option variants into introspectable, sealed handles.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used by __repr__ and log records.
    - Expose every name listed in __introspectable__ as a read-only property
      via mirror(), backed by "_<name>".
    - Seal concrete variants (class keyword sealed=True) against subclassing so
      the variant set stays closed.
    """

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


class Option(metaclass=OptionType):
    """
    Abstract handle over exactly one bound variable.

    Properties
    - kind: OptionKind of the concrete variant.
    - binding: the object the option reads from and writes to (get/set).
    """

    __introspectable__ = ("kind", "binding")

    _kind = Unset

    def __init__(self, binding, /):
        self._binding = bind(binding)

    @abstractmethod
    def parse_flag(self):
        """
        Called when the flag's name is seen; returns True when a value token must follow.
        """

    @abstractmethod
    def parse_value(self, raw, /):
        """
        Called with the token following the flag; returns False when the value was rejected.
        """

    def typename(self):
        return self.kind.value

    @abstractmethod
    def current(self):
        """
        Render the bound variable's current value as text.
        """

    def __rich_repr__(self):
        yield "kind", self.typename()
        yield "value", self.current()

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__typename__,
            ", ".join("%s=%r" % pair for pair in self.__rich_repr__())
        )


class Boolean(Option, sealed=True):
    """
    Presence-only switch: `-y` stores True, no value token is read.
    """
    _kind = OptionKind.BOOLEAN

    def parse_flag(self):
        self.binding.set(True)
        return False

    def parse_value(self, raw, /):
        return True

    def current(self):
        return "true" if self.binding.get() else "false"


class Text(Option, sealed=True):
    """
    Stores the following token verbatim.
    """
    _kind = OptionKind.TEXT

    def parse_flag(self):
        return True

    def parse_value(self, raw, /):
        self.binding.set(raw)
        return True

    def current(self):
        value = self.binding.get()
        return "" if value is None else str(value)


class Convertible[_T](Option, sealed=True):
    """
    Value-bearing option converting the token with a callable.

    Parameters
    - binding: bound variable (anything bind() accepts without a key).
    - type: Callable[[str], _T]
      Converter applied to the raw token. When omitted it is inferred from the
      variable's current value: a variable holding 100.0 is parsed with float,
      one holding Path(".") with Path. bool and str values are refused
      (use Boolean or Text) and so is None, which carries no type. bool is
      refused as an explicit converter too: bool("false") is True.

    Notes
    - Python's numeric constructors are locale-independent, and stricter than
      stream extraction: "42abc" is a failure, not 42.
    """
    _kind = OptionKind.CONVERTIBLE

    __introspectable__ = ("type",)

    def __init__(self, binding, /, type=Unset):
        super().__init__(binding)
        if type is Unset:
            value = self.binding.get()
            if value is None:
                raise TypeError("convertible cannot infer a 'type' from None; pass type=...")
            if isinstance(value, bool | str):
                raise TypeError("convertible cannot wrap a %s variable" % builtins.type(value).__name__)
            type = builtins.type(value)
        if type is bool:
            raise TypeError("convertible cannot convert with bool; use boolean")
        if not callable(type):
            raise TypeError("convertible 'type' must be callable")
        self._type = type

    def parse_flag(self):
        return True

    def parse_value(self, raw, /):
        try:
            value = self.type(raw)
        except (ValueError, TypeError, ArithmeticError) as exception:
            logger.debug("conversion of %r with %s failed: %s", raw, self.typename(), exception)
            return False
        self.binding.set(value)
        return True

    def typename(self):
        return "%s[%s]" % (self.kind.value, getattr(self.type, "__name__", builtins.type(self.type).__name__))

    def current(self):
        return str(self.binding.get())


class Sink(Option, sealed=True):
    """
    Resource sink: the following token names a file that is opened and stored.

    Parameters
    - binding: bound variable that receives the open stream.
    - mode: str, open() mode ("w" by default, like an output file stream).
    - encoding: str, a registered codec name; ignored for binary modes.

    Behavior
    - On success the new stream is stored; a stream this option opened earlier
      is closed afterwards, so repeating the flag keeps only the last file open.
    - A stream the caller placed in the variable is never closed here.
    - OSError from open() leaves the variable untouched (reported as False).
    """
    _kind = OptionKind.SINK

    __introspectable__ = ("mode", "encoding")

    def __init__(self, binding, /, mode="w", encoding="utf-8"):
        super().__init__(binding)
        if not isinstance(mode, str):
            raise TypeError("sink 'mode' must be a string")
        elif not mode:
            raise ValueError("sink 'mode' cannot be empty")
        if not isinstance(encoding, str):
            raise TypeError("sink 'encoding' must be a string")
        try:
            codecs.lookup(encoding)
        except LookupError:
            raise ValueError("sink 'encoding' %r is not a known codec" % encoding) from None
        self._mode = mode
        self._encoding = encoding
        self._opened = None

    def parse_flag(self):
        return True

    def parse_value(self, raw, /):
        try:
            stream = open(raw, self.mode, encoding=None if "b" in self.mode else self.encoding)
        except (OSError, ValueError) as exception:
            logger.debug("opening %r with mode %r failed: %s", raw, self.mode, exception)
            return False
        previous, self._opened = self._opened, stream
        self.binding.set(stream)
        if previous is not None:
            previous.close()
        return True

    def current(self):
        return str(getattr(self.binding.get(), "name", "file"))


VARIANTS = {
    OptionKind.BOOLEAN: Boolean,
    OptionKind.TEXT: Text,
    OptionKind.CONVERTIBLE: Convertible,
    OptionKind.SINK: Sink,
}


def infer_kind(value, /):
    """
    pick the variant for a variable from the value it currently holds.

    order matters: bool is an int subclass and must be checked first.
    """
    if isinstance(value, bool):
        return OptionKind.BOOLEAN
    if isinstance(value, str):
        return OptionKind.TEXT
    if isinstance(value, io.IOBase):
        return OptionKind.SINK
    return OptionKind.CONVERTIBLE


__all__ = (
    "OptionKind",
    "Option",
    "Boolean",
    "Text",
    "Convertible",
    "Sink",
    "VARIANTS",
    "infer_kind",
)
