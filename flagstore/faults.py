"""
Flagstore faults (parse errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for the three things that can go wrong
  while walking argv: an unknown flag, a flag missing its value, a value that
  does not convert.
- ParseFault: base type that carries message + options and knows how to render
  itself with rich in a short, lowercased, actionable way.
- ParseExit: group of faults raised at the end of a deferred strict parse.
- trigger(): central entry point to surface a fault (respecting strict mode).

Policy
- By default faults are recorded and logged at DEBUG, never raised: bad input
  is indistinguishable from “flag not provided”.
- With strict=True the fault is raised; the registry decides whether that
  happens on the spot or once the whole argv was walked (deferred=True).

Host integration (optional attributes on __main__)
- __prog__: program name shown in rendered headers.
- __styles__: mapping overriding the rich styles below.
- __codes__: mapping FaultCode -> label, see FaultCode.normalize().
"""
import copy
import logging
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

logger = logging.getLogger(__name__)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    - UNKNOWN_FLAG        a prefixed token whose name is not registered
    - MISSING_VALUE       a value-bearing flag was the last token
    - CONVERSION_FAILURE  the value token was rejected by the option
    """
    UNKNOWN_FLAG       = 11101
    MISSING_VALUE      = 11102
    CONVERSION_FAILURE = 11103

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styles(main, defaults):
    return defaultdict(str, defaults | getattr(main, "__styles__", {}))


class ParseFault(Exception):
    """
    Base fault raised (strict mode) or recorded (lenient mode) by the parser.

    Options commonly carried
    - code, title, hint: presentation.
    - token: offending argv item; index: its position in argv.
    - name: flag name (token without prefix).
    - prog: program name (argv[0]) used by the rendered header.
    - strict, fancy, colorful: runtime switches copied from the registry.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def kind(self):
        return self.options.get("code")

    @property
    def token(self):
        return self.options.get("token")

    @property
    def index(self):
        return self.options.get("index")

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        main = __import__("__main__")

        styles = _styles(main, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        prog = text(getattr(main, "__prog__", self.options.get("prog") or "flagstore"), "prog-name")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.options["code"].normalize(), "code"),
            " | ",
            text(self.options["title"].title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint"), "hint"))

        if self.options.get("fancy", False):
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __trigger__(self):
        if not self.options.get("strict", False):
            logger.debug("ignored %s: %s", self.options["code"].name.lower(), self.message)
            return
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownFlagError(ParseFault): ...
class MissingValueError(ParseFault): ...
class ConversionFailureError(ParseFault): ...


class ParseExit(ExceptionGroup[ParseFault]):
    """
    every fault of one deferred strict parse, raised once argv was fully walked.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad arguments", exceptions)

    def __init__(self, exceptions, **options):
        super().__init__("bad arguments", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")

        styles = _styles(main, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title
        })

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        prog = text(getattr(main, "__prog__", self.options.get("prog") or "flagstore"), "prog-name")
        header = Text.assemble("[ ", prog, " — ", text(self.message.title(), "title"), " ]")

        renders = [copy.replace(exception, fancy=False) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("strict", False):
            return
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseFault).
    - options are merged into the fault via copy.replace(fault, **options).
    - strict faults raise; lenient ones are logged at DEBUG and returned to the caller.

    returns
    - the merged fault (only reached when nothing was raised).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault = copy.replace(fault, **options)
    fault.__trigger__()
    return fault


__all__ = (
    "FaultCode",
    "ParseFault",
    "UnknownFlagError",
    "MissingValueError",
    "ConversionFailureError",
    "ParseExit",
    "trigger",
)
