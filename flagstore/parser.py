"""
Flagstore parser: one pass over argv, mutating bound variables as it goes.

Algorithm (cursor i starts at 1; argv[0] is the program name)
1. argv[i] not starting with the prefix → stop, return i (positionals start there).
2. strip the prefix, look the name up:
   • miss → skip the token alone (a registry miss never consumes a value).
   • hit  → ask option.parse_flag():
       – needs a value and a next token exists → advance, option.parse_value(token).
       – needs a value at the very end → value not consumed, variable unchanged.
       – flag only → the option already stored True.
   advance past the flag name and loop.
3. return i once argv is exhausted.

The value token is taken verbatim, even when it starts with the prefix, so
`-offset -5` works. Repeating a flag overwrites: last write wins.

Faults
- every irregularity (unknown flag, missing value, rejected value) becomes a
  ParseFault recorded in Parser.faults; strict parsers raise it, lenient
  parsers only log it at DEBUG. A value-bearing flag in last position is a
  known gap kept for compatibility: lenient mode treats it like an absent flag.
"""
import functools
import logging
from collections.abc import Sequence

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for an argv position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class Parser:
    """
    Single-use walker over one argv sequence.

    Parameters
    - lookup: Callable[[str], Option | None]
      Resolves a flag name; usually Registry.lookup.
    - prefix: str
      Flag prefix, "-" by default. Everything after it is the flag name.
    - strict: bool
      Raise faults instead of absorbing them.
    - deferred: bool
      With strict, walk the whole argv first and raise one ParseExit at the end.
    - fancy / colorful: presentation switches forwarded to the faults.

    State
    - faults: faults recorded by the last call, in argv order.
    """

    faults = mirror("faults")

    def __init__(self, lookup, /, *, prefix="-", strict=False, deferred=False, fancy=False, colorful=True):
        if not callable(lookup):
            raise TypeError("parser lookup must be callable")
        if not isinstance(prefix, str):
            raise TypeError("parser 'prefix' must be a string")
        elif not prefix:
            raise ValueError("parser 'prefix' cannot be empty")
        self._lookup = lookup
        self._prefix = prefix
        self._strict = bool(strict)
        self._deferred = bool(deferred)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._faults = []
        self._prog = None

    def trigger(self, fault, /, **options):
        """
        record a fault with the runtime options of this parser, raising it when strict.
        """
        options = dict(
            prog=self._prog,
            strict=self._strict and not self._deferred,
            fancy=self._fancy,
            colorful=self._colorful,
        ) | options
        try:
            fault = trigger(fault, **options)
        except ParseFault as exception:
            self._faults.append(exception)
            raise
        self._faults.append(fault)

    def __call__(self, args, /):
        """
        parse `args` and return the index of the first unconsumed item.

        raises
        - TypeError: args is not a sequence of strings.
        - ParseFault: strict, not deferred, at the first irregular token.
        - ParseExit: strict and deferred, once argv was walked, when any fault was recorded.
        """
        if isinstance(args, str | bytes) or not isinstance(args, Sequence):
            raise TypeError("parse() argument must be a sequence of strings")
        for item in args:
            if not isinstance(item, str):
                raise TypeError("parse() argument must be a sequence of strings")

        self._faults = []
        self._prog = args[0] if args else None

        count = len(args)
        index = 1
        while index < count:
            token = args[index]
            if not token.startswith(self._prefix):
                break

            name = token[len(self._prefix):]
            option = self._lookup(name)

            if option is None:
                self.trigger(UnknownFlagError(
                    "unknown flag %r at %s position" % (token, _ordinal(index)),
                    title="unknown flag",
                    code=FaultCode.UNKNOWN_FLAG,
                    hint="register %r before parsing, or drop it from the command line" % name,
                    token=token,
                    index=index,
                    name=name,
                ))
            elif option.parse_flag():
                if index < count - 1:
                    index += 1
                    if not option.parse_value(value := args[index]):
                        self.trigger(ConversionFailureError(
                            "bad value %r for flag %r at %s position" % (value, token, _ordinal(index)),
                            title="bad value",
                            code=FaultCode.CONVERSION_FAILURE,
                            hint="flag %r expects a %s value" % (token, option.typename()),
                            token=value,
                            index=index,
                            name=name,
                        ))
                else:
                    self.trigger(MissingValueError(
                        "flag %r at %s position is missing its value" % (token, _ordinal(index)),
                        title="missing value",
                        code=FaultCode.MISSING_VALUE,
                        hint="pass a value after it (for example: %s <value>)" % token,
                        token=token,
                        index=index,
                        name=name,
                    ))
            index += 1

        logger.debug("parsed %d of %d arguments, %d fault(s)", index, count, len(self._faults))

        if self._strict and self._deferred and self._faults:
            trigger(
                ParseExit(self._faults),
                prog=self._prog,
                strict=True,
                fancy=self._fancy,
                colorful=self._colorful,
            )

        return index


def parse(lookup, args, /, **options):
    """
    Convenience wrapper: Parser(lookup, **options)(args).

    `lookup` may be a Registry (anything with a callable .lookup) or a plain
    callable resolving names to options.
    """
    return Parser(getattr(lookup, "lookup", lookup), **options)(args)


__all__ = (
    "Parser",
    "parse",
)
