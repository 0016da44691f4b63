"""
Argline faults (errors and fallback codes) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every way a parse can
  fall back to help text, plus the delegated handler failure.
- ConstructionError and subclasses: programming errors detected while schemas
  are built or registered (duplicate names, missing handler, bad arity at a
  direct execute() call). These are always raised.
- CommandException / DelegatedCommandError: user-facing faults that know how to
  render themselves with rich (header, message, hint).
- trigger(): central entry point to surface a CommandException (raise it, or
  print it and exit when running as a shell tool).

Usage errors are never raised: the dispatcher reports them as a Fallback
carrying one of the routing/flag/positional codes below and the help text.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • NO_COMMAND, UNKNOWN_COMMAND, HELP_REQUESTED
    - flags (1111x)
      • MISSING_REQUIRED_FLAG, INSUFFICIENT_FLAG_ARGS
    - positionals (1112x)
      • WRONG_ARITY
    - delegated errors (1113x)
      • DELEGATED_ERROR
    """
    # --- routing (11xxx) ---
    NO_COMMAND             = 11101
    UNKNOWN_COMMAND        = 11102
    HELP_REQUESTED         = 11103

    # --- flags (11xxx) ---
    MISSING_REQUIRED_FLAG  = 11111
    INSUFFICIENT_FLAG_ARGS = 11112

    # --- positionals (11xxx) ---
    WRONG_ARITY            = 11121

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR        = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConstructionError(Exception):
    """
    A schema was assembled or used in a way that can never work at runtime.
    """


class DuplicateCommandError(ConstructionError): ...
class DuplicateNameError(ConstructionError): ...
class MissingHandlerError(ConstructionError): ...
class ArityMismatchError(ConstructionError): ...


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "argline")), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.options["code"].normalize(), styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options.get("hint"), styler("hint")))

        if self.options.get("fancy", False):
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        fault = type(self)(self.message, **{**self.options, **overrides})
        fault.__cause__ = self.__cause__
        return fault


class DelegatedCommandError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode the fault is rendered on stderr and the process exits with
      status 1; otherwise it is raised.

    typical options
    - prog, shell, fancy, colorful, title, code, hint, command.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def describe(exception, /):
    """
    one-line summary of a handler exception for fault messages.
    """
    name = type(exception).__name__
    if message := str(exception):
        return f"{name}: {message}"
    return name


__all__ = (
    "FaultCode",
    "ConstructionError",
    "DuplicateCommandError",
    "DuplicateNameError",
    "MissingHandlerError",
    "ArityMismatchError",
    "CommandException",
    "DelegatedCommandError",
    "trigger",
    "describe",
)
