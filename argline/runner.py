"""
Argline runner: the top-level caller around Parser.parse.

What this module provides
- tokenize(prompt): argv, a shell-like string, or an iterable → token list,
  numeric literals turned into numbers (they can never be flags).
- present(result, console=...): print whatever parse() returned:
  strings verbatim, mappings/sequences as pretty JSON, nothing for None.
- run(parser, prompt): tokenize → parse → present; handler failures become a
  DelegatedCommandError surfaced through faults.trigger().
- invoke(parser, prompt): synchronous, shell-mode entry point (exit status 1
  on a delegated error).
- configure_logging(level): attach a rich handler to the "argline" logger.
"""
import asyncio
import logging
import re
import shlex
import sys
from collections.abc import Iterable, Mapping

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from .faults import DelegatedCommandError, FaultCode, describe, trigger
from .parsers import classify
from .utils import *

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+(?=[eE]))([eE][+-]?\d+)?")


def _literal(token, /):
    """
    Internal: int/float for numeric literals, the trimmed string otherwise.
    """
    if _INTEGER.fullmatch(token):
        return int(token)
    if _DECIMAL.fullmatch(token):
        return float(token)
    return token


def tokenize(prompt=Unset, /):
    """
    Normalize a prompt into the token list handed to Parser.parse.

    Parameters
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string; split via shlex.split.
      • Iterable[str | int | float]: pre-tokenized; strings are trimmed and
        empty ones dropped, numbers kept as-is.

    Raises
    - TypeError: prompt is none of the above, or an item is not str/int/float.
    """
    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
    else:
        raise TypeError("tokenize() argument must be a string or an iterable of tokens")

    def _sanitized(iterable):
        for item in iterable:
            if isinstance(item, bool) or not isinstance(item, str | int | float):
                raise TypeError("tokenize() tokens must be strings or numbers")
            if not isinstance(item, str):
                yield item
            elif item := item.strip():
                yield _literal(item)

    return list(_sanitized(tokens))


def present(result, /, console=Unset, *, colorful=False, fancy=False):
    """
    Render a parse() result.

    - None or an empty string: nothing is printed.
    - str (results and help text alike): printed verbatim.
    - Mapping / non-string sequence: pretty-printed as JSON.
    - anything else: printed through str().
    """
    console = coalesce(console, Console())

    if result is None or result == "":
        return

    if isinstance(result, str):
        if fancy:
            console.print(Panel(Text(result.strip("\n")), title_align="left"))
        else:
            console.print(result, markup=False, highlight=colorful)
    elif isinstance(result, Mapping | list | tuple):
        console.print_json(data=result, highlight=colorful, default=str)
    else:
        console.print(str(result), markup=False, highlight=colorful)


async def run(parser, prompt=Unset, /, *, console=Unset, colorful=False, fancy=False, shell=False):
    """
    Tokenize `prompt`, dispatch it through `parser` and present the result.

    Handler exceptions are wrapped in DelegatedCommandError (original kept as
    __cause__) and triggered: raised when shell is False, printed on stderr
    followed by exit status 1 when shell is True.

    Returns the raw result of parser.parse().
    """
    tokens = tokenize(prompt)
    logger.debug("running %r with %r", parser.name, tokens)

    try:
        result = await parser.parse(tokens)
    except Exception as exception:
        _, positionals = classify(tokens)
        name = positionals[0].name
        fault = DelegatedCommandError(
            "something occurred in command %r" % name,
            title="delegated command error",
            code=FaultCode.DELEGATED_ERROR,
            command=parser.find(name),
            hint="%s; run '%s --help' to check the expected usage" % (describe(exception), name),
        )
        fault.__cause__ = exception
        trigger(fault, prog=parser.name, shell=shell, colorful=colorful, fancy=fancy)
        raise  # trigger() either raises or exits

    present(result, console, colorful=colorful, fancy=fancy)
    return result


def invoke(parser, prompt=Unset, /, **options):
    """
    Run `parser` to completion from synchronous code, as a shell tool.

    Options are forwarded to run() (console, colorful, fancy); shell mode is
    always on, so a failing handler ends the process with status 1.
    """
    return asyncio.run(run(parser, prompt, shell=True, **options))


def configure_logging(level=logging.DEBUG, /, console=Unset):
    """
    Route the "argline" loggers through a rich handler on stderr.

    Calling it again replaces the previously installed handler.
    """
    root = logging.getLogger("argline")
    for handler in [handler for handler in root.handlers if isinstance(handler, RichHandler)]:
        root.removeHandler(handler)

    root.addHandler(RichHandler(console=coalesce(console, Console(stderr=True)), show_path=False))
    root.setLevel(level)
    return root


__all__ = (
    "tokenize",
    "present",
    "run",
    "invoke",
    "configure_logging",
)
