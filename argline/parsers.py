"""
Argline parser/dispatcher: resolve a token vector into one command call.

Pipeline (steps 1-6 are synchronous and side-effect free, see Parser.resolve)
1. classify tokens: a str starting with '-' is a flag marker, everything else
   (every number included) is a positional marker;
2. select the command whose canonical name equals the first positional marker;
3. '--help' / '-h' anywhere short-circuits to that command's help;
4. resolve each declared flag by name, then by alias, consuming its marker and
   exactly `expected_args` following raw tokens;
5. every remaining token after the command token is a positional argument;
6. the positional count must equal the command's `expected_args`;
7. dispatch: await the handler and return its result (Parser.parse).

Usage mistakes never raise. Each early exit produces a Fallback tagged with a
FaultCode and carrying the help text the caller prints; parse() returns that
text as a plain string.

Quick start
    from argline import parser, command, flag

    cli = (
        parser("tools")
        .add_command(
            command("ping")
            .set_description("A test command")
            .set_handler(lambda params, flags: "pong")
        )
        .build()
    )
    await cli.parse(["ping"])  # -> "pong"
"""
import logging
from collections import namedtuple
from types import MappingProxyType

from .commands import Command, CommandBuilder
from .faults import DuplicateCommandError, FaultCode
from .utils import *

logger = logging.getLogger(__name__)

PREFIX = "-"
HELPERS = ("--help", "-h")

VersionInfo = namedtuple("VersionInfo", ("major", "minor", "patch"))

Marker = namedtuple("Marker", ("name", "index"))
Marker.__doc__ = "A raw token's text paired with its position in the input."

Invocation = namedtuple("Invocation", ("command", "params", "flags"))
Invocation.__doc__ = "A fully validated call: the command plus the arguments for its handler."

Fallback = namedtuple("Fallback", ("code", "text", "command"))
Fallback.__doc__ = "An early exit of the pipeline: why (FaultCode), the help text, and the command if one matched."


def classify(tokens, /):
    """
    Split tokens into (flag markers, positional markers), preserving order.

    Only text can be a flag; numbers are positional even when negative.
    """
    flags = []
    positionals = []
    for index, token in enumerate(tokens):
        marker = Marker(str(token), index)
        if isinstance(token, str) and token.startswith(PREFIX):
            flags.append(marker)
        else:
            positionals.append(marker)
    return flags, positionals


def _sanitize_version(cls, version, /):
    """
    Internal: normalize a (major, minor, patch) triple of non-negative integers.
    """
    try:
        major, minor, patch = version
    except (TypeError, ValueError):
        raise TypeError(f"{cls.__typename__} version must be a (major, minor, patch) triple") from None
    for part in (major, minor, patch):
        if isinstance(part, bool) or not isinstance(part, int):
            raise TypeError(f"{cls.__typename__} version parts must be integers")
        elif part < 0:
            raise ValueError(f"{cls.__typename__} version parts cannot be negative")
    return VersionInfo(major, minor, patch)


class Parser(metaclass=SchemaType):
    """
    Frozen set of commands plus the dispatch pipeline over it.

    Properties
    - name: cosmetic name of the whole CLI (help banner).
    - version: VersionInfo(major, minor, patch), cosmetic.
    - commands: registered commands in registration order (names unique).
    """

    __introspectable__ = (
        "name",
        "version",
        "commands",
    )

    def __new__(cls, name, /, commands=(), version=(0, 1, 0)):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} name cannot be empty")

        registered = {}
        for command in commands:
            if isinstance(command, CommandBuilder):
                command = command.build()
            elif not isinstance(command, Command):
                raise TypeError(f"{cls.__typename__} {name!r} commands must be commands or command builders")
            if registered.setdefault(command.name, command) is not command:
                raise DuplicateCommandError(f"{cls.__typename__} {name!r} command name {command.name!r} is already in use")

        self = super().__new__(cls)
        self._name = name
        self._version = _sanitize_version(cls, version)
        self._commands = tuple(registered.values())
        self._registry = registered
        return freeze(self)

    def get_version(self):
        """
        Return the semantic version string, e.g. "0.1.0".
        """
        return "%d.%d.%d" % self.version

    def find(self, name, /):
        """
        Return the command whose canonical name is `name`, or None. Aliases are not consulted.
        """
        return self._registry.get(name)

    def resolve(self, tokens, /):
        """
        Run the synchronous part of the pipeline (classification to arity check).

        Parameters
        - tokens: Sequence[str | int | float], the raw argument vector.

        Returns
        - Invocation(command, params, flags) when everything validates:
          • params: tuple of positional tokens (original types kept),
          • flags: read-only mapping canonical flag name -> tuple of tokens.
        - Fallback(code, text, command) at the first failure.
        """
        tokens = tuple(tokens)
        flags, positionals = classify(tokens)

        if not positionals:
            logger.debug("fallback %s: no positional token in %r", FaultCode.NO_COMMAND.name, tokens)
            return Fallback(FaultCode.NO_COMMAND, self.help(), None)

        if (command := self.find(positionals[0].name)) is None:
            logger.debug("fallback %s: %r", FaultCode.UNKNOWN_COMMAND.name, positionals[0].name)
            return Fallback(FaultCode.UNKNOWN_COMMAND, self.help(), None)

        if any(isinstance(token, str) and token in HELPERS for token in tokens):
            logger.debug("fallback %s: %r", FaultCode.HELP_REQUESTED.name, command.name)
            return Fallback(FaultCode.HELP_REQUESTED, command.help(), command)

        # Owning flag -> every occurrence of each of its names, in input order.
        hits = {}
        for marker in flags:
            if (owner := command.lookup(marker.name)) is not None:
                hits.setdefault(owner.name, {}).setdefault(marker.name, []).append(marker)

        used = set()
        values = {}
        for flag in command.flags:
            seen = hits.get(flag.name, {})
            # Tokens already taken by an earlier flag cannot act as markers.
            marker = next(
                (marker for name in flag.names for marker in seen.get(name, ()) if marker.index not in used),
                None,
            )

            if marker is None:
                if flag.required:
                    logger.debug("fallback %s: %r", FaultCode.MISSING_REQUIRED_FLAG.name, flag.name)
                    return Fallback(FaultCode.MISSING_REQUIRED_FLAG, command.help(), command)
                continue

            start = marker.index + 1
            stop = start + flag.expected_args
            if stop > len(tokens) or not used.isdisjoint(range(start, stop)):
                logger.debug(
                    "fallback %s: %r expects %d argument(s), %d available",
                    FaultCode.INSUFFICIENT_FLAG_ARGS.name, marker.name, flag.expected_args,
                    len([index for index in range(start, min(stop, len(tokens))) if index not in used]),
                )
                return Fallback(FaultCode.INSUFFICIENT_FLAG_ARGS, command.help(), command)

            used.add(marker.index)
            used.update(range(start, stop))
            values[flag.name] = tokens[start:stop]

        # Index 0 is the command slot even when a flag precedes the command token.
        params = tuple(token for index, token in enumerate(tokens) if index != 0 and index not in used)

        if not command.accepts(params):
            logger.debug(
                "fallback %s: %r expects %d positional argument(s), got %d",
                FaultCode.WRONG_ARITY.name, command.name, command.expected_args, len(params)
            )
            return Fallback(FaultCode.WRONG_ARITY, command.help(), command)

        return Invocation(command, params, MappingProxyType(values))

    async def parse(self, tokens, /):
        """
        Resolve `tokens` and dispatch to the matched command's handler.

        Returns
        - the help text (str) on any usage failure;
        - otherwise whatever the handler returned (None included).

        Handler exceptions propagate unchanged.
        """
        outcome = self.resolve(tokens)
        if isinstance(outcome, Fallback):
            return outcome.text

        logger.debug("dispatching %r with params=%r flags=%r", outcome.command.name, outcome.params, dict(outcome.flags))
        return await outcome.command.execute(outcome.params, outcome.flags)

    def help(self):
        """
        Generate help text listing every registered command.
        """
        # Starts with a newline: terminals print the result next to the prompt.
        text = f"\n{self.name} {self.get_version()}\n\nCommands:\n"
        for command in self.commands:
            text += f"{command.name} - {command.description}\n"
        return text


class ParserBuilder:
    """
    Chained configuration for a Parser. Every setter returns the builder itself.
    """

    def __init__(self, name, /, version=(0, 1, 0)):
        self._name = name
        self._version = version
        self._commands = []

    def set_version(self, major, minor, patch, /):
        self._version = (major, minor, patch)
        return self

    def add_command(self, command, /):
        """
        Register a Command (or a CommandBuilder, built with the parser).
        """
        self._commands.append(command)
        return self

    def build(self):
        """
        Validate the recorded configuration and return the frozen Parser.

        Raises
        - DuplicateCommandError: two commands share a canonical name.
        """
        parser = Parser(self._name, commands=self._commands, version=self._version)
        logger.debug("built parser %r", parser)
        return parser


def parser(name, /, version=(0, 1, 0)):
    """
    Start configuring a Parser named `name`.
    """
    return ParserBuilder(name, version)


__all__ = (
    "Parser",
    "ParserBuilder",
    "parser",
    "VersionInfo",
    "Marker",
    "Invocation",
    "Fallback",
    "classify",
)
