"""
Argline command layer: describe, render and execute one CLI command.

What this module provides
- Command: frozen description of an invocable command:
  • canonical name (the token that selects it), description and aliases,
  • exact positional-argument count plus ordered descriptions for help,
  • flags (argline.flags.Flag) in declaration order,
  • one handler called as handler(params, flags), sync or async.
- CommandBuilder / command(name): chained configuration producing a Command.

Core ideas
- Every flag name and alias is mapped to its owning Flag once, at build time
  (Command.switches); collisions are rejected instead of silently shadowed.
- help() is a pure function of the frozen schema: same schema, same text.
- execute() checks the positional count with the same predicate the parser
  uses; a mismatch there is a programming error (ArityMismatchError).

Quick start
    from argline import command, flag

    scan = (
        command("scan")
        .set_description("Scan a host")
        .set_expected_args(1)
        .add_arg_description("The host to scan.")
        .add_flag(flag("--verbose").add_alias("-v"))
        .set_handler(lambda params, flags: params[0])
        .build()
    )
"""
import inspect
import logging

from .faults import ArityMismatchError, DuplicateNameError, MissingHandlerError
from .flags import Flag, FlagBuilder, _sanitize_arity
from .utils import *

logger = logging.getLogger(__name__)


def _sanitize_command_name(cls, name, label="name", /):
    """
    Internal: validate a command name or alias.

    Command names select the command from the first positional token, so they
    can neither be empty nor look like a flag.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {label} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {label} cannot be empty")
    elif name.startswith("-"):
        raise ValueError(f"{cls.__typename__} {label} {name!r} cannot start with '-'")
    return name


def _process_flags(cls, name, flags, /):
    """
    Internal: freeze declared flags and fan their names out into a lookup table.

    Returns
    - tuple[Flag, ...]: flags in declaration order (builders are built here).
    - dict[str, Flag]: every canonical name and alias mapped to its owner.

    Raises
    - TypeError: an entry is neither a Flag nor a FlagBuilder.
    - DuplicateNameError: a name or alias is claimed by two flags.
    """
    declared = []
    switches = {}

    for flag in flags:
        if isinstance(flag, FlagBuilder):
            flag = flag.build()
        elif not isinstance(flag, Flag):
            raise TypeError(f"{cls.__typename__} {name!r} flags must be flags or flag builders")

        for alias in flag.names:
            if switches.setdefault(alias, flag) is not flag:
                raise DuplicateNameError(
                    f"{cls.__typename__} {name!r} flag name {alias!r} is already in use by {switches[alias].name!r}"
                )
        declared.append(flag)

    return tuple(declared), switches


class Command(metaclass=SchemaType):
    """
    Frozen command specification.

    Lifecycle
    - Built once (usually through CommandBuilder.build()) and registered on a
      parser; nothing on it changes afterwards.

    Properties
    - name, description, expected_args, arg_descriptions, flags, aliases,
      handler: as configured.
    - switches: read-only mapping of every flag name/alias to its Flag.
    """

    __introspectable__ = (
        "name",
        "description",
        "expected_args",
        "arg_descriptions",
        "flags",
        "aliases",
        "handler",
        "switches",
    )

    __displayable__ = (
        "name",
        "description",
        "expected_args",
        "arg_descriptions",
        "flags",
        "aliases",
    )

    def __new__(
            cls,
            name,
            /,
            handler=Unset,
            description="",
            expected_args=0,
            arg_descriptions=(),
            flags=(),
            aliases=(),
    ):
        name = _sanitize_command_name(cls, name)

        if handler is Unset:
            raise MissingHandlerError(f"{cls.__typename__} {name!r} has no handler")
        elif not callable(handler):
            raise TypeError(f"{cls.__typename__} {name!r} handler must be callable")

        if not isinstance(description, str):
            raise TypeError(f"{cls.__typename__} {name!r} description must be a string")

        for text in arg_descriptions:
            if not isinstance(text, str):
                raise TypeError(f"{cls.__typename__} {name!r} argument descriptions must be strings")

        sanitized = []
        for alias in aliases:
            alias = _sanitize_command_name(cls, alias, "alias")
            if alias == name or alias in sanitized:
                raise ValueError(f"{cls.__typename__} {name!r} alias {alias!r} is declared twice")
            sanitized.append(alias)

        flags, switches = _process_flags(cls, name, flags)

        self = super().__new__(cls)
        self._name = name
        self._description = description.strip()
        self._expected_args = _sanitize_arity(cls, expected_args)
        self._arg_descriptions = tuple(arg_descriptions)
        self._flags = flags
        self._aliases = tuple(sanitized)
        self._handler = handler
        self._switches = switches
        return freeze(self)

    def required_flags(self):
        """
        Return the flags marked as required, in declaration order.
        """
        return tuple(flag for flag in self.flags if flag.required)

    def lookup(self, name, /):
        """
        Return the Flag owning `name` (canonical or alias), or None.
        """
        return self._switches.get(name)

    def accepts(self, params, /):
        """
        Whether `params` has exactly the positional count this command expects.
        """
        return len(params) == self.expected_args

    async def execute(self, params, flags, /):
        """
        Invoke the handler with (params, flags) and await it when needed.

        Raises
        - ArityMismatchError: `params` does not hold exactly `expected_args`
          items. The dispatcher never gets here with a wrong count; a direct
          caller doing so has a bug.
        - Anything the handler raises, unchanged.
        """
        if not self.accepts(params):
            raise ArityMismatchError(
                f"{type(self).__typename__} {self.name!r} expects {self.expected_args} "
                f"positional argument(s) but {len(params)} were given"
            )

        result = self.handler(params, flags)
        if inspect.isawaitable(result):
            result = await result
        return result

    def help(self):
        """
        Render the help block for this command.

        Layout (sections only appear when non-empty)
            Name: <name>
            Description: <description>
            Expected args: <n>

            Positional args:
            0 - <first description>

            Flags:
            --flag - <description> (required)
        """
        text = f"\nName: {self.name}\nDescription: {self.description}\nExpected args: {self.expected_args}\n"

        if self.arg_descriptions:
            text += "\nPositional args:\n"
            for index, description in enumerate(self.arg_descriptions):
                text += f"{index} - {description}\n"

        if self.flags:
            text += "\nFlags:\n"
            for flag in self.flags:
                text += f"{flag.name} - {flag.description}"
                text += " (required)\n" if flag.required else "\n"

        return text


class CommandBuilder:
    """
    Chained configuration for a Command. Every setter returns the builder itself.
    """

    def __init__(self, name, /):
        self._name = name
        self._handler = Unset
        self._description = ""
        self._expected_args = 0
        self._arg_descriptions = []
        self._flags = []
        self._aliases = []

    def set_description(self, description, /):
        """
        Set the description used in both parser-level and command-level help.
        """
        self._description = description
        return self

    def set_handler(self, handler, /):
        """
        Set the function executed by this command.

        Returns the builder, so it chains; when used as a decorator the
        builder replaces the decorated name:

            @command("ping").set_expected_args(0).set_handler
            def ping(params, flags): ...
        """
        self._handler = handler
        return self

    def set_expected_args(self, expected_args, /):
        """
        Set the exact number of positional arguments. Flags and the tokens
        they consume do not count.
        """
        self._expected_args = expected_args
        return self

    def add_flag(self, flag, /):
        """
        Append a Flag (or a FlagBuilder, built with the command).
        """
        self._flags.append(flag)
        return self

    def add_alias(self, alias, /):
        self._aliases.append(alias)
        return self

    def add_arg_description(self, text, /):
        """
        Append the description of the next positional argument. These must be
        added in the order the arguments are expected.
        """
        self._arg_descriptions.append(text)
        return self

    def build(self):
        """
        Validate the recorded configuration and return the frozen Command.
        """
        command = Command(
            self._name,
            handler=self._handler,
            description=self._description,
            expected_args=self._expected_args,
            arg_descriptions=self._arg_descriptions,
            flags=self._flags,
            aliases=self._aliases,
        )
        logger.debug("built command %r", command)
        return command


def command(name, /):
    """
    Start configuring a Command selected by the token `name`.
    """
    return CommandBuilder(name)


__all__ = (
    "Command",
    "CommandBuilder",
    "command",
)
