"""
Argline flag specifications and builder.

Overview
- Flag: frozen description of one named option (e.g. --host): canonical name,
  description, number of argument tokens it consumes, aliases and whether the
  command refuses to run without it.
- FlagBuilder / flag(name): chained configuration that produces a Flag.

Quick example:
    >>> from argline.flags import flag
    >>> host = (
    ...     flag("--host")
    ...     .set_description("The hostname to connect to")
    ...     .set_expected_args(1)
    ...     .add_alias("-H")
    ...     .set_required(True)
    ...     .build()
    ... )
    >>> host.names
    ('--host', '-H')

Validation happens once, when the Flag is built; the builder calls themselves
only record values.
"""
import logging

from .utils import *

logger = logging.getLogger(__name__)


def _sanitize_name(cls, name, label="name", /):
    """
    Internal: validate one flag name or alias and return it trimmed.

    Names must be non-empty strings starting with '-' (only such tokens are
    ever classified as flags) and must not contain whitespace.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {label} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {label} cannot be empty")
    elif not name.startswith("-"):
        raise ValueError(f"{cls.__typename__} {label} {name!r} must start with '-'")
    elif any(char.isspace() for char in name):
        raise ValueError(f"{cls.__typename__} {label} {name!r} cannot contain whitespace")
    return name


def _sanitize_arity(cls, count, /):
    """
    Internal: validate an expected-argument count (non-negative integer, not a bool).
    """
    if isinstance(count, bool) or not isinstance(count, int):
        raise TypeError(f"{cls.__typename__} expected args must be an integer")
    elif count < 0:
        raise ValueError(f"{cls.__typename__} expected args cannot be negative")
    return count


class Flag(metaclass=SchemaType):
    """
    Named option specification.

    A flag consumes exactly `expected_args` raw tokens following its marker
    (zero for a plain switch). It is matched by its canonical name first and
    then by its aliases in declaration order; results are always reported
    under the canonical name.
    """

    __introspectable__ = (
        "name",
        "description",
        "expected_args",
        "aliases",
        "required",
    )

    def __new__(cls, name, /, description="", expected_args=0, aliases=(), required=False):
        name = _sanitize_name(cls, name)

        if not isinstance(description, str):
            raise TypeError(f"{cls.__typename__} description must be a string")

        sanitized = []
        for alias in aliases:
            alias = _sanitize_name(cls, alias, "alias")
            if alias == name or alias in sanitized:
                raise ValueError(f"{cls.__typename__} {name!r} alias {alias!r} is declared twice")
            sanitized.append(alias)

        self = super().__new__(cls)
        self._name = name
        self._description = description.strip()
        self._expected_args = _sanitize_arity(cls, expected_args)
        self._aliases = tuple(sanitized)
        self._required = bool(required)
        return freeze(self)

    @property
    def names(self):
        """
        Canonical name followed by every alias, in match priority order.
        """
        return (self.name, *self.aliases)


class FlagBuilder:
    """
    Chained configuration for a Flag. Every setter returns the builder itself.
    """

    def __init__(self, name, /):
        self._name = name
        self._description = ""
        self._expected_args = 0
        self._aliases = []
        self._required = False

    def set_description(self, description, /):
        """
        Set the description shown in the command's help text.
        """
        self._description = description
        return self

    def set_expected_args(self, expected_args, /):
        """
        Set the number of tokens consumed after the flag marker.
        """
        self._expected_args = expected_args
        return self

    def add_alias(self, alias, /):
        """
        Add an alternate name, generally a shorthand (e.g. -h for --help).
        """
        self._aliases.append(alias)
        return self

    def set_required(self, required=True, /):
        self._required = required
        return self

    def build(self):
        """
        Validate the recorded configuration and return the frozen Flag.
        """
        flag = Flag(
            self._name,
            description=self._description,
            expected_args=self._expected_args,
            aliases=self._aliases,
            required=self._required,
        )
        logger.debug("built flag %r", flag)
        return flag


def flag(name, /):
    """
    Start configuring a Flag named `name` (e.g. "--port").
    """
    return FlagBuilder(name)


__all__ = (
    "Flag",
    "FlagBuilder",
    "flag",
)
