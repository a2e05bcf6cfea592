#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Declares cmdlet parameters, validates their values, and resolves parameter sets.

## Overview

A cmdlet describes its inputs with a `ParameterTable`, which is a collection of
`Parameter` declarations. Each parameter has a canonical name, a `Field` type
that converts and checks its value, an optional default, an optional position
for positional binding, and the names of the parameter sets it belongs to. A
parameter set is a mutually exclusive configuration mode of the cmdlet. For
example, a replication policy is either created between two on-premises sites
or between an on-premises site and Azure, and each mode accepts different
parameters:

    table = ParameterTable(
        Parameter('name', Text(), mandatory=True, position=0),
        Parameter('replication_port', Integer(0, 65535), sets=['E2E'], mandatory=True),
        Parameter('encryption', OneOf('Enable', 'Disable'), sets=['E2A'], default='Disable'),
        sets=['E2E', 'E2A'],
    )

Binding an invocation happens in three steps, each of which can fail before
anything is sent to a remote service:

1. `ParameterTable.validate` converts every supplied value with its field type
   and raises `azcmdlet.errors.ValidationError` for the first bad one.

2. `ParameterTable.resolve` picks the one parameter set whose mandatory
   parameters were all supplied and which declares every supplied parameter.
   Zero or several matches raise `azcmdlet.errors.ConfigurationError`. An
   explicit selector skips the matching.

3. `ParameterTable.bind` runs both steps, drops supplied values that do not
   belong to the resolved set, applies defaults, and returns an `Invocation`.

    >>> inv = table.bind({'name': 'p1', 'replication_port': '8083'})
    >>> inv.parameter_set, inv['replication_port']
    ('E2E', 8083)

## Field Types

`Text`, `Url`, `OneOf`, `Integer`, `TimeSpan`, and `Switch` are provided.
Values arriving from the command line are strings, values arriving from the
configuration file or from Python callers may already be typed, and every
field accepts both.
"""

import argparse
import logging
import re
from datetime import timedelta

from azcmdlet.argparse import flag
from azcmdlet.config import URL
from azcmdlet.errors import ConfigurationError, ValidationError

LOG = logging.getLogger(__name__)

DEFAULT_SET = "__AllParameterSets"
"""Name of the implicit parameter set of a table that declares no sets."""


class Field:
    """Abstract base class that converts and checks a parameter value."""

    def convert(self, value):
        """Return `value` converted to its Python type.

        Raises `ValueError` with a short description of the problem if the
        value is not acceptable.
        """
        raise NotImplementedError

    def allowed(self):
        """Return the tuple of allowed values, or an empty tuple if unconstrained."""
        return ()

    def metavar(self):
        """Return the metavar shown for the parameter in `--help`."""
        return None


class Text(Field):
    """A string, which must not be empty unless `allow_empty` is true."""

    def __init__(self, allow_empty=False):
        self.allow_empty = allow_empty

    def convert(self, value):
        if not isinstance(value, str):
            raise ValueError(f"expected a string, got {value!r}")
        if not value and not self.allow_empty:
            raise ValueError("must not be empty")
        return value


class Url(Text):
    """A URL in the form of `scheme://...`.

    If `trailing_slash` is true, the URL is normalized so it ends with exactly
    one slash. Normalizing an already normalized URL does not change it.
    """

    def __init__(self, trailing_slash=False):
        super().__init__()
        self.trailing_slash = trailing_slash

    def convert(self, value):
        value = super().convert(value)
        if not URL.type_check(value):
            raise ValueError(f"not a URL: {value!r}")
        return ensure_trailing_slash(value) if self.trailing_slash else value

    def metavar(self):
        return "URL"


class OneOf(Field):
    """One of a fixed set of values, matched case-insensitively.

    The converted value is the canonical spelling from `choices`, so 'kerberos'
    becomes 'Kerberos' and the int 300 becomes '300' if that is the choice.
    """

    def __init__(self, *choices):
        self.choices = choices
        self._canonical = {str(c).lower(): c for c in choices}

    def convert(self, value):
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError(f"invalid value {value!r}")
        try:
            return self._canonical[str(value).lower()]
        except KeyError:
            raise ValueError(f"invalid value {value!r}") from None

    def allowed(self):
        return self.choices

    def metavar(self):
        return "{" + ",".join(str(c) for c in self.choices) + "}"


class Integer(Field):
    """An integer between `minimum` and `maximum` inclusive."""

    def __init__(self, minimum=None, maximum=None):
        self.minimum = minimum
        self.maximum = maximum

    def convert(self, value):
        if isinstance(value, str):
            try:
                value = int(value.strip(), 10)
            except ValueError:
                raise ValueError(f"not an integer: {value!r}") from None

        # bool is a subclass of int and is never an acceptable integer here.
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"not an integer: {value!r}")

        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"must be >= {self.minimum}, got {value}")
        if self.maximum is not None and value > self.maximum:
            raise ValueError(f"must be <= {self.maximum}, got {value}")
        return value

    def metavar(self):
        return "N"


class TimeSpan(Field):
    """A non-negative duration no longer than `maximum`.

    Strings are parsed with `parse_timespan`. `datetime.timedelta` values are
    accepted as is.
    """

    def __init__(self, maximum=None):
        self.maximum = maximum

    def convert(self, value):
        if isinstance(value, str):
            value = parse_timespan(value)
        if not isinstance(value, timedelta):
            raise ValueError(f"not a time span: {value!r}")

        if value < timedelta(0) or (self.maximum is not None and value > self.maximum):
            upper = format_timespan(self.maximum) if self.maximum is not None else "-"
            raise ValueError(
                f"must be between 00:00:00 and {upper}, got {format_timespan(value)}"
            )
        return value

    def metavar(self):
        return "TIMESPAN"


class Switch(Field):
    """A boolean flag."""

    def convert(self, value):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        raise ValueError(f"not a boolean: {value!r}")


_TIMESPAN_RE = re.compile(
    r"^(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2})(?::(?P<seconds>\d{2}))?$"
)


def parse_timespan(text):
    """Parse a `[d.]hh:mm[:ss]` string into a `datetime.timedelta`.

        >>> parse_timespan('13:30')
        datetime.timedelta(seconds=48600)
        >>> parse_timespan('1.00:00:00')
        datetime.timedelta(days=1)

    Raises `ValueError` if the string is not in that form or a component is
    out of range.
    """
    match = _TIMESPAN_RE.match(text.strip())
    if not match:
        raise ValueError(f"not a time span: {text!r}")

    days, hours, minutes, seconds = (
        int(match.group(g) or 0) for g in ("days", "hours", "minutes", "seconds")
    )
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"not a time span: {text!r}")

    return timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)


def format_timespan(span):
    """Format a `datetime.timedelta` as `[-][d.]hh:mm:ss`.

        >>> format_timespan(timedelta(hours=13, minutes=30))
        '13:30:00'
        >>> format_timespan(timedelta(days=1))
        '1.00:00:00'

    Fractions of a second are dropped.
    """
    sign = "-" if span < timedelta(0) else ""
    total = abs(int(span.total_seconds()))
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    prefix = f"{days}." if days else ""
    return f"{sign}{prefix}{hours:02d}:{minutes:02d}:{seconds:02d}"


def ensure_trailing_slash(url):
    """Return `url` ending in exactly one '/'."""
    return url.rstrip("/") + "/"


class Parameter:
    """Declaration of a single cmdlet parameter.

    `name` is the canonical snake_case name, which is also the keyword used by
    Python callers and, in kebab-case, the command line flag. `field` converts
    and checks the value and defaults to `Text()`. `sets` lists the parameter
    sets the parameter belongs to; `None` means all of them. If `mandatory` is
    true, every set the parameter belongs to requires it. `position` allows the
    value to be given positionally on the command line. `default` is applied
    when the parameter is not supplied and belongs to the resolved set.
    `aliases` are alternative command line flags.
    """

    # pylint: disable=too-many-arguments

    def __init__(
        self,
        name,
        field=None,
        sets=None,
        mandatory=False,
        position=None,
        default=None,
        aliases=(),
        help_text=None,
    ):
        self.name = name
        self.field = field or Text()
        self.sets = tuple(sets) if sets is not None else None
        self.mandatory = mandatory
        self.position = position
        self.default = default
        self.aliases = tuple(aliases)
        self.help_text = help_text

    def validate(self, value):
        """Return the converted `value` or raise `ValidationError`."""
        try:
            return self.field.convert(value)
        except ValueError as e:
            raise ValidationError(self.name, str(e), self.field.allowed()) from e

    def __repr__(self):
        return f"Parameter({self.name!r})"


class ParameterSet:
    """A named configuration mode and the parameters it requires and allows."""

    def __init__(self, name, required, allowed):
        self.name = name
        self.required = frozenset(required)
        self.allowed = frozenset(allowed)

    def matches(self, bound):
        """Returns true if `bound` names satisfy this set.

        Every required parameter must be bound and every bound parameter must
        be declared by this set.
        """
        bound = frozenset(bound)
        return self.required <= bound <= self.allowed

    def mismatch(self, bound):
        """Describe why `bound` does not satisfy this set."""
        bound = frozenset(bound)
        reasons = []
        missing = sorted(self.required - bound)
        if missing:
            reasons.append("missing " + ", ".join(missing))
        extra = sorted(bound - self.allowed)
        if extra:
            reasons.append("does not accept " + ", ".join(extra))
        return "; ".join(reasons)

    def __repr__(self):
        return f"ParameterSet({self.name!r})"


class Invocation:
    """The validated values of a cmdlet invocation and its resolved set.

    `values` only contains parameters of `parameter_set`, with defaults
    applied. Parameters that were not supplied and have no default are absent.
    """

    def __init__(self, parameter_set, values):
        self.parameter_set = parameter_set
        self.values = values

    def __getitem__(self, name):
        return self.values[name]

    def __contains__(self, name):
        return name in self.values

    def get(self, name, default=None):
        return self.values.get(name, default)

    def __repr__(self):
        return f"Invocation({self.parameter_set!r}, {self.values!r})"


class ParameterTable:
    """The parameters of a cmdlet grouped into parameter sets.

    `parameters` are `Parameter` declarations. `sets` is the list of parameter
    set names. If omitted, the table has a single implicit set called
    `DEFAULT_SET` that holds every parameter.
    """

    def __init__(self, *parameters, sets=None):
        self.parameters = {p.name: p for p in parameters}
        set_names = tuple(sets) if sets else (DEFAULT_SET,)

        for p in parameters:
            unknown = set(p.sets or ()) - set(set_names)
            if unknown:
                raise ValueError(f"{p.name}: unknown parameter sets: {sorted(unknown)}")

        self.sets = {}
        for set_name in set_names:
            members = [p for p in parameters if p.sets is None or set_name in p.sets]
            self.sets[set_name] = ParameterSet(
                set_name,
                required=[p.name for p in members if p.mandatory],
                allowed=[p.name for p in members],
            )

    def __iter__(self):
        return iter(self.parameters.values())

    def __getitem__(self, name):
        return self.parameters[name]

    def has_selector(self):
        """Returns true if the table has more than one parameter set."""
        return len(self.sets) > 1

    def add_arguments(self, parser, defaults=None):
        """Register the parameters of this table on an `argparse` parser.

        Every argument uses `argparse.SUPPRESS` as its default, so the parsed
        namespace only holds the parameters the user supplied. `defaults` is a
        dict of parameter defaults, typically read from the user configuration,
        which are only shown in the help text. Parameters with a position are
        registered positionally as well, in position order.
        """
        defaults = defaults or {}

        for p in sorted(
            (p for p in self if p.position is not None), key=lambda p: p.position
        ):
            parser.add_argument(
                p.name,
                nargs="?",
                default=argparse.SUPPRESS,
                metavar=p.name.upper(),
                help=f"same as {flag(p.name)}",
            )

        group = parser.add_argument_group("cmdlet parameters")
        for p in self:
            kwargs = {"dest": p.name, "default": argparse.SUPPRESS, "help": self._help(p, defaults)}
            if isinstance(p.field, Switch):
                kwargs["action"] = "store_true"
            else:
                kwargs["metavar"] = p.field.metavar() or p.name.upper()
            group.add_argument(flag(p.name), *(flag(a) for a in p.aliases), **kwargs)

        if self.has_selector():
            parser.add_argument(
                "--parameter-set",
                choices=list(self.sets),
                default=argparse.SUPPRESS,
                help="use this parameter set instead of inferring it",
            )

    def _help(self, p, defaults):
        text = p.help_text or ""
        if p.mandatory:
            if p.sets is None or not self.has_selector():
                text += " [mandatory]"
            else:
                text += f" [mandatory in {', '.join(p.sets)}]"
        elif p.sets is not None and self.has_selector():
            text += f" [only in {', '.join(p.sets)}]"
        default = defaults.get(p.name, p.default)
        if default is not None:
            text += f" (default: {default})"
        # argparse interpolates % in help strings
        return text.strip().replace("%", "%%")

    def validate(self, bound):
        """Return a dict of the converted values of `bound`.

        `bound` maps parameter names to the raw values supplied by the caller.
        Raises `ValidationError` for an unknown name or an invalid value. This
        method has no side effects.
        """
        values = {}
        for name, value in bound.items():
            if name not in self.parameters:
                raise ValidationError(name, "unknown parameter")
            values[name] = self.parameters[name].validate(value)
        return values

    def resolve(self, bound, selector=None):
        """Return the single `ParameterSet` that applies to the `bound` names.

        If `selector` names a parameter set, that set is used as long as its
        mandatory parameters are bound. Otherwise, the set whose mandatory
        parameters are all bound and which declares every bound parameter is
        chosen. Raises `ConfigurationError` when no set or more than one set
        applies.
        """
        bound = frozenset(bound)

        if selector is not None:
            if selector not in self.sets:
                raise ConfigurationError(
                    f"unknown parameter set '{selector}', must be one of: "
                    + ", ".join(self.sets)
                )
            pset = self.sets[selector]
            missing = sorted(pset.required - bound)
            if missing:
                raise ConfigurationError(
                    f"parameter set '{selector}' is missing: {', '.join(missing)}"
                )
            return pset

        candidates = [s for s in self.sets.values() if s.matches(bound)]

        if not candidates:
            if not self.has_selector():
                (only,) = self.sets.values()
                raise ConfigurationError(f"no matching parameter set: {only.mismatch(bound)}")
            reasons = "; ".join(
                f"{s.name} ({s.mismatch(bound)})" for s in self.sets.values()
            )
            raise ConfigurationError(f"no matching parameter set: {reasons}")

        if len(candidates) > 1:
            raise ConfigurationError(
                "ambiguous parameter set, could be any of: "
                + ", ".join(s.name for s in candidates)
            )

        return candidates[0]

    def bind(self, bound, selector=None, defaults=None):
        """Validate `bound`, resolve its parameter set, and return an `Invocation`.

        Supplied parameters that are not part of the resolved set are dropped.
        Parameters of the resolved set that were not supplied take their value
        from `defaults`, a dict typically read from the user configuration, or
        else from the declared default. Defaults never take part in resolving
        the parameter set.
        """
        values = self.validate(bound)
        pset = self.resolve(values.keys(), selector)

        ignored = sorted(set(values) - pset.allowed)
        if ignored:
            LOG.warning(
                "ignoring parameters not in parameter set '%s': %s",
                pset.name,
                ", ".join(ignored),
            )
        values = {k: v for k, v in values.items() if k in pset.allowed}

        defaults = defaults or {}
        for name in sorted(pset.allowed - set(values)):
            default = defaults.get(name, self.parameters[name].default)
            if default is not None:
                values[name] = self.parameters[name].validate(default)

        LOG.info("resolved parameter set '%s'", pset.name)
        return Invocation(pset.name, values)
