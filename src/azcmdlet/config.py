#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Reads the azcmdlet configuration file with type-checked values.

## Overview

`Config` wraps a (possibly nested) dict and reads values from it with optional
defaults, mandatory keys, and type checks. `YAMLConfig` and `JSONConfig` parse
a stream into a `Config`, and `Config.from_file` picks the right one from the
file extension. The CLI loads the user configuration from `~/.azcmdlet.yaml`
and the YAML profile store reads its environment records through the same
class.

## Type Checking

Values are checked against `Type` objects. Simple singletons are provided for
`Str`, `Bool`, and `URL`. `Scalar`, `Choice`, `StrMatch`, `List`, and `Dict`
build more specific types, and `Or` accepts any of several. For
example, the endpoint table of a stored environment is checked with:

    Dict(Str, Or(Str, Bool))

## Reading Values

Given the following `~/.azcmdlet.yaml`:

    CLI:
      environment: AzureCloud
      vault: my-vault
    Commands:
      new_asr_policy:
        compression: Enable

Values are read by passing the path of keys leading to them:

    c = Config.from_file(Path.home() / '.azcmdlet.yaml')
    c.get('CLI', 'vault', type=Str, must_exist=True)            # 'my-vault'
    c.get('CLI', 'log_level', type=Str, default='ERROR')        # 'ERROR'
    c.get('Commands', 'new_asr_policy', 'compression')          # 'Enable'

A value that does not match its type raises `TypeError`. A missing value with
`must_exist=True` raises `ValueError`.
"""

import json
import logging
import re
from functools import reduce
from pathlib import Path

import yaml

LOG = logging.getLogger(__name__)

# pylint: disable=unidiomatic-typecheck
#
# isinstance(True, int) is true, so exact type comparisons are used in this
# module. A bool must never type check as `Scalar(int)`.


class Config:
    """Reads type-checked values from a dict of dicts.

    Subclasses parse a stream into the dict. Parsers are registered per file
    extension with `Config.register_filetype`, which is what `Config.from_file`
    consults.
    """

    _filetypes = {}

    @classmethod
    def register_filetype(cls, config_class, *extensions):
        """Register `config_class` as the parser for the given extensions.

        Extensions are given as '.ext'. A later registration for the same
        extension replaces the earlier one.
        """
        for ext in extensions:
            cls._filetypes[ext] = config_class

    @classmethod
    def from_file(cls, filename, must_exist=False):
        """Load a `Config` from `filename` using the parser for its extension.

        A missing file yields an empty `Config` unless `must_exist` is true, in
        which case `FileNotFoundError` is raised.
        """
        path = Path(filename).expanduser()

        if not path.is_file():
            if must_exist:
                raise FileNotFoundError(f"Config file not found: {filename}")
            LOG.info("no config file at '%s', using empty config", path)
            return Config({})

        if path.suffix not in cls._filetypes:
            raise ValueError(f"Unregistered file type extension: {path.suffix}")

        LOG.info("loading config file '%s'", path)
        with path.open(encoding="utf-8") as f:
            return cls._filetypes[path.suffix](f)

    def __init__(self, d):
        # An empty YAML document parses to None.
        self.conf = d if d is not None else {}

    def get(self, *keys, default=None, type=None, must_exist=False):
        """Return the value found by following `keys` into the config.

        If nothing is found, `default` is returned, or `ValueError` is raised
        when `must_exist` is true. When `type` is given, the value (or the
        default) must type check against it or `TypeError` is raised:

            c.get('CLI', 'log_level', type=Choice('DEBUG', 'INFO'))
            c.get('CLI', 'cmd_path', type=List(Str), default=[])
            c.get('Environments', type=Dict(Str, Dict(Str, Or(Str, Bool))))
        """
        # pylint: disable=redefined-builtin

        # Missing keys at any level collapse to an empty dict.
        try:
            value = reduce(lambda a, p: a.get(p, {}), keys, self.conf)
        except AttributeError as e:
            raise ValueError(
                f"Error in config: {'->'.join(keys[:-1])}: not a dictionary"
            ) from e

        if value == {}:
            if must_exist:
                raise ValueError(f"Error in config: {'->'.join(keys)}: must be set")
            value = default

        if value is None or not type:
            return value

        if type.type_check(value):
            return value

        raise TypeError(
            f"Error in config: {'->'.join(keys)}: not a {type}: {repr(value)}"
        )


class YAMLConfig(Config):
    """Loads a YAML configuration from a stream."""

    def __init__(self, stream):
        super().__init__(yaml.safe_load(stream))


class JSONConfig(Config):
    """Loads a JSON configuration from a stream."""

    def __init__(self, stream):
        super().__init__(json.load(stream))


Config.register_filetype(JSONConfig, ".json")
Config.register_filetype(YAMLConfig, ".yaml", ".yml")


class Type:
    """A type that configuration values can be checked against."""

    def type_check(self, obj):
        """Returns true if `obj` matches this `Type`."""
        raise NotImplementedError

    def __str__(self):
        raise NotImplementedError


class Or(Type):
    """Matches any one of `config_types`."""

    def __init__(self, *config_types):
        self.config_types = config_types

    def type_check(self, obj):
        return any(t.type_check(obj) for t in self.config_types)

    def __str__(self):
        return "(" + " or ".join(str(t) for t in self.config_types) + ")"


class Const(Type):
    """Matches exactly one constant of the same Python type."""

    def __init__(self, const):
        self.const = const

    def type_check(self, obj):
        # True == 1, so compare types before values.
        if type(obj) != type(self.const):  # noqa: E721
            return False
        return obj == self.const

    def __str__(self):
        return f"constant '{self.const}'"


class Choice(Or):
    """Matches one of several constants, e.g. `Choice('text', 'json')`."""

    def __init__(self, *constants):
        super().__init__(*[Const(c) for c in constants])


class Scalar(Type):
    """Matches a value whose type is exactly the builtin `type_`."""

    def __init__(self, type_):
        self.type = type_

    def type_check(self, obj):
        return type(obj) == self.type  # noqa: E721

    def __str__(self):
        return self.type.__name__


class StrMatch(Type):
    """Matches a string for which `re.search(pattern)` succeeds."""

    def __init__(self, pattern):
        self.pattern = pattern

    def type_check(self, obj):
        if type(obj) != str:  # noqa: E721
            return False
        return bool(re.search(self.pattern, obj))

    def __str__(self):
        return f"str matching '{self.pattern}'"


Str = Scalar(str)
"""Singleton representing a str."""

Bool = Scalar(bool)
"""Singleton representing a bool."""

URL = StrMatch(r"^[^:/]+://")
"""Singleton representing a URL in the form of xxxx://."""


class List(Type):
    """Matches a list whose elements all match `element_type`."""

    def __init__(self, element_type):
        self.element_type = element_type

    def type_check(self, obj):
        if type(obj) != list:  # noqa: E721
            return False
        return all(self.element_type.type_check(e) for e in obj)

    def __str__(self):
        return f"list of {self.element_type}"


class Dict(Type):
    """Matches a dict whose keys match `key_type` and values `value_type`."""

    def __init__(self, key_type, value_type):
        self.key_type = key_type
        self.value_type = value_type

    def type_check(self, obj):
        if type(obj) != dict:  # noqa: E721
            return False
        return all(self.key_type.type_check(k) for k in obj.keys()) and all(
            self.value_type.type_check(v) for v in obj.values()
        )

    def __str__(self):
        return f"dict with {self.key_type} keys and {self.value_type} values"
