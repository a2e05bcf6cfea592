#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Loads the pluggable collaborators of the CLI from the user configuration.

## Overview

The CLI has two pluggable behaviors: how Azure credentials are obtained
(`Credentials`) and where environment records are stored (`Profile`). Each is
chosen with a plug-in entry in the user configuration that names a
`Plugin` subclass by its dotted path and, optionally, its options:

    Credentials:
      plugin: azcmdlet.plugins.creds.azure.UsernamePassword
      options:
        username: user@example.com

Loading happens in two steps. `PluginManager.parse_args` imports the plug-in
class and lets it register command line flags on the main parser, whose
defaults typically come from its options. `PluginManager.instantiate` later
builds the collaborator from the parsed arguments:

    parser = argparse.ArgumentParser()
    args, remaining = parser.parse_known_args()

    pm = PluginManager(config, parser, args, remaining)
    pm.parse_args('Profile', default='azcmdlet.plugins.profile.YAMLFile')
    args = parser.parse_args(pm.remaining_argv, pm.args)

    store = pm.instantiate('Profile', must_be=ProfileStore)

Keeping the steps apart lets the CLI report every argument error before any
plug-in does real work, such as prompting for a password.
"""

import importlib
import logging
from contextlib import suppress
from functools import partial, reduce
from inspect import isclass

LOG = logging.getLogger(__name__)


class Plugin:
    """Abstract base class of a CLI plug-in.

    The constructor is given the main CLI `parser`, on which the plug-in may
    register flags, and `cfg`, a callable implementing
    `azcmdlet.config.Config.get` relative to the plug-in's `options`. A flag
    usually takes its default from the options, so users can set it once in
    the configuration and override it on the command line:

        parser.add_argument(
            '--profile-path',
            default=cfg('path', type=Str, default='~/.azcmdlet/profile.yaml'),
            help='file holding environment records')

    The constructor must not parse arguments; `PluginManager` does that.
    """

    def __init__(self, parser, cfg):
        self.parser = parser
        self.cfg = cfg

    def instantiate(self, args):
        """Returns the collaborator built from `args`, the parsed `argparse.Namespace`."""
        raise NotImplementedError


class PluginManager:
    """Loads and instantiates plug-ins named in `config`.

    `config` is the `azcmdlet.config.Config` holding the
    plug-in entries, `parser` is the main CLI `argparse.ArgumentParser`,
    `parsed_args` is the namespace parsed so far, and `unparsed_argv` is the
    list of arguments not yet consumed, some of which may belong to plug-ins.
    """

    def __init__(self, config, parser, parsed_args, unparsed_argv):
        self._config = config
        self._parser = parser
        self._plugins = {}

        self.args = parsed_args
        """The `argparse.Namespace` that plug-in arguments are parsed into."""

        self.remaining_argv = unparsed_argv
        """The arguments no plug-in has consumed yet."""

    def parse_args(self, *keys, default=None):
        """Load the plug-in specified at `keys` and parse its arguments.

        `default` is the dotted path of the `Plugin` used when the
        configuration has no plug-in entry at `keys`.
        """
        path = self._config.get(*keys, "plugin") or default
        LOG.info("loading plug-in: %s", path)

        try:
            plugin_class = load_dotted_object(path)
        except ImportError as e:
            raise ValueError(f"Error in config: {'->'.join(keys)}->plugin: {e}") from e

        if not (isclass(plugin_class) and issubclass(plugin_class, Plugin)):
            raise TypeError(
                f"Error in config: {'->'.join(keys)}->plugin: '{path}' is not a {Plugin}"
            )

        cfg = partial(self._config.get, *keys, "options")
        plugin = plugin_class(self._parser, cfg)
        self.args, self.remaining_argv = self._parser.parse_known_args(
            self.remaining_argv, self.args
        )
        LOG.info("parsed args=%s remaining args=%s", self.args, self.remaining_argv)

        self._plugins[keys] = plugin

    def instantiate(self, *keys, default=None, must_be=None):
        """Returns the collaborator built by the plug-in specified at `keys`.

        `PluginManager.parse_args` is called first if it has not been. If
        `must_be` is given, the collaborator must be an instance of it or
        `TypeError` is raised.
        """
        if keys not in self._plugins:
            self.parse_args(*keys, default=default)

        instance = self._plugins[keys].instantiate(self.args)

        if must_be and not isinstance(instance, must_be):
            raise TypeError(
                f"Error in config: {'->'.join(keys)}->plugin: plugin did not build a {must_be}"
            )

        return instance


def load_dotted_object(dotted_name):
    """Returns the object at `dotted_name`, e.g. 'some.module.MyClass'.

    Raises `ImportError` if it cannot be loaded.
    """

    def doit(mod_name, attributes):
        if not mod_name:
            raise ImportError(f"cannot import '{dotted_name}'")

        mod = None
        with suppress(ModuleNotFoundError):
            mod = importlib.import_module(mod_name)

        if not mod:
            mod_name, _, attr = mod_name.rpartition(".")
            return doit(mod_name, [attr] + attributes)

        obj = reduce(lambda a, p: getattr(a, p, None), attributes, mod)
        if obj is None:
            raise ImportError(
                f"module '{mod_name}' does not contain '{'.'.join(attributes)}'"
            )
        return obj

    return doit(dotted_name, [])
