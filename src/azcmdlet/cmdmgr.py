#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Finds and instantiates cmdlets by name for the CLI.

## Overview

Every cmdlet available on the command line lives in its own Python module
that defines a class called `CLICommand`, a subclass of
`azcmdlet.runner.Cmdlet`. The module name is the command name. For example,
`azcmdlet.commands.profile.add_environment` is invoked as:

    $ azcmdlet add_environment MyStack --resource-manager https://arm.example/

A `CommandManager` searches one or more locations for such modules with a
`CommandLoader`. `ModuleLoader` searches a Python package, `DirectoryLoader`
searches a directory of `.py` files, and `ChainLoader` searches several
loaders in priority order. `CommandManager.from_paths` builds the chain from
the `--cmd-path` values given to the CLI:

    cm = CommandManager.from_paths('azcmdlet.commands.profile', '~/cmdlets/')
    cm.commands()                      # {'add_environment': <class ...>, ...}

Programs that use azcmdlet as a library instantiate cmdlets directly and have
no need for this module.
"""

import argparse
import ast
import contextlib
import importlib
import logging
import os
import pkgutil
import sys

from azcmdlet.argparse import RawAndDefaultsFormatter
from azcmdlet.runner import Cmdlet

LOG = logging.getLogger(__name__)


class CommandManager:
    """Loads cmdlet classes with a `CommandLoader` and builds them from the CLI."""

    def __init__(self, loader):
        self._loader = loader

    @classmethod
    def from_paths(cls, *paths):
        """Creates a `CommandManager` that searches `paths` in order.

        A path containing a slash or backslash, or the bare '.', is a
        directory. Anything else is the dotted name of a Python package.
        """
        loaders = []
        for p in paths:
            if ("/" in p) or ("\\" in p) or (p == "."):
                loaders.append(DirectoryLoader(os.path.expanduser(p)))
            else:
                loaders.append(ModuleLoader(p))

        return cls(ChainLoader(*loaders))

    def commands(self):
        """Returns a dict of command name to cmdlet class for every cmdlet found."""
        return self._loader.load_all()

    def instantiate_command(self, command_name, argv, cfg):
        """Returns the cmdlet `command_name` built from the `argv` that followed it.

        The cmdlet's `azcmdlet.runner.Cmdlet.from_cli` is given a new argument
        parser whose epilog is the docstring of the cmdlet's module, the list
        of unparsed arguments, and `cfg`, a callable implementing
        `azcmdlet.config.Config.get` relative to the command's section of the
        user configuration. Invalid arguments make the parser exit the program
        with a usage message.

        Raises `CommandNotFoundError` if no cmdlet is called `command_name`.
        """
        cmd_class = self._loader.load(command_name)

        if not (isinstance(cmd_class, type) and issubclass(cmd_class, Cmdlet)):
            raise TypeError(
                f"'{command_name}' must be a subclass of azcmdlet.runner.Cmdlet"
            )

        parser = argparse.ArgumentParser(
            command_name,
            formatter_class=RawAndDefaultsFormatter,
            description=cmd_class.__doc__,
            epilog=sys.modules[cmd_class.__module__].__doc__,
        )
        return cmd_class.from_cli(parser, argv, cfg)


class CommandLoader:
    """Abstract base class that loads cmdlet classes from a source."""

    def load(self, command_name):
        """Returns the `CLICommand` class of `command_name`.

        Raises `CommandNotFoundError` if it cannot be loaded.
        """
        raise NotImplementedError

    def load_all(self):
        """Returns a dict of command name to class of every loadable cmdlet."""
        raise NotImplementedError


class ChainLoader(CommandLoader):
    """Searches `loaders` in order; the first one that has a command wins."""

    def __init__(self, *loaders):
        self.loaders = loaders

    def load(self, command_name):
        path_errors = {}
        for loader in self.loaders:
            try:
                return loader.load(command_name)
            except CommandNotFoundError as e:
                path_errors.update(e.path_errors)

        raise CommandNotFoundError(command_name, path_errors)

    def load_all(self):
        classes = {}
        # Later loaders are applied first so earlier ones overwrite them.
        for loader in reversed(self.loaders):
            classes.update(loader.load_all())
        return classes


class DirectoryLoader(CommandLoader):
    """Loads cmdlets from the `.py` files in the directory `directory_path`."""

    def __init__(self, directory_path):
        self.path = directory_path
        if directory_path not in sys.path:
            sys.path.append(directory_path)

    def load(self, command_name):
        fullpath = os.path.join(self.path, command_name) + ".py"
        LOG.info("loading command at '%s'", fullpath)
        try:
            # Parse before importing, so arbitrary scripts in the directory are
            # never executed.
            if not self._defines_cli_command(fullpath):
                raise ImportError("CLICommand class not found")

            return importlib.import_module(command_name).CLICommand

        except Exception as e:
            LOG.info("invalid command at '%s': %s", fullpath, e)
            raise CommandNotFoundError(command_name, {fullpath: e}) from e

    def load_all(self):
        classes = {}
        LOG.info("scanning directory '%s' for commands", self.path)
        for fn in os.listdir(self.path):
            if fn.startswith("__") or not fn.endswith(".py"):
                continue

            name = fn[: -len(".py")]
            with contextlib.suppress(CommandNotFoundError):
                classes[name] = self.load(name)

        return classes

    @staticmethod
    def _defines_cli_command(filename):
        with open(filename, encoding="utf-8") as f:
            node = ast.parse(f.read(), filename)
        return any(
            n.name == "CLICommand" for n in node.body if isinstance(n, ast.ClassDef)
        )


class ModuleLoader(CommandLoader):
    """Loads cmdlets from the modules of the Python package `module_name`."""

    def __init__(self, module_name):
        self.module_name = module_name

    def load(self, command_name):
        path = f"{self.module_name}.{command_name}"
        LOG.info("loading command at '%s'", path)
        try:
            return importlib.import_module(path).CLICommand
        except Exception as e:
            raise CommandNotFoundError(command_name, {self.module_name: e}) from e

    def load_all(self):
        classes = {}
        base = importlib.import_module(self.module_name)

        for m in pkgutil.iter_modules(base.__path__):
            with contextlib.suppress(CommandNotFoundError):
                classes[m.name] = self.load(m.name)

        return classes


class CommandNotFoundError(Exception):
    """Raised if a command cannot be found.

    `command_name` is the command that was requested and `path_errors` is a
    dict of each location searched to the error encountered there.
    """

    def __init__(self, command_name, path_errors):
        self.command_name = command_name
        self.path_errors = path_errors

        msg = f"'{command_name}' command not found:\n"
        for path, error in path_errors.items():
            msg += f"  {path} => {error}\n"
        super().__init__(msg)
