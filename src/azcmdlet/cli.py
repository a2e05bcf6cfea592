#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""The azcmdlet CLI runs Azure management cmdlets.

## Overview

The CLI validates the parameters of a cmdlet, works out which of its parameter
sets applies, asks before changing anything, and prints the result. This page
is both a user guide and a reference for the command line and the
configuration file.

## CLI User Guide

### Usage

There are three kinds of options: core options of the CLI, options of the
plug-ins in use, and the parameters of the cmdlet:

    $ azcmdlet [core options] [plug-in options] command [command options]

`azcmdlet --help` lists the core and plug-in options. `azcmdlet` alone lists
the available commands, and `azcmdlet COMMAND --help` lists the parameters of a
command, which of them are mandatory in which parameter set, their allowed
values, and their defaults.

Adding an environment record and showing it again:

    $ azcmdlet add_environment MyStack --resource-manager-endpoint https://management.mystack.example/
    Proceed with adding environment 'MyStack' (y/n)? y
    Name            : MyStack
    OnPremise       : False
    ResourceManager : https://management.mystack.example/

    $ azcmdlet --output json get_environment MyStack

Commands that change anything ask for confirmation first. `--force` skips the
question and `--what-if` shows what would be done without doing it. Answering
anything but 'y' exits with status 0 and no output.

Site Recovery commands act on one Recovery Services vault, selected with
`--subscription`, `--resource-group`, and `--vault`, in the cloud selected with
`--environment`. Custom environments added with add_environment can be
selected by name:

    $ azcmdlet --environment MyStack --subscription SUB --resource-group rg \\
        --vault my-vault get_asr_job 6b7d...

### Configuration

Core options, plug-in options, and cmdlet parameter defaults can be kept in a
YAML file, `$HOME/.azcmdlet.yaml` unless the `AZCMDLET_CONFIG` environment
variable names another. Flags on the command line override it:

    CLI:
      environment: AzureCloud
      subscription: 00000000-0000-0000-0000-000000000000
      resource_group: recovery-rg
      vault: my-vault
      output: text
      color: true
      log_level: ERROR
      cmd_path:
        - azcmdlet.commands.profile
        - azcmdlet.commands.siterecovery
        - ~/cmdlets/

    Commands:
      new_asr_policy:
        compression: Enable
      add_environment:
        data_lake_audience: https://datalake.azure.net/

    Credentials:
      plugin: azcmdlet.plugins.creds.azure.Default
      options:
        authority: login.microsoftonline.com

    Profile:
      plugin: azcmdlet.plugins.profile.YAMLFile
      options:
        path: ~/.azcmdlet/profile.yaml

Defaults under `Commands` are only applied to parameters of the parameter set
that was resolved from the parameters given on the command line.

## CLI Reference

### Core Options

`--environment NAME`
:  Azure environment of the Site Recovery vault. Default: AzureCloud.

`--subscription ID`, `--resource-group NAME`, `--vault NAME`
:  The Recovery Services vault used by Site Recovery commands.

`--force`
:  Do not ask before changing anything.

`--what-if`
:  Show what would be changed and change nothing.

`--output {text,json,yaml}`
:  Format of the result. Default: text.

`--color`
:  Color the state of jobs in text output.

`--log-level {DEBUG,INFO,WARN,ERROR}`
:  Logging level. INFO shows the resolved parameter set and remote calls.

`--cmd-path PATH`
:  Directory or Python package searched for commands. May be repeated.

### Troubleshooting

On error, the CLI prints one line to standard error and exits with status 1.
Set `AZCMDLET_TRACE` to `1` to print the traceback as well:

    $ AZCMDLET_TRACE=1 azcmdlet ...
"""

import argparse
import logging
import os
import sys
import traceback
from functools import partial
from pathlib import Path

from azcmdlet import __version__
from azcmdlet.argparse import AppendWithoutDefault, RawAndDefaultsFormatter, flag
from azcmdlet.cmdmgr import CommandManager, CommandNotFoundError
from azcmdlet.config import Bool, Choice, Config, List, Str
from azcmdlet.errors import ConfigurationError
from azcmdlet.output import FORMATS, render
from azcmdlet.plugmgr import PluginManager
from azcmdlet.profile import ProfileStore
from azcmdlet.runner import AlwaysConfirm, CmdletRunner, Context, PromptConfirmation, WhatIf
from azcmdlet.session import SessionProvider
from azcmdlet.siterecovery import SiteRecoveryClient

LOG = logging.getLogger(__name__)

SHORT_DESCRIPTION = """
Runs an Azure management cmdlet.

The list of available commands, and brief descriptions of each, can be
displayed by omitting the command. Each command has its own parameters,
which can be viewed by passing --help after the command.
    """.strip()

DEFAULT_CMD_PATH = ["azcmdlet.commands.profile", "azcmdlet.commands.siterecovery"]

LOG_LEVELS = ["DEBUG", "INFO", "WARN", "ERROR"]


# setup.py establishes this as the entry point for the azcmdlet CLI.
def main():
    """The main entry point for the `azcmdlet` CLI tool installed with this package.

    Exits with a `0` status code upon success, including when the user declines
    a confirmation. Upon error, prints the error message to standard error and
    exits with `1`. Set the `AZCMDLET_TRACE` environment variable to include the
    traceback.
    """
    try:
        _cli()

    except Exception as e:  # pylint: disable=broad-except
        if os.getenv("AZCMDLET_TRACE"):
            traceback.print_exc(file=sys.stderr)

        print(e, file=sys.stderr)
        sys.exit(1)


def _config_filename():
    return os.environ.get("AZCMDLET_CONFIG", Path.home() / ".azcmdlet.yaml")


def _cli(argv=None):
    """Parses command line arguments and runs the selected cmdlet.

    Arguments are parsed in four stages: the core options, the options of the
    plug-ins, the command name and its remaining arguments, and finally the
    command's own parameters in `azcmdlet.cmdmgr`.
    """
    config = Config.from_file(_config_filename())
    cfg = partial(config.get, "CLI")

    # Help is added after the plug-ins have registered their flags, so it
    # lists them too.
    parser = argparse.ArgumentParser(
        add_help=False,
        allow_abbrev=False,
        formatter_class=RawAndDefaultsFormatter,
        description=SHORT_DESCRIPTION,
    )

    azure_group = parser.add_argument_group("Azure options")
    azure_group.add_argument(
        "--environment",
        metavar="NAME",
        default=cfg("environment", type=Str, default="AzureCloud"),
        help="Azure environment of the Site Recovery vault",
    )

    azure_group.add_argument(
        "--subscription",
        metavar="ID",
        default=cfg("subscription", type=Str),
        help="subscription of the Site Recovery vault",
    )

    azure_group.add_argument(
        "--resource-group",
        metavar="NAME",
        default=cfg("resource_group", type=Str),
        help="resource group of the Site Recovery vault",
    )

    azure_group.add_argument(
        "--vault",
        metavar="NAME",
        default=cfg("vault", type=Str),
        help="name of the Site Recovery vault",
    )

    confirm_group = parser.add_mutually_exclusive_group()
    confirm_group.add_argument(
        "--force",
        action="store_true",
        help="do not ask for confirmation before changing anything",
    )

    confirm_group.add_argument(
        "--what-if",
        action="store_true",
        help="show what would be changed without changing it",
    )

    parser.add_argument(
        "--output",
        default=cfg("output", type=Choice(*FORMATS), default="text"),
        choices=FORMATS,
        help="format of the result",
    )

    parser.add_argument(
        "--color",
        action="store_true",
        default=cfg("color", type=Bool, default=False),
        help="color job states in text output",
    )

    parser.add_argument(
        "--version", action="version", version="%(prog)s " + __version__
    )

    parser.add_argument(
        "--log-level",
        default=cfg("log_level", type=Choice(*LOG_LEVELS), default="ERROR"),
        choices=LOG_LEVELS,
        help="set the logging level",
    )

    parser.add_argument(
        "--cmd-path",
        action=AppendWithoutDefault,
        metavar="PATH",
        default=cfg("cmd_path", type=List(Str), default=DEFAULT_CMD_PATH),
        help="directory or python package used to find commands",
    )

    args, remaining_argv = parser.parse_known_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    plugin_mgr = PluginManager(config, parser, args, remaining_argv)
    plugin_mgr.parse_args("Profile", default="azcmdlet.plugins.profile.YAMLFile")
    plugin_mgr.parse_args("Credentials", default="azcmdlet.plugins.creds.azure.Default")

    parser.add_argument("-h", "--help", action="help")
    parser.add_argument("command", nargs="?", help="command to execute")
    parser.add_argument(
        "arguments", nargs=argparse.REMAINDER, default=[], help="arguments for command"
    )
    args = parser.parse_args(plugin_mgr.remaining_argv, plugin_mgr.args)

    command_mgr = CommandManager.from_paths(*args.cmd_path)

    if not args.command:
        _print_valid_commands(command_mgr.commands())
        sys.exit(1)

    try:
        cmdlet = command_mgr.instantiate_command(
            args.command, args.arguments, partial(config.get, "Commands", args.command)
        )
    except CommandNotFoundError:
        _print_valid_commands(command_mgr.commands(), out=sys.stderr)
        raise

    # Collaborators are only built when a cmdlet asks for them, so read-only
    # profile commands never obtain Azure credentials.
    context = Context(
        profile_store=partial(plugin_mgr.instantiate, "Profile", must_be=ProfileStore),
        site_recovery=lambda: _site_recovery_client(args, context, plugin_mgr),
    )

    if args.what_if:
        gate = WhatIf()
    elif args.force:
        gate = AlwaysConfirm()
    else:
        gate = PromptConfirmation()

    result = CmdletRunner(context, gate).run(cmdlet)
    if result is not None:
        render(result, args.output, args.color)


def _site_recovery_client(args, context, plugin_mgr):
    """Returns the `SiteRecoveryClient` of the vault selected on the CLI."""
    missing = [
        flag(n) for n in ("subscription", "resource_group", "vault") if not getattr(args, n)
    ]
    if missing:
        raise ConfigurationError(f"select the Site Recovery vault with: {', '.join(missing)}")

    environment = context.profile_store.get_environment(args.environment)
    if environment is None:
        raise ConfigurationError(f"unknown environment '{args.environment}'")

    session_provider = plugin_mgr.instantiate("Credentials", must_be=SessionProvider)
    return SiteRecoveryClient.from_environment(
        session_provider.session(args.subscription),
        environment,
        args.subscription,
        args.resource_group,
        args.vault,
    )


def _print_valid_commands(commands, out=None):
    """Pretty print a table of command names and their class docstrings."""
    out = out or sys.stdout
    if not commands:
        print("No commands found, did you specify the correct --cmd-path?", file=out)
        return

    print("The following are the available commands:\n", file=out)
    max_cmd_len = max(len(name) for name in commands)
    for name in sorted(commands):
        docstring = commands[name].__doc__ or ""
        print(f"{name:{max_cmd_len}}  {docstring}", file=out)
    print(file=out)


if __name__ == "__main__":
    main()
