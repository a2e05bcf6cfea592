#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Provides additional actions and formatters for the builtin argparse module."""

import argparse


class RawAndDefaultsFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter
):
    """Mixin of ArgumentDefaultsHelpFormatter and RawDescriptionHelpFormatter.

    The argparse module does not allow for easy combinations of help formatters.
    This class combines the raw formatter, so module docstrings used as epilogs
    keep their layout, with the default args formatter.
    """


class AppendWithoutDefault(argparse.Action):
    """Argparse action to append to a list without the default.

    Out of the box, `append` adds command line values to the default list. This
    action only uses the default if no values were given on the command line:

        >>> parser = argparse.ArgumentParser()
        >>> parser.add_argument('--cmd-path', action=AppendWithoutDefault, default=['a.b'])
        >>> parser.parse_args('--cmd-path x.y --cmd-path /tmp/cmds'.split())
        Namespace(cmd_path=['x.y', '/tmp/cmds'])
        >>> parser.parse_args('')
        Namespace(cmd_path=['a.b'])
    """

    def __init__(self, *args, **kwargs):
        self.has_been_called = False
        super().__init__(*args, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        current = [] if not self.has_been_called else getattr(namespace, self.dest)
        current.append(values)
        setattr(namespace, self.dest, current)
        self.has_been_called = True


def flag(name):
    """Return the command line flag for the canonical parameter `name`.

        >>> flag('replication_port')
        '--replication-port'
    """
    return "--" + name.replace("_", "-")


def bound_args(namespace):
    """Return a dict of the arguments that were present on the command line.

    Arguments registered with `default=argparse.SUPPRESS` are only added to the
    namespace when the user supplied them, so the returned dict holds exactly
    the bound arguments.
    """
    return dict(vars(namespace))
