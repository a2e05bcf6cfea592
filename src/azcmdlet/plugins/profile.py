#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins for the environment profile store.

Specify one in the `Profile` block of the user configuration file:

    Profile:
      plugin: azcmdlet.plugins.profile.YAMLFile
      options:
        path: ~/.azcmdlet/profile.yaml

A user-defined plug-in is any `azcmdlet.plugmgr.Plugin` that returns an
`azcmdlet.profile.ProfileStore`.
"""

from azcmdlet.config import Str
from azcmdlet.plugmgr import Plugin
from azcmdlet.profile import YAMLProfileStore

DEFAULT_PATH = "~/.azcmdlet/profile.yaml"


class YAMLFile(Plugin):
    """CLI plug-in that keeps environment records in a YAML file.

    ## Plug-in Options

    `path`, `--profile-path`
    :  The file holding the records. The default is "~/.azcmdlet/profile.yaml".
    """

    def __init__(self, parser, cfg):
        super().__init__(parser, cfg)

        group = parser.add_argument_group("profile store options")
        group.add_argument(
            "--profile-path",
            metavar="FILE",
            default=self.cfg("path", type=Str, default=DEFAULT_PATH),
            help="file holding environment records",
        )

    def instantiate(self, args):
        return YAMLProfileStore(args.profile_path)
