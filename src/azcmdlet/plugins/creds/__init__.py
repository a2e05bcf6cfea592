#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins for credential loading.

The built-in plug-ins are in `azcmdlet.plugins.creds.azure`. A user-defined
plug-in is any `azcmdlet.plugmgr.Plugin` that returns an
`azcmdlet.session.SessionProvider`:

    Credentials:
      plugin: your.own.module.PluginSubclass
      options:
        ARG1: VAL1
"""
