#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins for the azcmdlet CLI.

The CLI has two pluggable behaviors: **credential loading** and the
**environment profile store**. Both are chosen in the user configuration file
with a plug-in entry:

    PLUGIN_NAME:
      plugin: PYTHON_MODULE.CLASSNAME
      options:
        ARG1: VAL1
        ARG2: VAL2

`PLUGIN_NAME` is `Credentials` or `Profile`. `plugin` is the dotted path of an
`azcmdlet.plugmgr.Plugin` subclass installed in the Python path, and `options`
are made available to it. When no plug-in entry is given, the defaults are
`azcmdlet.plugins.creds.azure.Default` and `azcmdlet.plugins.profile.YAMLFile`.
"""
