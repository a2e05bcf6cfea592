#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""CLI and library of parameter-driven Azure management cmdlets.

## Overview

`azcmdlet` is both a CLI and a library of management operations, called
cmdlets, for Azure. A cmdlet declares its named and typed parameters, groups
them into mutually exclusive parameter sets, validates what it was given,
resolves the one parameter set that applies, builds a request for that
variant, asks for confirmation before changing anything, and then calls an
external collaborator such as the Azure Site Recovery API or the local
environment profile store.

### CLI Usage

The `azcmdlet` command is documented on the `azcmdlet.cli` page:

    $ azcmdlet add_environment MyStack --resource-manager https://management.mystack.example/
    $ azcmdlet --vault my-vault --resource-group rg new_asr_policy policy1 \\
        --replication-provider HyperVReplicaAzure --replication-frequency-in-seconds 300

### Library Usage

`azcmdlet.runner`
: `azcmdlet.runner.Cmdlet`, the base class of every cmdlet, and
`azcmdlet.runner.CmdletRunner`, which validates, confirms, and executes it.

`azcmdlet.params`
: Parameter declarations, field types, and the parameter set resolver.

`azcmdlet.siterecovery`
: Replication policy requests and the Site Recovery client adapter.

`azcmdlet.profile`
: The environment record store.

### User-Defined Cmdlets

A cmdlet is a single Python module containing a subclass of
`azcmdlet.runner.Cmdlet` called `CLICommand`. Add the directory or package
holding it to the command path with `--cmd-path` or the `cmd_path` option of
the configuration file. See `azcmdlet.commands`.

### User-Defined Plug-ins

Credentials and the profile store are plug-ins chosen in the configuration
file. Subclass `azcmdlet.plugmgr.Plugin` and return an
`azcmdlet.session.SessionProvider` or an `azcmdlet.profile.ProfileStore` from
its `instantiate` method. See `azcmdlet.plugins`.
"""

name = "azcmdlet"
__version__ = "1.0.0"
