#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Show Azure environment records.

## Overview

The get_environment command shows the environment given by name, or every
known environment, built-in clouds first, when no name is given:

    $ azcmdlet get_environment AzureCloud
    Name                                     : AzureCloud
    OnPremise                                : False
    PublishSettingsFileUrl                   : https://go.microsoft.com/fwlink/?LinkID=301775
    ...

Names are matched without regard to case.
"""

from azcmdlet.errors import ValidationError
from azcmdlet.params import Parameter, ParameterTable, Text
from azcmdlet.runner import Cmdlet


class CLICommand(Cmdlet):
    """Show one or all Azure environments."""

    parameters = ParameterTable(
        Parameter("name", Text(), position=0, help_text="name of the environment"),
    )

    def execute(self, context, request):
        store = context.profile_store
        name = self.invocation.get("name")
        if name is None:
            return store.environments()

        environment = store.get_environment(name)
        if environment is None:
            known = [e.name for e in store.environments()]
            raise ValidationError("name", f"unknown environment '{name}'", known)
        return environment
