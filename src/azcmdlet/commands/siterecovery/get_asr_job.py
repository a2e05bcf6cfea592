#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Show the state of an Azure Site Recovery job.

## Overview

The get_asr_job command reads a job of the vault once and shows it. The job is
given by name, or by the location URL returned when it was started:

    $ azcmdlet --vault my-vault --resource-group rg get_asr_job 6b7d...
    $ azcmdlet --vault my-vault --resource-group rg get_asr_job \\
        --location https://management.azure.com/.../replicationJobs/6b7d...

Run it again to see later states; it never waits for the job.
"""

from azcmdlet.params import Parameter, ParameterTable, Text, Url
from azcmdlet.runner import Cmdlet

BY_NAME = "ByName"
BY_LOCATION = "ByLocation"


class CLICommand(Cmdlet):
    """Show a Site Recovery job."""

    parameters = ParameterTable(
        Parameter(
            "name",
            Text(),
            sets=[BY_NAME],
            mandatory=True,
            position=0,
            help_text="name of the job",
        ),
        Parameter(
            "location",
            Url(),
            sets=[BY_LOCATION],
            mandatory=True,
            help_text="location URL of the job",
        ),
        sets=[BY_NAME, BY_LOCATION],
    )

    def execute(self, context, request):
        client = context.site_recovery
        if self.invocation.parameter_set == BY_LOCATION:
            return client.fetch_operation_status(self.invocation["location"])
        return client.get_job(self.invocation["name"])
