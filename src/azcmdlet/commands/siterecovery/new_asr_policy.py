#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Create an Azure Site Recovery replication policy.

## Overview

The new_asr_policy command creates a Hyper-V replication policy in a Recovery
Services vault and shows the job the service started for it. The policy is
created in one of two parameter sets, which is inferred from the parameters
given:

`EnterpriseToEnterprise`
:  Replication between two on-premises Hyper-V sites. Requires
`--replication-port` and a `HyperVReplica2012` or `HyperVReplica2012R2`
provider.

`EnterpriseToAzure`
:  Replication from a Hyper-V site to Azure. Requires the `HyperVReplicaAzure`
provider.

For example, to replicate to Azure every five minutes:

    $ azcmdlet --subscription SUB --resource-group rg --vault my-vault \\
        new_asr_policy policy1 \\
        --replication-provider HyperVReplicaAzure \\
        --replication-frequency-in-seconds 300 \\
        --recovery-azure-storage-account-id /subscriptions/SUB/.../storageAccounts/sa1
    Proceed with creating replication policy 'policy1' (y/n)? y
    Name        : 6b7d...
    DisplayName : Create replication policy
    State       : InProgress
    ...

The job is read once. Use get_asr_job to follow it. Pass `--what-if` to the
CLI to see what would be created without creating it, and `--log-level INFO`
to see the request body.

## Parameters

`--replication-start-time` is a time of day in `HH:MM[:SS]` form, up to
`1.00:00:00`. `--replication-frequency-in-seconds` is one of 30, 300, or 900;
it is required for every provider but the `HyperVReplica2012` request has no
field for it. The allowed values and defaults of every parameter are listed by
`--help`.
"""

from datetime import timedelta

from azcmdlet.params import (
    Integer,
    OneOf,
    Parameter,
    ParameterTable,
    Text,
    TimeSpan,
)
from azcmdlet.runner import Cmdlet
from azcmdlet.siterecovery import (
    AUTHENTICATION_TYPES,
    ENTERPRISE_TO_AZURE,
    ENTERPRISE_TO_ENTERPRISE,
    HYPERV_REPLICA_2012,
    HYPERV_REPLICA_2012R2,
    HYPERV_REPLICA_AZURE,
    INITIAL_REPLICATION_METHODS,
    REPLICATION_FREQUENCIES,
    build_policy_request,
)

E2E = ENTERPRISE_TO_ENTERPRISE
E2A = ENTERPRISE_TO_AZURE


class CLICommand(Cmdlet):
    """Create a Site Recovery replication policy."""

    action = "creating replication policy"

    parameters = ParameterTable(
        Parameter("name", Text(), mandatory=True, position=0, help_text="name of the policy"),
        Parameter(
            "replication_provider",
            OneOf(HYPERV_REPLICA_2012R2, HYPERV_REPLICA_2012, HYPERV_REPLICA_AZURE),
            mandatory=True,
            help_text="replication provider",
        ),
        Parameter(
            "replication_method",
            OneOf(*INITIAL_REPLICATION_METHODS),
            sets=[E2E],
            default="Offline",
            help_text="initial replication method",
        ),
        Parameter(
            "replication_frequency_in_seconds",
            OneOf(*REPLICATION_FREQUENCIES),
            mandatory=True,
            help_text="seconds between replications",
        ),
        Parameter(
            "number_of_recovery_points_to_retain",
            Integer(minimum=0),
            default=0,
            aliases=("recovery_points",),
            help_text="number of recovery points to keep",
        ),
        Parameter(
            "application_consistent_snapshot_frequency_in_hours",
            Integer(minimum=0),
            default=0,
            help_text="hours between application consistent snapshots",
        ),
        Parameter(
            "compression",
            OneOf("Enable", "Disable"),
            sets=[E2E],
            default="Disable",
            help_text="compress replication traffic",
        ),
        Parameter(
            "replication_port",
            Integer(0, 65535),
            sets=[E2E],
            mandatory=True,
            help_text="port used for replication traffic",
        ),
        Parameter(
            "authentication",
            OneOf(*AUTHENTICATION_TYPES),
            sets=[E2E],
            default="Certificate",
            help_text="authentication between the sites",
        ),
        Parameter(
            "replication_start_time",
            TimeSpan(maximum=timedelta(hours=24)),
            help_text="time of day initial replication starts, as [d.]hh:mm[:ss]",
        ),
        Parameter(
            "replica_deletion",
            OneOf("Required", "NotRequired"),
            sets=[E2E],
            default="NotRequired",
            help_text="delete the replica when protection is disabled",
        ),
        Parameter(
            "recovery_azure_storage_account_id",
            Text(),
            sets=[E2A],
            help_text="ID of the storage account replicated to",
        ),
        Parameter(
            "encryption",
            OneOf("Enable", "Disable"),
            sets=[E2A],
            default="Disable",
            help_text="encrypt data at rest in Azure",
        ),
        sets=[E2E, E2A],
    )

    def build(self, invocation):
        return build_policy_request(invocation)

    def execute(self, context, request):
        client = context.site_recovery
        location = client.create_policy(self.invocation["name"], request)
        return client.fetch_operation_status(location)
