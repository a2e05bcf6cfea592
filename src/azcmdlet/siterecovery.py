#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Builds Site Recovery replication policy requests and sends them to Azure.

## Overview

A Hyper-V replication policy is created in one of two parameter sets. In the
`ENTERPRISE_TO_ENTERPRISE` set, virtual machines replicate between two
on-premises Hyper-V sites and the provider is either `HYPERV_REPLICA_2012` or
`HYPERV_REPLICA_2012R2`. In the `ENTERPRISE_TO_AZURE` set, they replicate to
Azure storage and the provider must be `HYPERV_REPLICA_AZURE`.

`build_policy_request` turns a validated `azcmdlet.params.Invocation` into one
of three request classes, each tagged with the provider it is for:

| provider              | request class                   |
|-----------------------|---------------------------------|
| `HyperVReplicaAzure`  | `HyperVReplicaAzurePolicyInput` |
| `HyperVReplica2012`   | `HyperVReplicaPolicyInput`      |
| `HyperVReplica2012R2` | `HyperVReplicaBluePolicyInput`  |

The tag is a class attribute, so a request can never carry the fields of one
provider with the tag of another. `PolicyRequest.serialize` returns the JSON
body sent to the service. Equal requests always serialize to identical bytes.

`SiteRecoveryClient` wraps the Azure SDK client of a Recovery Services vault.
Creating a policy returns the location of the job the service started, and
`SiteRecoveryClient.fetch_operation_status` reads that job once. Nothing in
this module polls or retries.
"""

import io
import json
import logging
import re

from azure.core.exceptions import AzureError
from azure.mgmt.recoveryservicessiterecovery import SiteRecoveryManagementClient

from azcmdlet.environment import AD_SERVICE_ENDPOINT_RESOURCE_ID, RESOURCE_MANAGER
from azcmdlet.errors import ConfigurationError, RemoteError, ValidationError
from azcmdlet.params import format_timespan

LOG = logging.getLogger(__name__)

ENTERPRISE_TO_ENTERPRISE = "EnterpriseToEnterprise"
ENTERPRISE_TO_AZURE = "EnterpriseToAzure"

HYPERV_REPLICA_2012 = "HyperVReplica2012"
HYPERV_REPLICA_2012R2 = "HyperVReplica2012R2"
HYPERV_REPLICA_AZURE = "HyperVReplicaAzure"

REPLICATION_FREQUENCIES = {"30": 30, "300": 300, "900": 900}
"""Replication frequency choices and the seconds they stand for."""

AUTHENTICATION_TYPES = {"Kerberos": 1, "Certificate": 2}
"""Authentication choices and the code the service expects."""

INITIAL_REPLICATION_METHODS = {"Online": "OverNetwork", "Offline": "Offline"}
"""Replication method choices and the value the service expects."""


class PolicyRequest:
    """Abstract base class of a provider-specific replication policy input.

    Subclasses set `instance_type` and implement `provider_input`.
    """

    instance_type = None

    def provider_input(self):
        """Returns a dict of the provider fields keyed by their wire names.

        Fields whose value is `None` are left out of the request body.
        """
        raise NotImplementedError

    def to_dict(self):
        body = {"instanceType": self.instance_type}
        body.update((k, v) for k, v in self.provider_input().items() if v is not None)
        return {"properties": {"providerSpecificInput": body}}

    def serialize(self):
        """Returns the JSON request body as bytes, with keys sorted."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":")).encode(
            "utf-8"
        )

    def __eq__(self, other):
        if not isinstance(other, PolicyRequest):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"{type(self).__name__}({self.provider_input()!r})"


class HyperVReplicaAzurePolicyInput(PolicyRequest):
    """Policy input for replication from Hyper-V to Azure."""

    instance_type = HYPERV_REPLICA_AZURE

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        recovery_point_history_duration,
        application_consistent_snapshot_frequency_in_hours,
        replication_interval,
        online_replication_start_time=None,
        storage_accounts=(),
        encryption="Disable",
    ):
        self.recovery_point_history_duration = recovery_point_history_duration
        self.application_consistent_snapshot_frequency_in_hours = (
            application_consistent_snapshot_frequency_in_hours
        )
        self.replication_interval = replication_interval
        self.online_replication_start_time = online_replication_start_time
        self.storage_accounts = list(storage_accounts)
        self.encryption = encryption

    def provider_input(self):
        return {
            "recoveryPointHistoryDuration": self.recovery_point_history_duration,
            "applicationConsistentSnapshotFrequencyInHours": self.application_consistent_snapshot_frequency_in_hours,
            "replicationInterval": self.replication_interval,
            "onlineReplicationStartTime": _start_time(self.online_replication_start_time),
            "storageAccounts": self.storage_accounts,
            "encryption": self.encryption,
        }


class HyperVReplicaPolicyInput(PolicyRequest):
    """Policy input for replication between Windows Server 2012 Hyper-V hosts."""

    instance_type = HYPERV_REPLICA_2012

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        allowed_authentication_type,
        application_consistent_snapshot_frequency_in_hours,
        compression,
        initial_replication_method,
        recovery_points,
        replica_deletion,
        replication_port,
        online_replication_start_time=None,
    ):
        self.allowed_authentication_type = allowed_authentication_type
        self.application_consistent_snapshot_frequency_in_hours = (
            application_consistent_snapshot_frequency_in_hours
        )
        self.compression = compression
        self.initial_replication_method = initial_replication_method
        self.recovery_points = recovery_points
        self.replica_deletion = replica_deletion
        self.replication_port = replication_port
        self.online_replication_start_time = online_replication_start_time

    def provider_input(self):
        return {
            "allowedAuthenticationType": self.allowed_authentication_type,
            "applicationConsistentSnapshotFrequencyInHours": self.application_consistent_snapshot_frequency_in_hours,
            "compression": self.compression,
            "initialReplicationMethod": self.initial_replication_method,
            "onlineReplicationStartTime": _start_time(self.online_replication_start_time),
            "recoveryPoints": self.recovery_points,
            "replicaDeletion": self.replica_deletion,
            "replicationPort": self.replication_port,
        }


class HyperVReplicaBluePolicyInput(HyperVReplicaPolicyInput):
    """Policy input for replication between Windows Server 2012 R2 Hyper-V hosts."""

    instance_type = HYPERV_REPLICA_2012R2

    def __init__(self, *args, replication_frequency_in_seconds=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.replication_frequency_in_seconds = replication_frequency_in_seconds

    def provider_input(self):
        d = super().provider_input()
        d["replicationFrequencyInSeconds"] = self.replication_frequency_in_seconds
        return d


def _start_time(span):
    return format_timespan(span) if span is not None else None


def build_policy_request(invocation):
    """Returns the `PolicyRequest` for a bound replication policy invocation.

    Dispatches on the resolved parameter set and then on the replication
    provider. Raises `azcmdlet.errors.ValidationError` if the provider cannot
    be used in the resolved parameter set.
    """
    provider = invocation["replication_provider"]
    frequency = REPLICATION_FREQUENCIES[invocation["replication_frequency_in_seconds"]]
    recovery_points = invocation.get("number_of_recovery_points_to_retain", 0)
    snapshot_frequency = invocation.get(
        "application_consistent_snapshot_frequency_in_hours", 0
    )
    start_time = invocation.get("replication_start_time")

    if invocation.parameter_set == ENTERPRISE_TO_AZURE:
        if provider != HYPERV_REPLICA_AZURE:
            raise ValidationError(
                "replication_provider",
                f"'{provider}' cannot replicate to Azure",
                (HYPERV_REPLICA_AZURE,),
            )
        account = invocation.get("recovery_azure_storage_account_id")
        return HyperVReplicaAzurePolicyInput(
            recovery_point_history_duration=recovery_points,
            application_consistent_snapshot_frequency_in_hours=snapshot_frequency,
            replication_interval=frequency,
            online_replication_start_time=start_time,
            storage_accounts=[account] if account else [],
            encryption=invocation.get("encryption", "Disable"),
        )

    if provider not in (HYPERV_REPLICA_2012, HYPERV_REPLICA_2012R2):
        raise ValidationError(
            "replication_provider",
            f"'{provider}' cannot replicate between on-premises sites",
            (HYPERV_REPLICA_2012, HYPERV_REPLICA_2012R2),
        )

    common = dict(
        allowed_authentication_type=AUTHENTICATION_TYPES[
            invocation.get("authentication", "Certificate")
        ],
        application_consistent_snapshot_frequency_in_hours=snapshot_frequency,
        compression=invocation.get("compression", "Disable"),
        initial_replication_method=INITIAL_REPLICATION_METHODS[
            invocation.get("replication_method", "Offline")
        ],
        recovery_points=recovery_points,
        replica_deletion=invocation.get("replica_deletion", "NotRequired"),
        replication_port=invocation["replication_port"],
        online_replication_start_time=start_time,
    )

    if provider == HYPERV_REPLICA_2012:
        return HyperVReplicaPolicyInput(**common)
    return HyperVReplicaBluePolicyInput(replication_frequency_in_seconds=frequency, **common)


class JobRecord:
    """A Site Recovery job as shown to the user."""

    # pylint: disable=too-many-instance-attributes

    def __init__(self, id, name, **properties):  # pylint: disable=redefined-builtin
        self.id = id
        self.name = name
        self.display_name = properties.get("display_name")
        self.state = properties.get("state")
        self.state_description = properties.get("state_description")
        self.start_time = properties.get("start_time")
        self.end_time = properties.get("end_time")
        self.target_object_id = properties.get("target_object_id")
        self.target_object_name = properties.get("target_object_name")
        self.target_object_type = properties.get("target_object_type")
        self.allowed_actions = list(properties.get("allowed_actions") or [])
        self.tasks = list(properties.get("tasks") or [])
        self.errors = list(properties.get("errors") or [])

    @classmethod
    def from_job(cls, job):
        """Projects an SDK `Job` model onto a `JobRecord`."""
        props = job.properties
        if props is None:
            return cls(job.id, job.name)

        return cls(
            job.id,
            job.name,
            display_name=props.friendly_name,
            state=props.state,
            state_description=props.state_description,
            start_time=props.start_time,
            end_time=props.end_time,
            target_object_id=props.target_object_id,
            target_object_name=props.target_object_name,
            target_object_type=props.target_instance_type,
            allowed_actions=props.allowed_actions,
            tasks=[f"{t.friendly_name or t.name}: {t.state}" for t in props.tasks or []],
            errors=[_error_message(e) for e in props.errors or []],
        )

    def to_dict(self):
        return {
            "Name": self.name,
            "ID": self.id,
            "DisplayName": self.display_name,
            "State": self.state,
            "StateDescription": self.state_description,
            "StartTime": self.start_time,
            "EndTime": self.end_time,
            "TargetObjectId": self.target_object_id,
            "TargetObjectName": self.target_object_name,
            "TargetObjectType": self.target_object_type,
            "AllowedActions": self.allowed_actions,
            "Tasks": self.tasks,
            "Errors": self.errors,
        }

    def __repr__(self):
        return f"JobRecord({self.name!r}, state={self.state!r})"


def _error_message(error):
    service = getattr(error, "service_error_details", None)
    if service is not None and service.message:
        return service.message
    provider = getattr(error, "provider_error_details", None)
    if provider is not None and provider.error_message:
        return provider.error_message
    return str(error)


_JOB_NAME_RE = re.compile(r"/replicationJobs/([^/?#]+)", re.IGNORECASE)


def job_name_from_location(location):
    """Returns the job name embedded in a job `location` URL.

        >>> job_name_from_location('https://management.azure.com/subscriptions/s'
        ...     '/resourceGroups/rg/providers/Microsoft.RecoveryServices/vaults/v'
        ...     '/replicationJobs/3f2b/operationresults/9c1e?api-version=2023-08-01')
        '3f2b'

    Raises `ValueError` if the URL does not name a job.
    """
    match = _JOB_NAME_RE.search(location or "")
    if not match:
        raise ValueError(f"not a replication job location: {location!r}")
    return match.group(1)


class SiteRecoveryClient:
    """Sends requests to the Site Recovery service of a Recovery Services vault.

    `client` is an Azure SDK `SiteRecoveryManagementClient`. `resource_group`
    and `vault` identify the vault. Use `SiteRecoveryClient.from_environment`
    to build one from credentials and an `azcmdlet.environment.AzureEnvironment`.

    Every `azure.core.exceptions.AzureError` is re-raised as
    `azcmdlet.errors.RemoteError` with the same message.
    """

    def __init__(self, client, resource_group, vault):
        self._client = client
        self.resource_group = resource_group
        self.vault = vault

    @classmethod
    def from_environment(cls, credential, environment, subscription_id, resource_group, vault):
        """Builds a client for the vault using the endpoints of `environment`.

        The management API is reached at the environment's `ResourceManager`
        endpoint and tokens are requested for its
        `ActiveDirectoryServiceEndpointResourceId`.
        """
        # pylint: disable=too-many-arguments
        base_url = environment.get_endpoint(RESOURCE_MANAGER)
        if not base_url:
            raise ConfigurationError(
                f"environment '{environment.name}' has no {RESOURCE_MANAGER} endpoint"
            )

        kwargs = {}
        resource = environment.get_endpoint(AD_SERVICE_ENDPOINT_RESOURCE_ID)
        if resource:
            kwargs["credential_scopes"] = [resource.rstrip("/") + "/.default"]

        LOG.info("connecting to site recovery at %s", base_url)
        client = SiteRecoveryManagementClient(
            credential, subscription_id, base_url=base_url.rstrip("/"), **kwargs
        )
        return cls(client, resource_group, vault)

    def _vault_args(self):
        return {"resource_name": self.vault, "resource_group_name": self.resource_group}

    def create_policy(self, name, request):
        """Creates the replication policy `name` and returns the job location.

        `request` is a `PolicyRequest`. The call returns as soon as the service
        has accepted the request.
        """
        responses = []

        LOG.info("creating replication policy '%s' in vault '%s'", name, self.vault)
        LOG.debug("request body: %s", request.serialize())
        try:
            self._client.replication_policies.begin_create(
                policy_name=name,
                input=io.BytesIO(request.serialize()),
                content_type="application/json",
                polling=False,
                raw_response_hook=responses.append,
                **self._vault_args(),
            )
        except AzureError as e:
            raise RemoteError(e.message) from e

        location = None
        for response in responses:
            headers = response.http_response.headers
            location = headers.get("Location") or headers.get("Azure-AsyncOperation")

        if not location:
            raise RemoteError(f"no job location returned for replication policy '{name}'")

        LOG.info("replication policy '%s' job location: %s", name, location)
        return location

    def fetch_operation_status(self, location):
        """Reads the job at `location` once and returns its `JobRecord`."""
        try:
            name = job_name_from_location(location)
        except ValueError as e:
            raise RemoteError(str(e)) from e
        return self.get_job(name)

    def get_job(self, name):
        """Returns the `JobRecord` of the job called `name`."""
        LOG.info("reading replication job '%s' in vault '%s'", name, self.vault)
        try:
            job = self._client.replication_jobs.get(job_name=name, **self._vault_args())
        except AzureError as e:
            raise RemoteError(e.message) from e
        return JobRecord.from_job(job)
