#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Add or update an Azure environment record.

## Overview

The add_environment command stores the endpoints of an Azure environment, such
as an Azure Stack deployment, under a name that can be passed to `--environment`
afterwards. If an environment of that name is already stored, the endpoints
given now replace the stored ones and the others are kept. The built-in clouds
AzureCloud, AzureChinaCloud, and AzureUSGovernment cannot be changed.

    $ azcmdlet add_environment MyStack \\
        --resource-manager-endpoint https://management.mystack.example/ \\
        --active-directory-endpoint https://login.mystack.example/adfs \\
        --enable-adfs-authentication
    Proceed with adding environment 'MyStack' (y/n)? y
    Name            : MyStack
    OnPremise       : True
    ResourceManager : https://management.mystack.example/
    ActiveDirectory : https://login.mystack.example/adfs/

The ActiveDirectory endpoint always ends with a '/'. Every endpoint may also be
given positionally, in the order listed by `--help`.

## Configuration

There is no default for the data lake audience of a custom environment. To
use one for every environment added, set it in the configuration file:

    Commands:
      add_environment:
        data_lake_audience: https://datalake.azure.net/
"""

from azcmdlet import environment as env
from azcmdlet.environment import AzureEnvironment
from azcmdlet.params import Parameter, ParameterTable, Switch, Text, Url
from azcmdlet.runner import Cmdlet

# Parameter name, field, endpoint kind, and aliases, in positional order.
_ENDPOINTS = [
    ("publish_settings_file_url", Url(), env.PUBLISH_SETTINGS_FILE_URL, ()),
    (
        "service_endpoint",
        Url(),
        env.SERVICE_MANAGEMENT,
        ("service_management", "service_management_url"),
    ),
    ("management_portal_url", Url(), env.MANAGEMENT_PORTAL_URL, ()),
    ("storage_endpoint", Text(), env.STORAGE_ENDPOINT_SUFFIX, ("storage_endpoint_suffix",)),
    (
        "active_directory_endpoint",
        Url(trailing_slash=True),
        env.ACTIVE_DIRECTORY,
        ("ad_endpoint_url", "active_directory", "active_directory_authority"),
    ),
    (
        "resource_manager_endpoint",
        Url(),
        env.RESOURCE_MANAGER,
        ("resource_manager", "resource_manager_url"),
    ),
    ("gallery_endpoint", Url(), env.GALLERY, ("gallery", "gallery_url")),
    (
        "active_directory_service_endpoint_resource_id",
        Text(),
        env.AD_SERVICE_ENDPOINT_RESOURCE_ID,
        (),
    ),
    ("graph_endpoint", Url(), env.GRAPH, ("graph", "graph_url")),
    ("azure_key_vault_dns_suffix", Text(), env.KEY_VAULT_DNS_SUFFIX, ()),
    (
        "azure_key_vault_service_endpoint_resource_id",
        Text(),
        env.KEY_VAULT_SERVICE_RESOURCE_ID,
        (),
    ),
    ("traffic_manager_dns_suffix", Text(), env.TRAFFIC_MANAGER_DNS_SUFFIX, ()),
    ("sql_database_dns_suffix", Text(), env.SQL_DATABASE_DNS_SUFFIX, ()),
    (
        "azure_data_lake_store_file_system_endpoint_suffix",
        Text(),
        env.DATA_LAKE_STORE_SUFFIX,
        (),
    ),
    (
        "azure_data_lake_analytics_catalog_and_job_endpoint_suffix",
        Text(),
        env.DATA_LAKE_ANALYTICS_SUFFIX,
        (),
    ),
]

# Parameters placed after the on-premise switch.
_TRAILING_ENDPOINTS = [
    ("ad_tenant", Text(), env.AD_TENANT, ()),
    (
        "graph_audience",
        Text(),
        env.GRAPH_RESOURCE_ID,
        ("graph_endpoint_resource_id", "graph_resource_id"),
    ),
    (
        "data_lake_audience",
        Text(),
        env.DATA_LAKE_RESOURCE_ID,
        ("data_lake_endpoint_resource_id", "data_lake_resource_id"),
    ),
]

ENDPOINT_PARAMETERS = {
    name: kind for name, _, kind, _ in _ENDPOINTS + _TRAILING_ENDPOINTS
}
"""Maps each endpoint parameter to the endpoint kind it sets."""


def _endpoint_parameters(endpoints, first_position):
    return [
        Parameter(
            name,
            field,
            position=first_position + i,
            aliases=aliases,
            help_text=f"{kind} endpoint",
        )
        for i, (name, field, kind, aliases) in enumerate(endpoints)
    ]


class CLICommand(Cmdlet):
    """Add or update an Azure environment."""

    action = "adding environment"

    parameters = ParameterTable(
        Parameter(
            "name", Text(), mandatory=True, position=0, help_text="name of the environment"
        ),
        *_endpoint_parameters(_ENDPOINTS, 1),
        Parameter(
            "enable_adfs_authentication",
            Switch(),
            position=len(_ENDPOINTS) + 1,
            aliases=("on_premise",),
            help_text="authenticate with AD FS instead of Azure AD",
        ),
        *_endpoint_parameters(_TRAILING_ENDPOINTS, len(_ENDPOINTS) + 2),
    )

    def build(self, invocation):
        return AzureEnvironment(
            invocation["name"],
            on_premise=invocation.get("enable_adfs_authentication"),
            endpoints={
                kind: invocation.get(name) for name, kind in ENDPOINT_PARAMETERS.items()
            },
        )

    def execute(self, context, request):
        return context.profile_store.add_or_set_environment(request)
