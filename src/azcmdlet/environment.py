#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Models an Azure environment, the set of endpoints of one Azure cloud.

An `AzureEnvironment` has a name, an on-premise flag indicating that it
authenticates against AD FS instead of Azure AD, and a table of endpoints
keyed by one of the endpoint kinds listed in `ENDPOINTS`. An endpoint that is
missing from the table means the default for that kind is used.

Three public clouds are built in and are available from
`builtin_environment`. They cannot be changed by
`azcmdlet.profile.ProfileStore`.
"""

from azcmdlet.params import ensure_trailing_slash

PUBLISH_SETTINGS_FILE_URL = "PublishSettingsFileUrl"
SERVICE_MANAGEMENT = "ServiceManagement"
RESOURCE_MANAGER = "ResourceManager"
MANAGEMENT_PORTAL_URL = "ManagementPortalUrl"
STORAGE_ENDPOINT_SUFFIX = "StorageEndpointSuffix"
ACTIVE_DIRECTORY = "ActiveDirectory"
AD_SERVICE_ENDPOINT_RESOURCE_ID = "ActiveDirectoryServiceEndpointResourceId"
GALLERY = "Gallery"
GRAPH = "Graph"
KEY_VAULT_DNS_SUFFIX = "AzureKeyVaultDnsSuffix"
KEY_VAULT_SERVICE_RESOURCE_ID = "AzureKeyVaultServiceEndpointResourceId"
TRAFFIC_MANAGER_DNS_SUFFIX = "TrafficManagerDnsSuffix"
SQL_DATABASE_DNS_SUFFIX = "SqlDatabaseDnsSuffix"
DATA_LAKE_STORE_SUFFIX = "AzureDataLakeStoreFileSystemEndpointSuffix"
DATA_LAKE_ANALYTICS_SUFFIX = "AzureDataLakeAnalyticsCatalogAndJobEndpointSuffix"
AD_TENANT = "AdTenant"
GRAPH_RESOURCE_ID = "GraphEndpointResourceId"
DATA_LAKE_RESOURCE_ID = "DataLakeEndpointResourceId"

ENDPOINTS = (
    PUBLISH_SETTINGS_FILE_URL,
    SERVICE_MANAGEMENT,
    RESOURCE_MANAGER,
    MANAGEMENT_PORTAL_URL,
    STORAGE_ENDPOINT_SUFFIX,
    ACTIVE_DIRECTORY,
    AD_SERVICE_ENDPOINT_RESOURCE_ID,
    GALLERY,
    GRAPH,
    KEY_VAULT_DNS_SUFFIX,
    KEY_VAULT_SERVICE_RESOURCE_ID,
    TRAFFIC_MANAGER_DNS_SUFFIX,
    SQL_DATABASE_DNS_SUFFIX,
    DATA_LAKE_STORE_SUFFIX,
    DATA_LAKE_ANALYTICS_SUFFIX,
    AD_TENANT,
    GRAPH_RESOURCE_ID,
    DATA_LAKE_RESOURCE_ID,
)
"""Every endpoint kind, in the order records are displayed and stored."""


class AzureEnvironment:
    """A named Azure environment and its endpoints.

    `endpoints` is a dict of endpoint kind to value. Keys must be one of
    `ENDPOINTS` and `None` values are dropped. The `ActiveDirectory` endpoint
    always ends in a single '/'.

    `on_premise` is `None` on an update that leaves the stored flag alone.
    """

    def __init__(self, name, on_premise=False, endpoints=None):
        self.name = name
        self.on_premise = on_premise
        self.endpoints = {}
        for kind, value in (endpoints or {}).items():
            self.set_endpoint(kind, value)

    def get_endpoint(self, kind):
        """Returns the endpoint of `kind`, or `None` if the default applies."""
        return self.endpoints.get(kind)

    def set_endpoint(self, kind, value):
        """Sets the endpoint of `kind`, or removes it if `value` is `None`."""
        if kind not in ENDPOINTS:
            raise ValueError(f"unknown endpoint kind: {kind}")

        if value is None:
            self.endpoints.pop(kind, None)
        elif kind == ACTIVE_DIRECTORY:
            self.endpoints[kind] = ensure_trailing_slash(value)
        else:
            self.endpoints[kind] = value

    def merge(self, other):
        """Returns a new environment with the endpoints of `other` laid over these.

        Endpoints present in `other` replace ours and endpoints it does not set
        are kept. The on-premise flag is taken from `other` unless it is `None`.
        """
        endpoints = dict(self.endpoints)
        endpoints.update(other.endpoints)
        on_premise = self.on_premise if other.on_premise is None else other.on_premise
        return AzureEnvironment(self.name, on_premise, endpoints)

    def to_dict(self):
        d = {"Name": self.name, "OnPremise": bool(self.on_premise)}
        d.update((k, self.endpoints[k]) for k in ENDPOINTS if k in self.endpoints)
        return d

    @classmethod
    def from_dict(cls, name, d):
        """Builds an environment from the stored form produced by `to_dict`."""
        endpoints = {k: v for k, v in d.items() if k not in ("Name", "OnPremise")}
        on_premise = d.get("OnPremise", False)
        if isinstance(on_premise, str):
            on_premise = on_premise.lower() == "true"
        return cls(d.get("Name", name), on_premise, endpoints)

    def __eq__(self, other):
        if not isinstance(other, AzureEnvironment):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"AzureEnvironment({self.name!r}, on_premise={self.on_premise!r})"


_BUILTIN = {
    "AzureCloud": {
        PUBLISH_SETTINGS_FILE_URL: "https://go.microsoft.com/fwlink/?LinkID=301775",
        SERVICE_MANAGEMENT: "https://management.core.windows.net/",
        RESOURCE_MANAGER: "https://management.azure.com/",
        MANAGEMENT_PORTAL_URL: "https://go.microsoft.com/fwlink/?LinkId=254433",
        STORAGE_ENDPOINT_SUFFIX: "core.windows.net",
        ACTIVE_DIRECTORY: "https://login.microsoftonline.com/",
        AD_SERVICE_ENDPOINT_RESOURCE_ID: "https://management.core.windows.net/",
        GALLERY: "https://gallery.azure.com/",
        GRAPH: "https://graph.windows.net/",
        KEY_VAULT_DNS_SUFFIX: "vault.azure.net",
        KEY_VAULT_SERVICE_RESOURCE_ID: "https://vault.azure.net",
        TRAFFIC_MANAGER_DNS_SUFFIX: "trafficmanager.net",
        SQL_DATABASE_DNS_SUFFIX: ".database.windows.net",
        DATA_LAKE_STORE_SUFFIX: "azuredatalakestore.net",
        DATA_LAKE_ANALYTICS_SUFFIX: "azuredatalakeanalytics.net",
        AD_TENANT: "Common",
        GRAPH_RESOURCE_ID: "https://graph.windows.net/",
        DATA_LAKE_RESOURCE_ID: "https://datalake.azure.net/",
    },
    "AzureChinaCloud": {
        PUBLISH_SETTINGS_FILE_URL: "https://go.microsoft.com/fwlink/?LinkID=301776",
        SERVICE_MANAGEMENT: "https://management.core.chinacloudapi.cn/",
        RESOURCE_MANAGER: "https://management.chinacloudapi.cn/",
        MANAGEMENT_PORTAL_URL: "https://go.microsoft.com/fwlink/?LinkId=301902",
        STORAGE_ENDPOINT_SUFFIX: "core.chinacloudapi.cn",
        ACTIVE_DIRECTORY: "https://login.chinacloudapi.cn/",
        AD_SERVICE_ENDPOINT_RESOURCE_ID: "https://management.core.chinacloudapi.cn/",
        GALLERY: "https://gallery.chinacloudapi.cn/",
        GRAPH: "https://graph.chinacloudapi.cn/",
        KEY_VAULT_DNS_SUFFIX: "vault.azure.cn",
        KEY_VAULT_SERVICE_RESOURCE_ID: "https://vault.azure.cn",
        TRAFFIC_MANAGER_DNS_SUFFIX: "trafficmanager.cn",
        SQL_DATABASE_DNS_SUFFIX: ".database.chinacloudapi.cn",
        AD_TENANT: "Common",
        GRAPH_RESOURCE_ID: "https://graph.chinacloudapi.cn/",
    },
    "AzureUSGovernment": {
        PUBLISH_SETTINGS_FILE_URL: "https://manage.windowsazure.us/publishsettings/index",
        SERVICE_MANAGEMENT: "https://management.core.usgovcloudapi.net/",
        RESOURCE_MANAGER: "https://management.usgovcloudapi.net/",
        MANAGEMENT_PORTAL_URL: "https://manage.windowsazure.us",
        STORAGE_ENDPOINT_SUFFIX: "core.usgovcloudapi.net",
        ACTIVE_DIRECTORY: "https://login.microsoftonline.us/",
        AD_SERVICE_ENDPOINT_RESOURCE_ID: "https://management.core.usgovcloudapi.net/",
        GALLERY: "https://gallery.usgovcloudapi.net/",
        GRAPH: "https://graph.windows.net/",
        KEY_VAULT_DNS_SUFFIX: "vault.usgovcloudapi.net",
        KEY_VAULT_SERVICE_RESOURCE_ID: "https://vault.usgovcloudapi.net",
        TRAFFIC_MANAGER_DNS_SUFFIX: "usgovtrafficmanager.net",
        SQL_DATABASE_DNS_SUFFIX: ".database.usgovcloudapi.net",
        AD_TENANT: "Common",
        GRAPH_RESOURCE_ID: "https://graph.windows.net/",
    },
}

BUILTIN_NAMES = tuple(_BUILTIN)
"""Names of the public clouds that are always available."""


def is_builtin(name):
    """Returns true if `name` is a built-in public cloud, ignoring case."""
    return any(name.lower() == b.lower() for b in BUILTIN_NAMES)


def builtin_environment(name):
    """Returns a new `AzureEnvironment` for the built-in cloud `name`, or `None`."""
    for builtin, endpoints in _BUILTIN.items():
        if name.lower() == builtin.lower():
            return AzureEnvironment(builtin, False, endpoints)
    return None
