#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Obtain Azure credentials via azure-identity.

Two session providers are included:

`CredsViaAzureDefault`
:  Credentials are obtained from environment variables, an Azure managed
identity, the shared token cache, the Azure CLI, or interactively via the
browser, whichever succeeds first.

`CredsViaUsernamePassword`
:  Credentials are obtained with a username and password.

Both return the same credential for every subscription, as credentials only
differ across tenants:

    provider = CredsViaAzureDefault(authority='login.microsoftonline.us')
    credential = provider.session('00000000-0000-0000-0000-000000000000')

The `authority` is the host of the Azure AD that issues the tokens. Sovereign
and custom clouds set it to the host of their `ActiveDirectory` endpoint.
"""

from azure.identity import DefaultAzureCredential, UsernamePasswordCredential

from azcmdlet.session import SessionProvider

# UsernamePasswordCredential requires a client ID, so the one of the Azure CLI
# is used.
DEVELOPER_SIGN_ON_CLIENT_ID = "04b07795-8ddb-461a-bbee-02f9e1bf7b46"


# pylint: disable=too-few-public-methods


class CredsViaAzureDefault(SessionProvider):
    """A session provider backed by `DefaultAzureCredential`.

    The `authority` argument is the Microsoft authority host. If none is
    provided, the default is "login.microsoftonline.com".
    """

    def __init__(self, authority=None):
        self.creds = DefaultAzureCredential(
            exclude_interactive_browser_credential=False, authority=authority
        )

    def session(self, _subscription_id):
        return self.creds


class CredsViaUsernamePassword(SessionProvider):
    """A session provider that authenticates with a username and password.

    `tenant_id` is optional as it can normally be derived from the username.
    `authority` is the Microsoft authority host. No token is requested here.
    The first one is requested by the Site Recovery client for the scope of
    the selected environment, so a wrong password surfaces as a `RemoteError`
    from that call.
    """

    def __init__(self, username, password, tenant_id=None, authority=None):
        self.creds = UsernamePasswordCredential(
            DEVELOPER_SIGN_ON_CLIENT_ID,
            username,
            password,
            tenant_id=tenant_id,
            authority=authority,
        )

    def session(self, _subscription_id):
        return self.creds
