#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Plug-ins that supply Azure AD credentials to Site Recovery cmdlets.

Pick one in the `Credentials` block of the user configuration file:

    Credentials:
      plugin: azcmdlet.plugins.creds.azure.UsernamePassword
      options:
        username: user@example.com

`azcmdlet.plugins.creds.azure.Default`
:  Walks the Azure SDK credential chain (environment, managed identity,
Azure CLI, and finally the browser).

`azcmdlet.plugins.creds.azure.UsernamePassword`
:  Signs in a single user with a username and password.

Both plug-ins accept `authority`, the host of the Azure AD that issues
tokens. Sovereign clouds need it set, e.g. "login.chinacloudapi.cn" for
`AzureChinaCloud`. Every option can be overridden with the matching `--ad-*`
flag.

Credentials are only built when a cmdlet talks to Azure, so the profile
cmdlets run without any sign-in.
"""

import getpass
import os

from azcmdlet.config import Str
from azcmdlet.plugmgr import Plugin
from azcmdlet.session.azure import CredsViaAzureDefault, CredsViaUsernamePassword

PUBLIC_AUTHORITY = "login.microsoftonline.com"


class _AzureAD(Plugin):
    # Registers the flags common to all Azure AD plug-ins.

    def __init__(self, parser, cfg):
        super().__init__(parser, cfg)
        self.group = parser.add_argument_group("Azure AD sign-in options")
        self.option("authority", "NAME", "Azure AD authority host", default=PUBLIC_AUTHORITY)

    def option(self, name, metavar, help_text, default=None):
        self.group.add_argument(
            f"--ad-{name}",
            metavar=metavar,
            default=self.cfg(name, type=Str, default=default),
            help=help_text,
        )


class Default(_AzureAD):
    """Credentials from the default Azure SDK credential chain.

        Credentials:
          plugin: azcmdlet.plugins.creds.azure.Default
          options:
            authority: STRING
    """

    def instantiate(self, args):
        return CredsViaAzureDefault(authority=args.ad_authority)


class UsernamePassword(_AzureAD):
    """Credentials for one user signing in with a password.

        Credentials:
          plugin: azcmdlet.plugins.creds.azure.UsernamePassword
          options:
            username: EMAIL
            password: STRING
            tenant: STRING
            authority: STRING

    A missing username is prompted for. A missing password falls back to the
    PASSWORD environment variable and then to a prompt. `tenant` is normally
    derived from the username's domain.
    """

    def __init__(self, parser, cfg):
        super().__init__(parser, cfg)
        self.option("username", "USER", "user to sign in as")
        self.option("password", "PASS", "password of the user", default=os.environ.get("PASSWORD"))
        self.option("tenant", "ID", "Azure AD tenant (directory) ID")

    def instantiate(self, args):
        username = args.ad_username or input("Username (email address)? ")
        password = args.ad_password or getpass.getpass(f"Password for {username}? ")
        return CredsViaUsernamePassword(
            username, password, tenant_id=args.ad_tenant, authority=args.ad_authority
        )
