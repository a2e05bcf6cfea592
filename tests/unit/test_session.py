#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

from azcmdlet.session.azure import (
    DEVELOPER_SIGN_ON_CLIENT_ID,
    CredsViaAzureDefault,
    CredsViaUsernamePassword,
)


def test_username_password_requests_no_token(mocker):
    cred = mocker.patch("azcmdlet.session.azure.UsernamePasswordCredential")
    provider = CredsViaUsernamePassword(
        "user@example.com", "secret", tenant_id="t1", authority="login.chinacloudapi.cn"
    )

    cred.assert_called_once_with(
        DEVELOPER_SIGN_ON_CLIENT_ID,
        "user@example.com",
        "secret",
        tenant_id="t1",
        authority="login.chinacloudapi.cn",
    )
    cred.return_value.get_token.assert_not_called()
    assert provider.session("sub1") is cred.return_value
    assert provider.session("sub2") is cred.return_value


def test_default_credential(mocker):
    cred = mocker.patch("azcmdlet.session.azure.DefaultAzureCredential")
    provider = CredsViaAzureDefault(authority="login.microsoftonline.us")

    cred.assert_called_once_with(
        exclude_interactive_browser_credential=False, authority="login.microsoftonline.us"
    )
    cred.return_value.get_token.assert_not_called()
    assert provider.session("sub1") is cred.return_value
