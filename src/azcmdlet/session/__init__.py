#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Obtain Azure credentials for a subscription.

## Overview

This module provides a `SessionProvider` interface to obtain credentials for a
subscription. Regardless of the mechanism, the provider returns a credential
object that the Azure SDK clients accept. Implementations are in
`azcmdlet.session.azure`.
"""


class SessionProvider:
    """A session provider is used to obtain credentials for subscriptions.

    This is an abstract base class and cannot be instantiated directly.
    """

    def session(self, subscription_id):
        """Returns a credential for the requested subscription.

        The returned object implements `get_token` as expected by the Azure
        SDK clients.
        """
        raise NotImplementedError
