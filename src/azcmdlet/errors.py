#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Exceptions raised while binding, validating, and executing cmdlets.

Every error a cmdlet can surface to its caller is a subclass of
`AzcmdletError`. They fall into two groups. `ValidationError` and
`ConfigurationError` are raised before any remote call is made, so the caller
only needs to correct its input. `RemoteError` wraps a failure reported by an
external collaborator, such as the Azure SDK or the profile store, and keeps
the original exception as its `__cause__`.

`UserDeclined` is not a failure. It is raised by a confirmation gate when the
caller chooses not to proceed, and `azcmdlet.runner.CmdletRunner` turns it
into a clean, empty result.
"""


class AzcmdletError(Exception):
    """Base class of all azcmdlet errors."""


class ValidationError(AzcmdletError, ValueError):
    """Raised when a parameter value, or a combination of values, is invalid.

    The `field` attribute is the canonical name of the offending parameter and
    `allowed` is a tuple of the values that would have been accepted, which is
    empty if the parameter is not constrained to a fixed set.
    """

    def __init__(self, field, message, allowed=()):
        self.field = field
        self.allowed = tuple(allowed)
        msg = f"{field}: {message}"
        if self.allowed:
            msg += f" (allowed values: {', '.join(str(a) for a in self.allowed)})"
        super().__init__(msg)


class ConfigurationError(AzcmdletError):
    """Raised when the supplied parameters do not resolve to one parameter set."""


class RemoteError(AzcmdletError):
    """Raised when an external collaborator fails.

    The message is the message of the original error, which is chained as the
    `__cause__` of this exception. Remote errors are never retried.
    """


class UserDeclined(AzcmdletError):
    """Raised by a confirmation gate when the caller declines an action."""

    def __init__(self, action, target):
        self.action = action
        self.target = target
        super().__init__(f"declined {action} '{target}'")
