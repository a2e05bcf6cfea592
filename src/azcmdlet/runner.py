#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Binds, confirms, and executes a `Cmdlet`.

## Overview

This module defines the two core classes of azcmdlet: `Cmdlet` and
`CmdletRunner`. A `Cmdlet` is a single management operation. It declares its
parameters with an `azcmdlet.params.ParameterTable`, builds a request from the
validated values, and executes that request against an external collaborator
made available through a `Context`. The `CmdletRunner` drives a cmdlet through
the same sequence of steps every time:

    validate -> resolve parameter set -> build request -> confirm -> execute

Validation and resolution errors are raised before a request is built, and
nothing is sent to a remote service until the confirmation gate lets the
cmdlet proceed.

## Basic Usage

The following creates a replication policy programmatically, without the CLI,
using the built-in `new_asr_policy` cmdlet:

    from azcmdlet.runner import AlwaysConfirm, CmdletRunner, Context
    from azcmdlet.commands.siterecovery import new_asr_policy

    context = Context(site_recovery=lambda: my_site_recovery_client)
    runner = CmdletRunner(context, gate=AlwaysConfirm())

    cmdlet = new_asr_policy.CLICommand(
        name='policy1',
        replication_provider='HyperVReplicaAzure',
        replication_frequency_in_seconds='300',
    )
    job = runner.run(cmdlet)

`CmdletRunner.run` returns whatever `Cmdlet.execute` returns, or `None` if the
confirmation gate declined the action.

## User-Defined Cmdlets

A cmdlet subclasses `Cmdlet`, declares its `parameters`, and implements
`Cmdlet.execute`. Mutating cmdlets also set `Cmdlet.action`, which makes the
runner ask for confirmation, and usually override `Cmdlet.build`:

    class CLICommand(Cmdlet):
        \"\"\"Show the name it was given.\"\"\"

        parameters = ParameterTable(
            Parameter('name', Text(), mandatory=True, position=0),
        )

        def execute(self, context, request):
            return {'Name': self.invocation['name']}

To be found by the CLI, the class must be called `CLICommand` and live in its
own module. See `azcmdlet.cmdmgr`.
"""

import logging
import sys

from azcmdlet.argparse import bound_args
from azcmdlet.errors import ConfigurationError, UserDeclined
from azcmdlet.params import ParameterTable

LOG = logging.getLogger(__name__)


class Cmdlet:
    """Abstract base class of a parameter-driven management operation.

    A cmdlet is constructed with the parameters supplied by its caller as
    keyword arguments, exactly as they were supplied. Nothing is validated in
    the constructor. `parameter_set` optionally names the parameter set to use
    instead of inferring it, and `defaults` is a dict of parameter defaults,
    typically from the user configuration, that are only applied after the
    parameter set has been resolved.
    """

    parameters = ParameterTable()
    """The `azcmdlet.params.ParameterTable` declaring the cmdlet's parameters."""

    action = None
    """Description of the mutation performed, e.g. 'adding environment'.

    Cmdlets that change remote state must set this, so the runner asks for
    confirmation before `Cmdlet.execute` is invoked. Read-only cmdlets leave it
    as `None` and are never gated.
    """

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        """Factory to build the cmdlet from CLI args and user configuration.

        The `parser` is an `argparse.ArgumentParser` on which the parameters of
        the cmdlet are registered. `argv` is the list of unparsed arguments that
        followed the command name on the command line. `cfg` is a callable that
        implements the `azcmdlet.config.Config.get` interface relative to the
        `Commands -> <command name>` section of the user configuration. Values
        found there for any of the cmdlet's parameters become its defaults:

            Commands:
              new_asr_policy:
                compression: Enable

        Only the arguments the user actually typed are passed to the
        constructor, so configuration defaults never take part in resolving
        the parameter set.
        """
        defaults = {}
        for p in cls.parameters:
            value = cfg(p.name)
            if value is not None:
                defaults[p.name] = value

        cls.parameters.add_arguments(parser, defaults)
        bound = bound_args(parser.parse_args(argv))
        selector = bound.pop("parameter_set", None)
        return cls(parameter_set=selector, defaults=defaults, **bound)

    def __init__(self, parameter_set=None, defaults=None, **bound):
        self.bound = bound
        self.selector = parameter_set
        self.defaults = defaults or {}

        self.invocation = None
        """The `azcmdlet.params.Invocation` set by `Cmdlet.bind`."""

    def bind(self):
        """Validate the supplied parameters and resolve the parameter set.

        Returns the `azcmdlet.params.Invocation`, which is also stored as
        `self.invocation`. Raises `azcmdlet.errors.ValidationError` or
        `azcmdlet.errors.ConfigurationError`.
        """
        self.invocation = self.parameters.bind(self.bound, self.selector, self.defaults)
        return self.invocation

    def target(self):
        """Returns the name of the object the cmdlet acts upon."""
        return self.invocation.get("name") if self.invocation else None

    def build(self, invocation):  # pylint: disable=unused-argument
        """Returns the request that `Cmdlet.execute` will send.

        Invoked by the runner after `Cmdlet.bind`. Raising
        `azcmdlet.errors.ValidationError` here aborts the invocation before
        confirmation. The default implementation returns `None`.
        """
        return None

    def execute(self, context, request):
        """Performs the operation and returns the result to show the user.

        `context` is a `Context` that provides the external collaborators and
        `request` is the value returned by `Cmdlet.build`. Failures of a remote
        collaborator should surface as `azcmdlet.errors.RemoteError`.
        """
        raise NotImplementedError


class Context:
    """Provides the external collaborators a cmdlet executes against.

    `profile_store` and `site_recovery` are callables of zero arguments that
    return an `azcmdlet.profile.ProfileStore` and an
    `azcmdlet.siterecovery.SiteRecoveryClient` respectively. They are not
    invoked until a cmdlet first asks for the collaborator, so credentials are
    only obtained by cmdlets that need them.
    """

    def __init__(self, profile_store=None, site_recovery=None):
        self._factories = {"profile_store": profile_store, "site_recovery": site_recovery}
        self._instances = {}

    def _get(self, name):
        if name not in self._instances:
            factory = self._factories[name]
            if factory is None:
                raise ConfigurationError(f"no {name.replace('_', ' ')} has been configured")
            LOG.info("creating %s", name)
            self._instances[name] = factory()
        return self._instances[name]

    @property
    def profile_store(self):
        """The `azcmdlet.profile.ProfileStore` holding environment records."""
        return self._get("profile_store")

    @property
    def site_recovery(self):
        """The `azcmdlet.siterecovery.SiteRecoveryClient` of the selected vault."""
        return self._get("site_recovery")


class ConfirmationGate:
    """Abstract base class that decides whether a mutation may proceed."""

    def confirm(self, action, target, request):
        """Return normally to proceed, or raise `azcmdlet.errors.UserDeclined`."""
        raise NotImplementedError


class AlwaysConfirm(ConfirmationGate):
    """Gate that always proceeds, used when the user passes `--force`."""

    def confirm(self, action, target, request):
        LOG.info("confirmed %s '%s' without prompting", action, target)


class PromptConfirmation(ConfirmationGate):
    """Gate that asks the user on the console.

    The question is written to `out`, standard error by default, and the
    answer is read with `prompt`, which defaults to `input`. Only 'y' and 'yes'
    proceed.
    """

    def __init__(self, prompt=input, out=None):
        self.prompt = prompt
        self.out = out

    def confirm(self, action, target, request):
        out = self.out or sys.stderr
        print(f"Proceed with {action} '{target}' (y/n)? ", flush=True, end="", file=out)
        try:
            answer = self.prompt()
        except EOFError:
            answer = ""

        if answer.strip().lower() not in ["y", "yes"]:
            LOG.info("user declined %s '%s'", action, target)
            raise UserDeclined(action, target)
        LOG.info("user confirmed %s '%s'", action, target)


class WhatIf(ConfirmationGate):
    """Gate that reports what would happen and never proceeds.

    Used when the user passes `--what-if`. The request is logged at INFO.
    """

    def __init__(self, out=None):
        self.out = out

    def confirm(self, action, target, request):
        print(f"What if: {action} '{target}'", file=self.out or sys.stderr)
        LOG.info("what if request for '%s': %s", target, request)
        raise UserDeclined(action, target)


class CmdletRunner:
    """Runs a `Cmdlet` against a `Context`.

    The `gate` is a `ConfirmationGate` consulted before every mutating cmdlet
    is executed. It defaults to `PromptConfirmation`.
    """

    def __init__(self, context, gate=None):
        if not isinstance(context, Context):
            raise TypeError(f"'{context}' must be an azcmdlet.runner.Context")

        self.context = context
        self.gate = gate or PromptConfirmation()

    def run(self, cmdlet):
        """Execute `cmdlet` and return its result.

        The cmdlet is bound, its request is built, and, if it declares an
        `Cmdlet.action`, the gate is asked for confirmation. A declined
        confirmation is not an error: no remote call is made and `None` is
        returned. Every other exception propagates to the caller.
        """
        if not isinstance(cmdlet, Cmdlet):
            raise TypeError(f"'{cmdlet}' must be a subclass of azcmdlet.runner.Cmdlet")

        invocation = cmdlet.bind()
        request = cmdlet.build(invocation)

        if cmdlet.action:
            try:
                self.gate.confirm(cmdlet.action, cmdlet.target(), request)
            except UserDeclined as e:
                LOG.info("not executing: %s", e)
                return None

        LOG.info("executing %s with parameter set '%s'", type(cmdlet).__module__, invocation.parameter_set)
        return cmdlet.execute(self.context, request)
