#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Stores Azure environment records by name.

## Overview

A `ProfileStore` keeps the custom `azcmdlet.environment.AzureEnvironment`
records a user has added, and serves them together with the built-in public
clouds. Subclasses provide the persistence by implementing
`ProfileStore.read` and `ProfileStore.write`, and the base class implements
the lookup and upsert semantics on top of them:

    store = YAMLProfileStore('~/.azcmdlet/profile.yaml')
    env = store.add_or_set_environment(AzureEnvironment('MyStack', endpoints={...}))
    store.get_environment('MyStack')

Adding an environment whose name is already stored merges the two records:
endpoints supplied now replace the stored ones and endpoints not supplied are
kept. Built-in clouds cannot be added or changed. Names are compared without
regard to case.

## YAML File

`YAMLProfileStore` keeps the records in a YAML file:

    Environments:
      MyStack:
        Name: MyStack
        OnPremise: false
        ActiveDirectory: https://login.mystack.example/
        ResourceManager: https://management.mystack.example/

The read-modify-write of an upsert is serialized with a lock and the file is
replaced atomically, so a reader never sees a partial file.
"""

import logging
import threading
from pathlib import Path

import yaml

from azcmdlet.config import Bool, Dict, Or, Str, YAMLConfig
from azcmdlet.environment import BUILTIN_NAMES, AzureEnvironment, builtin_environment, is_builtin
from azcmdlet.errors import RemoteError

LOG = logging.getLogger(__name__)


class ProfileStoreError(RemoteError):
    """Raised when the profile store cannot read or write a record."""


class ProfileStore:
    """Abstract base class of an environment record store.

    Subclasses must implement `read` and `write`.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def read(self):
        """Returns a dict of name to `AzureEnvironment` of the stored records."""
        raise NotImplementedError

    def write(self, environments):
        """Persists `environments`, a dict of name to `AzureEnvironment`."""
        raise NotImplementedError

    def environments(self):
        """Returns a list of all environments, built-in clouds first."""
        builtins = [builtin_environment(n) for n in BUILTIN_NAMES]
        return builtins + [e for _, e in sorted(self.read().items())]

    def get_environment(self, name):
        """Returns the environment called `name`, or `None` if there is none."""
        builtin = builtin_environment(name)
        if builtin:
            return builtin

        stored = self.read()
        key = _find(stored, name)
        return stored[key] if key else None

    def add_or_set_environment(self, environment):
        """Adds `environment`, merging it into a stored record of the same name.

        Returns the record as it was stored. Raises `ProfileStoreError` if the
        name is one of the built-in clouds or the store cannot be updated.
        """
        if is_builtin(environment.name):
            raise ProfileStoreError(
                f"cannot change built-in environment '{environment.name}'"
            )

        with self._lock:
            stored = self.read()
            key = _find(stored, environment.name)
            if key:
                LOG.info("merging into existing environment '%s'", key)
                record = stored[key].merge(environment)
            else:
                LOG.info("adding new environment '%s'", environment.name)
                record = AzureEnvironment(environment.name).merge(environment)
            stored[record.name] = record
            self.write(stored)

        return record


def _find(environments, name):
    for key in environments:
        if key.lower() == name.lower():
            return key
    return None


class YAMLProfileStore(ProfileStore):
    """Stores environment records in the YAML file at `path`."""

    def __init__(self, path):
        super().__init__()
        self.path = Path(path).expanduser()

    def read(self):
        if not self.path.exists():
            return {}

        LOG.debug("reading environments from %s", self.path)
        try:
            with self.path.open("r", encoding="utf-8") as f:
                config = YAMLConfig(f)
            records = config.get(
                "Environments", type=Dict(Str, Dict(Str, Or(Str, Bool))), default={}
            )
            return {n: AzureEnvironment.from_dict(n, d) for n, d in records.items()}

        except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
            raise ProfileStoreError(f"cannot read {self.path}: {e}") from e

    def write(self, environments):
        data = {"Environments": {n: e.to_dict() for n, e in sorted(environments.items())}}
        tmp = self.path.with_suffix(".tmp")

        LOG.debug("writing environments to %s", self.path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

            # Path.replace is atomic on POSIX systems
            tmp.replace(self.path)

        except (OSError, yaml.YAMLError) as e:
            raise ProfileStoreError(f"cannot write {self.path}: {e}") from e

        finally:
            if tmp.exists():
                tmp.unlink()
