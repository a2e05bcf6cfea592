#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import pytest
import yaml

from azcmdlet.environment import (
    ACTIVE_DIRECTORY,
    BUILTIN_NAMES,
    GRAPH,
    RESOURCE_MANAGER,
    AzureEnvironment,
)
from azcmdlet.errors import RemoteError
from azcmdlet.profile import ProfileStoreError, YAMLProfileStore


@pytest.fixture
def store(tmp_path):
    return YAMLProfileStore(tmp_path / "profile" / "profile.yaml")


def test_empty_store_has_builtins(store):
    assert [e.name for e in store.environments()] == list(BUILTIN_NAMES)
    assert not store.path.exists()


def test_add_environment(store):
    env = AzureEnvironment(
        "MyStack",
        endpoints={
            RESOURCE_MANAGER: "https://rm.example/",
            ACTIVE_DIRECTORY: "https://login.example",
        },
    )
    stored = store.add_or_set_environment(env)
    assert stored == env

    found = store.get_environment("MyStack")
    assert found == env
    assert found.get_endpoint(ACTIVE_DIRECTORY) == "https://login.example/"


def test_add_environment_writes_yaml(store):
    store.add_or_set_environment(
        AzureEnvironment("MyStack", endpoints={RESOURCE_MANAGER: "https://rm.example/"})
    )
    with store.path.open() as f:
        data = yaml.safe_load(f)
    assert data == {
        "Environments": {
            "MyStack": {
                "Name": "MyStack",
                "OnPremise": False,
                RESOURCE_MANAGER: "https://rm.example/",
            }
        }
    }
    assert not store.path.with_suffix(".tmp").exists()


def test_add_existing_environment_merges(store):
    store.add_or_set_environment(
        AzureEnvironment(
            "MyStack",
            endpoints={RESOURCE_MANAGER: "https://rm.old/", GRAPH: "https://graph.old/"},
        )
    )
    merged = store.add_or_set_environment(
        AzureEnvironment("mystack", on_premise=True, endpoints={RESOURCE_MANAGER: "https://rm.new/"})
    )

    assert merged.name == "MyStack"
    assert merged.on_premise is True
    assert merged.get_endpoint(RESOURCE_MANAGER) == "https://rm.new/"
    assert merged.get_endpoint(GRAPH) == "https://graph.old/"
    assert store.get_environment("MyStack") == merged
    assert [e.name for e in store.environments()] == list(BUILTIN_NAMES) + ["MyStack"]


def test_new_environment_without_on_premise(store):
    added = store.add_or_set_environment(AzureEnvironment("MyStack", on_premise=None))
    assert added.on_premise is False
    assert store.get_environment("MyStack").on_premise is False


def test_lookup_ignores_case(store):
    store.add_or_set_environment(AzureEnvironment("MyStack"))
    assert store.get_environment("MYSTACK").name == "MyStack"
    assert store.get_environment("azurecloud").name == "AzureCloud"
    assert store.get_environment("Other") is None


def test_environments_are_sorted(store):
    for name in ["Zeta", "Alpha", "Mid"]:
        store.add_or_set_environment(AzureEnvironment(name))
    names = [e.name for e in store.environments()]
    assert names == list(BUILTIN_NAMES) + ["Alpha", "Mid", "Zeta"]


@pytest.mark.parametrize("name", ["AzureCloud", "azurechinacloud"])
def test_builtin_environments_cannot_change(store, name):
    with pytest.raises(ProfileStoreError) as e:
        store.add_or_set_environment(
            AzureEnvironment(name, endpoints={RESOURCE_MANAGER: "https://rm.example/"})
        )
    assert "built-in" in str(e.value)
    assert isinstance(e.value, RemoteError)
    assert not store.path.exists()


def test_corrupt_file(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("Environments: [unclosed")
    with pytest.raises(ProfileStoreError):
        store.get_environment("MyStack")


def test_wrong_layout(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("Environments:\n  MyStack: 10\n")
    with pytest.raises(ProfileStoreError) as e:
        store.environments()
    assert isinstance(e.value.__cause__, TypeError)


def test_unknown_endpoint_in_file(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("Environments:\n  MyStack:\n    Blob: https://blob.example/\n")
    with pytest.raises(ProfileStoreError):
        store.get_environment("MyStack")


def test_unwritable_store(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    store = YAMLProfileStore(blocker / "profile.yaml")
    with pytest.raises(ProfileStoreError):
        store.add_or_set_environment(AzureEnvironment("MyStack"))


def test_failed_dump_removes_temp_file(mocker, store):
    store.add_or_set_environment(AzureEnvironment("MyStack"))
    mocker.patch.object(
        yaml, "safe_dump", side_effect=yaml.representer.RepresenterError("cannot represent")
    )

    with pytest.raises(ProfileStoreError) as e:
        store.add_or_set_environment(AzureEnvironment("Other"))
    assert isinstance(e.value.__cause__, yaml.YAMLError)
    assert not store.path.with_suffix(".tmp").exists()
    assert store.get_environment("Other") is None
    assert store.get_environment("MyStack").name == "MyStack"


def test_unexpected_write_error_removes_temp_file(mocker, store):
    mocker.patch.object(yaml, "safe_dump", side_effect=RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        store.add_or_set_environment(AzureEnvironment("MyStack"))
    assert not store.path.with_suffix(".tmp").exists()
    assert not store.path.exists()


def test_path_expands_user(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    store = YAMLProfileStore("~/profile.yaml")
    assert store.path == tmp_path / "profile.yaml"
