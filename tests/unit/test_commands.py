#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

from functools import partial

import pytest

from azcmdlet.cmdmgr import CommandManager
from azcmdlet.config import Config
from azcmdlet.environment import (
    ACTIVE_DIRECTORY,
    BUILTIN_NAMES,
    DATA_LAKE_RESOURCE_ID,
    PUBLISH_SETTINGS_FILE_URL,
    RESOURCE_MANAGER,
    SERVICE_MANAGEMENT,
    AzureEnvironment,
)
from azcmdlet.errors import ConfigurationError, ValidationError
from azcmdlet.profile import ProfileStoreError, YAMLProfileStore
from azcmdlet.runner import AlwaysConfirm, CmdletRunner, Context
from azcmdlet.siterecovery import (
    ENTERPRISE_TO_AZURE,
    ENTERPRISE_TO_ENTERPRISE,
    HyperVReplicaAzurePolicyInput,
    HyperVReplicaBluePolicyInput,
)

LOCATION = "https://management.azure.com/vaults/v1/replicationJobs/3f2b"


@pytest.fixture
def command_mgr():
    return CommandManager.from_paths("azcmdlet.commands.profile", "azcmdlet.commands.siterecovery")


def make_cmdlet(command_mgr, command, argv, commands_config=None):
    config = Config({"Commands": {command: commands_config or {}}})
    return command_mgr.instantiate_command(command, argv, partial(config.get, "Commands", command))


@pytest.fixture
def store(tmp_path):
    return YAMLProfileStore(tmp_path / "profile.yaml")


@pytest.fixture
def site_recovery(mocker):
    client = mocker.MagicMock()
    client.create_policy.return_value = LOCATION
    client.fetch_operation_status.return_value = {"Name": "3f2b", "State": "InProgress"}
    client.get_job.return_value = {"Name": "3f2b", "State": "Succeeded"}
    return client


@pytest.fixture
def runner(store, site_recovery):
    context = Context(profile_store=lambda: store, site_recovery=lambda: site_recovery)
    return CmdletRunner(context, AlwaysConfirm())


def test_commands_are_found(command_mgr):
    assert set(command_mgr.commands()) == {
        "add_environment",
        "get_environment",
        "new_asr_policy",
        "get_asr_job",
    }


def test_add_environment(command_mgr, runner, store):
    cmdlet = make_cmdlet(
        command_mgr,
        "add_environment",
        [
            "MyStack",
            "--resource-manager-endpoint",
            "https://management.mystack.example/",
            "--active-directory-endpoint",
            "https://login.mystack.example/adfs",
            "--enable-adfs-authentication",
        ],
    )
    env = runner.run(cmdlet)

    assert env.name == "MyStack"
    assert env.on_premise is True
    assert env.get_endpoint(RESOURCE_MANAGER) == "https://management.mystack.example/"
    assert env.get_endpoint(ACTIVE_DIRECTORY) == "https://login.mystack.example/adfs/"
    assert store.get_environment("mystack") == env


def test_add_environment_aliases(command_mgr):
    cmdlet = make_cmdlet(
        command_mgr,
        "add_environment",
        ["MyStack", "--resource-manager", "https://rm.example/", "--on-premise"],
    )
    assert cmdlet.bound == {
        "name": "MyStack",
        "resource_manager_endpoint": "https://rm.example/",
        "enable_adfs_authentication": True,
    }


def test_add_environment_positional_endpoints(command_mgr, runner):
    cmdlet = make_cmdlet(
        command_mgr,
        "add_environment",
        ["MyStack", "https://publish.example/", "https://service.example/"],
    )
    env = runner.run(cmdlet)
    assert env.get_endpoint(PUBLISH_SETTINGS_FILE_URL) == "https://publish.example/"
    assert env.get_endpoint(SERVICE_MANAGEMENT) == "https://service.example/"
    assert env.on_premise is False


def test_add_environment_has_no_data_lake_audience_by_default(command_mgr, runner):
    env = runner.run(make_cmdlet(command_mgr, "add_environment", ["MyStack"]))
    assert env.get_endpoint(DATA_LAKE_RESOURCE_ID) is None


def test_add_environment_data_lake_audience_from_config(command_mgr, runner):
    cmdlet = make_cmdlet(
        command_mgr,
        "add_environment",
        ["MyStack"],
        {"data_lake_audience": "https://datalake.mystack.example/"},
    )
    env = runner.run(cmdlet)
    assert env.get_endpoint(DATA_LAKE_RESOURCE_ID) == "https://datalake.mystack.example/"


def test_add_environment_merges_stored_record(command_mgr, runner, store):
    store.add_or_set_environment(
        AzureEnvironment("MyStack", endpoints={SERVICE_MANAGEMENT: "https://service.example/"})
    )
    env = runner.run(
        make_cmdlet(
            command_mgr,
            "add_environment",
            ["MyStack", "--resource-manager", "https://rm.example/"],
        )
    )
    assert env.get_endpoint(SERVICE_MANAGEMENT) == "https://service.example/"
    assert env.get_endpoint(RESOURCE_MANAGER) == "https://rm.example/"


def test_add_environment_update_keeps_adfs(command_mgr, runner, store):
    runner.run(
        make_cmdlet(
            command_mgr,
            "add_environment",
            [
                "MyStack",
                "--enable-adfs-authentication",
                "--active-directory-endpoint",
                "https://adfs.example/adfs",
            ],
        )
    )
    cmdlet = make_cmdlet(
        command_mgr, "add_environment", ["MyStack", "--graph-endpoint", "https://graph.example/"]
    )
    assert "enable_adfs_authentication" not in cmdlet.bound

    env = runner.run(cmdlet)
    assert env.on_premise is True
    assert env.get_endpoint(ACTIVE_DIRECTORY) == "https://adfs.example/adfs/"
    assert store.get_environment("MyStack").on_premise is True


@pytest.mark.parametrize(
    "argv, field",
    [
        (["MyStack", "--resource-manager", "rm.example"], "resource_manager_endpoint"),
        (["", "--resource-manager", "https://rm.example/"], "name"),
        (["MyStack", "--graph", "graph"], "graph_endpoint"),
    ],
)
def test_add_environment_invalid(command_mgr, runner, store, argv, field):
    with pytest.raises(ValidationError) as e:
        runner.run(make_cmdlet(command_mgr, "add_environment", argv))
    assert e.value.field == field
    assert not store.path.exists()


def test_add_environment_without_name(command_mgr, runner):
    with pytest.raises(ConfigurationError):
        runner.run(make_cmdlet(command_mgr, "add_environment", ["--graph", "https://graph/"]))


def test_add_builtin_environment_fails(command_mgr, runner):
    with pytest.raises(ProfileStoreError) as e:
        runner.run(
            make_cmdlet(
                command_mgr,
                "add_environment",
                ["AzureCloud", "--resource-manager", "https://rm.example/"],
            )
        )
    assert "built-in" in str(e.value)


def test_unknown_flag_exits(command_mgr):
    with pytest.raises(SystemExit):
        make_cmdlet(command_mgr, "add_environment", ["MyStack", "--no-such-flag", "x"])


def test_get_environment_all(command_mgr, runner, store):
    store.add_or_set_environment(AzureEnvironment("MyStack"))
    envs = runner.run(make_cmdlet(command_mgr, "get_environment", []))
    assert [e.name for e in envs] == list(BUILTIN_NAMES) + ["MyStack"]


def test_get_environment_by_name(command_mgr, runner):
    env = runner.run(make_cmdlet(command_mgr, "get_environment", ["azureusgovernment"]))
    assert env.name == "AzureUSGovernment"


def test_get_environment_unknown(command_mgr, runner):
    with pytest.raises(ValidationError) as e:
        runner.run(make_cmdlet(command_mgr, "get_environment", ["Nowhere"]))
    assert e.value.field == "name"
    assert "AzureCloud" in e.value.allowed


def test_new_asr_policy_enterprise_to_enterprise(command_mgr, runner, site_recovery):
    cmdlet = make_cmdlet(
        command_mgr,
        "new_asr_policy",
        [
            "policy1",
            "--replication-provider",
            "HyperVReplica2012R2",
            "--replication-frequency-in-seconds",
            "300",
            "--replication-port",
            "8083",
            "--recovery-points",
            "3",
        ],
    )
    assert cmdlet.bound["number_of_recovery_points_to_retain"] == "3"

    assert runner.run(cmdlet) == {"Name": "3f2b", "State": "InProgress"}
    assert cmdlet.invocation.parameter_set == ENTERPRISE_TO_ENTERPRISE

    name, request = site_recovery.create_policy.call_args.args
    assert name == "policy1"
    assert isinstance(request, HyperVReplicaBluePolicyInput)
    assert request.recovery_points == 3
    site_recovery.fetch_operation_status.assert_called_once_with(LOCATION)


def test_new_asr_policy_enterprise_to_azure(command_mgr, runner, site_recovery):
    cmdlet = make_cmdlet(
        command_mgr,
        "new_asr_policy",
        [
            "policy1",
            "--replication-provider",
            "HyperVReplicaAzure",
            "--replication-frequency-in-seconds",
            "30",
            "--encryption",
            "enable",
        ],
    )
    runner.run(cmdlet)
    assert cmdlet.invocation.parameter_set == ENTERPRISE_TO_AZURE

    _, request = site_recovery.create_policy.call_args.args
    assert isinstance(request, HyperVReplicaAzurePolicyInput)
    assert request.encryption == "Enable"


def test_new_asr_policy_config_defaults_follow_resolved_set(command_mgr, runner, site_recovery):
    # Defaults for both sets are configured, yet only the parameters typed on
    # the command line decide the set.
    cmdlet = make_cmdlet(
        command_mgr,
        "new_asr_policy",
        [
            "policy1",
            "--replication-provider",
            "HyperVReplicaAzure",
            "--replication-frequency-in-seconds",
            "300",
        ],
        {"compression": "Enable", "replication_port": 8083, "encryption": "Enable"},
    )
    runner.run(cmdlet)
    assert cmdlet.invocation.parameter_set == ENTERPRISE_TO_AZURE
    assert "compression" not in cmdlet.invocation
    assert "replication_port" not in cmdlet.invocation
    assert cmdlet.invocation["encryption"] == "Enable"
    site_recovery.create_policy.assert_called_once()


def test_new_asr_policy_provider_mismatch(command_mgr, runner, site_recovery):
    cmdlet = make_cmdlet(
        command_mgr,
        "new_asr_policy",
        [
            "policy1",
            "--replication-provider",
            "HyperVReplica2012",
            "--replication-frequency-in-seconds",
            "300",
        ],
    )
    with pytest.raises(ValidationError) as e:
        runner.run(cmdlet)
    assert e.value.field == "replication_provider"
    site_recovery.create_policy.assert_not_called()


@pytest.mark.parametrize(
    "extra, field",
    [
        (["--authentication", "NTLM"], "authentication"),
        (["--replication-port", "70000"], "replication_port"),
        (["--replication-start-time", "1.00:00:01"], "replication_start_time"),
        (["--replication-frequency-in-seconds", "60"], "replication_frequency_in_seconds"),
    ],
)
def test_new_asr_policy_invalid(command_mgr, runner, site_recovery, extra, field):
    argv = [
        "policy1",
        "--replication-provider",
        "HyperVReplica2012R2",
        "--replication-frequency-in-seconds",
        "300",
        "--replication-port",
        "8083",
    ]
    with pytest.raises(ValidationError) as e:
        runner.run(make_cmdlet(command_mgr, "new_asr_policy", argv + extra))
    assert e.value.field == field
    site_recovery.create_policy.assert_not_called()


def test_new_asr_policy_parameter_set_selector(command_mgr, runner, site_recovery):
    cmdlet = make_cmdlet(
        command_mgr,
        "new_asr_policy",
        [
            "policy1",
            "--replication-provider",
            "HyperVReplica2012R2",
            "--replication-frequency-in-seconds",
            "300",
            "--replication-port",
            "8083",
            "--encryption",
            "Enable",
            "--parameter-set",
            ENTERPRISE_TO_ENTERPRISE,
        ],
    )
    runner.run(cmdlet)
    assert "encryption" not in cmdlet.invocation
    site_recovery.create_policy.assert_called_once()


def test_get_asr_job_by_name(command_mgr, runner, site_recovery):
    result = runner.run(make_cmdlet(command_mgr, "get_asr_job", ["3f2b"]))
    assert result["State"] == "Succeeded"
    site_recovery.get_job.assert_called_once_with("3f2b")


def test_get_asr_job_by_location(command_mgr, runner, site_recovery):
    runner.run(make_cmdlet(command_mgr, "get_asr_job", ["--location", LOCATION]))
    site_recovery.fetch_operation_status.assert_called_once_with(LOCATION)
    site_recovery.get_job.assert_not_called()


@pytest.mark.parametrize("argv", [[], ["3f2b", "--location", LOCATION]])
def test_get_asr_job_needs_one_of_name_or_location(command_mgr, runner, site_recovery, argv):
    with pytest.raises(ConfigurationError):
        runner.run(make_cmdlet(command_mgr, "get_asr_job", argv))
    site_recovery.get_job.assert_not_called()
