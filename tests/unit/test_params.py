#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import argparse
import logging
from datetime import timedelta

import pytest

from azcmdlet.errors import ConfigurationError, ValidationError
from azcmdlet.params import (
    DEFAULT_SET,
    Integer,
    OneOf,
    Parameter,
    ParameterTable,
    Switch,
    Text,
    TimeSpan,
    Url,
    ensure_trailing_slash,
    format_timespan,
    parse_timespan,
)


@pytest.fixture
def table():
    return ParameterTable(
        Parameter("name", Text(), mandatory=True, position=0),
        Parameter("provider", OneOf("Local", "Cloud"), mandatory=True),
        Parameter("port", Integer(0, 65535), sets=["OnPrem"], mandatory=True),
        Parameter("method", OneOf("Online", "Offline"), sets=["OnPrem"], default="Offline"),
        Parameter("account", Text(), sets=["ToCloud"]),
        Parameter("encryption", OneOf("Enable", "Disable"), sets=["ToCloud"], default="Disable"),
        Parameter("points", Integer(minimum=0), default=0),
        sets=["OnPrem", "ToCloud"],
    )


@pytest.mark.parametrize(
    "field, value, expected",
    [
        (Text(), "policy1", "policy1"),
        (Text(allow_empty=True), "", ""),
        (Url(), "https://management.azure.com", "https://management.azure.com"),
        (Url(trailing_slash=True), "https://login.example", "https://login.example/"),
        (Url(trailing_slash=True), "https://login.example/", "https://login.example/"),
        (Url(trailing_slash=True), "https://login.example///", "https://login.example/"),
        (OneOf("Kerberos", "Certificate"), "kerberos", "Kerberos"),
        (OneOf("Kerberos", "Certificate"), "CERTIFICATE", "Certificate"),
        (OneOf("30", "300", "900"), 300, "300"),
        (Integer(0, 65535), "8083", 8083),
        (Integer(0, 65535), 0, 0),
        (Integer(0, 65535), 65535, 65535),
        (Integer(minimum=0), " 12 ", 12),
        (TimeSpan(timedelta(hours=24)), "13:30", timedelta(hours=13, minutes=30)),
        (TimeSpan(timedelta(hours=24)), "00:00:00", timedelta(0)),
        (TimeSpan(timedelta(hours=24)), "1.00:00:00", timedelta(hours=24)),
        (TimeSpan(timedelta(hours=24)), timedelta(hours=2), timedelta(hours=2)),
        (Switch(), True, True),
        (Switch(), "false", False),
    ],
)
def test_field_convert(field, value, expected):
    assert field.convert(value) == expected


@pytest.mark.parametrize(
    "field, value",
    [
        (Text(), ""),
        (Text(), 10),
        (Url(), "management.azure.com"),
        (OneOf("Kerberos", "Certificate"), "NTLM"),
        (OneOf("Kerberos", "Certificate"), True),
        (OneOf("30", "300", "900"), "60"),
        (Integer(0, 65535), "-1"),
        (Integer(0, 65535), 65536),
        (Integer(0, 65535), "eighty"),
        (Integer(0, 65535), True),
        (Integer(0, 65535), 80.0),
        (TimeSpan(timedelta(hours=24)), "1.00:00:01"),
        (TimeSpan(timedelta(hours=24)), "24:00"),
        (TimeSpan(timedelta(hours=24)), "12:60"),
        (TimeSpan(timedelta(hours=24)), "noon"),
        (TimeSpan(timedelta(hours=24)), timedelta(seconds=-1)),
        (Switch(), "maybe"),
    ],
)
def test_field_convert_rejects(field, value):
    with pytest.raises(ValueError):
        field.convert(value)


def test_url_normalization_is_idempotent():
    once = ensure_trailing_slash("https://login.example/adfs")
    assert once == "https://login.example/adfs/"
    assert ensure_trailing_slash(once) == once


@pytest.mark.parametrize(
    "text, expected",
    [
        ("13:30", timedelta(hours=13, minutes=30)),
        ("13:30:15", timedelta(hours=13, minutes=30, seconds=15)),
        ("2.01:00:00", timedelta(days=2, hours=1)),
        ("0:05", timedelta(minutes=5)),
    ],
)
def test_parse_timespan(text, expected):
    assert parse_timespan(text) == expected


@pytest.mark.parametrize(
    "span, expected",
    [
        (timedelta(0), "00:00:00"),
        (timedelta(hours=13, minutes=30), "13:30:00"),
        (timedelta(hours=24), "1.00:00:00"),
        (timedelta(days=2, seconds=5), "2.00:00:05"),
        (timedelta(minutes=-5), "-00:05:00"),
    ],
)
def test_format_timespan(span, expected):
    assert format_timespan(span) == expected


def test_validation_error_names_field_and_allowed_values():
    p = Parameter("authentication", OneOf("Certificate", "Kerberos"))
    with pytest.raises(ValidationError) as e:
        p.validate("NTLM")
    assert e.value.field == "authentication"
    assert e.value.allowed == ("Certificate", "Kerberos")
    assert "authentication" in str(e.value)
    assert "Certificate, Kerberos" in str(e.value)


def test_validate_unknown_parameter(table):
    with pytest.raises(ValidationError) as e:
        table.validate({"name": "p1", "colour": "blue"})
    assert e.value.field == "colour"


def test_validate_has_no_side_effects(table):
    bound = {"name": "p1", "port": "80"}
    assert table.validate(bound) == {"name": "p1", "port": 80}
    assert bound == {"name": "p1", "port": "80"}


def test_sets_are_built_from_parameters(table):
    assert table.sets["OnPrem"].required == {"name", "provider", "port"}
    assert table.sets["OnPrem"].allowed == {"name", "provider", "port", "method", "points"}
    assert table.sets["ToCloud"].required == {"name", "provider"}
    assert table.sets["ToCloud"].allowed == {"name", "provider", "account", "encryption", "points"}


def test_undeclared_set_is_rejected():
    with pytest.raises(ValueError):
        ParameterTable(Parameter("a", sets=["Missing"]), sets=["Present"])


@pytest.mark.parametrize(
    "bound, expected",
    [
        ({"name", "provider", "port"}, "OnPrem"),
        ({"name", "provider", "port", "method", "points"}, "OnPrem"),
        ({"name", "provider"}, "ToCloud"),
        ({"name", "provider", "account"}, "ToCloud"),
        ({"name", "provider", "encryption", "points"}, "ToCloud"),
    ],
)
def test_resolve(table, bound, expected):
    assert table.resolve(bound).name == expected


@pytest.mark.parametrize(
    "bound",
    [
        set(),
        {"name"},
        {"provider", "port"},
        {"name", "provider", "method"},
        {"name", "provider", "port", "account"},
    ],
)
def test_resolve_no_matching_set(table, bound):
    with pytest.raises(ConfigurationError) as e:
        table.resolve(bound)
    assert "no matching parameter set" in str(e.value)


def test_resolve_ambiguous_set():
    table = ParameterTable(
        Parameter("name", mandatory=True),
        Parameter("a", sets=["A"]),
        Parameter("b", sets=["B"]),
        sets=["A", "B"],
    )
    with pytest.raises(ConfigurationError) as e:
        table.resolve({"name"})
    assert "ambiguous parameter set" in str(e.value)


@pytest.mark.parametrize(
    "bound",
    [
        set(),
        {"name"},
        {"name", "provider"},
        {"name", "provider", "port"},
        {"name", "provider", "account"},
        {"name", "provider", "port", "account"},
        {"name", "port", "method", "encryption", "points"},
        {"provider", "port", "method"},
    ],
)
def test_resolve_yields_one_set_or_fails(table, bound):
    matching = [s for s in table.sets.values() if s.matches(bound)]
    try:
        resolved = table.resolve(bound)
    except ConfigurationError:
        assert len(matching) != 1
    else:
        assert matching == [resolved]


def test_resolve_with_selector(table):
    assert table.resolve({"name", "provider", "port", "account"}, selector="OnPrem").name == "OnPrem"


@pytest.mark.parametrize(
    "bound, selector",
    [
        ({"name", "provider"}, "OnPrem"),
        ({"name", "provider", "port"}, "Unknown"),
    ],
)
def test_resolve_with_bad_selector(table, bound, selector):
    with pytest.raises(ConfigurationError):
        table.resolve(bound, selector=selector)


def test_single_set_table_reports_missing_parameters():
    table = ParameterTable(Parameter("name", mandatory=True, position=0))
    assert list(table.sets) == [DEFAULT_SET]
    with pytest.raises(ConfigurationError) as e:
        table.resolve(set())
    assert "missing name" in str(e.value)


def test_bind_applies_declared_defaults(table):
    inv = table.bind({"name": "p1", "provider": "local", "port": "8083"})
    assert inv.parameter_set == "OnPrem"
    assert inv.values == {
        "name": "p1",
        "provider": "Local",
        "port": 8083,
        "method": "Offline",
        "points": 0,
    }


def test_bind_defaults_only_for_resolved_set(table):
    inv = table.bind({"name": "p1", "provider": "Cloud"})
    assert inv.parameter_set == "ToCloud"
    assert "method" not in inv
    assert inv["encryption"] == "Disable"
    assert "account" not in inv


def test_bind_supplied_defaults_do_not_affect_resolution(table):
    # A default for an OnPrem-only parameter must not pull the invocation
    # into the OnPrem set or make it ambiguous.
    defaults = {"port": 8083, "method": "Online", "encryption": "Enable"}
    inv = table.bind({"name": "p1", "provider": "Cloud"}, defaults=defaults)
    assert inv.parameter_set == "ToCloud"
    assert inv["encryption"] == "Enable"
    assert "port" not in inv
    assert "method" not in inv


def test_bind_bound_value_beats_supplied_default(table):
    inv = table.bind(
        {"name": "p1", "provider": "Local", "port": 1, "method": "Online"},
        defaults={"method": "Offline"},
    )
    assert inv["method"] == "Online"


def test_bind_invalid_supplied_default(table):
    with pytest.raises(ValidationError) as e:
        table.bind({"name": "p1", "provider": "Cloud"}, defaults={"encryption": "Maybe"})
    assert e.value.field == "encryption"


def test_bind_selector_drops_foreign_fields(table, caplog):
    with caplog.at_level(logging.WARNING):
        inv = table.bind(
            {"name": "p1", "provider": "Local", "port": 80, "account": "sa1"},
            selector="OnPrem",
        )
    assert "account" not in inv
    assert "ignoring parameters not in parameter set 'OnPrem': account" in caplog.text


def test_bind_validates_before_resolving(table):
    # An invalid value is reported even though the invocation would not
    # resolve either.
    with pytest.raises(ValidationError):
        table.bind({"name": "p1", "port": "99999", "account": "sa1"})


def test_add_arguments_only_binds_supplied(table):
    parser = argparse.ArgumentParser()
    table.add_arguments(parser)
    args = parser.parse_args(["p1", "--provider", "Local", "--port", "80"])
    assert vars(args) == {"name": "p1", "provider": "Local", "port": "80"}


def test_add_arguments_name_as_flag(table):
    parser = argparse.ArgumentParser()
    table.add_arguments(parser)
    args = parser.parse_args(["--name", "p1", "--parameter-set", "ToCloud"])
    assert vars(args) == {"name": "p1", "parameter_set": "ToCloud"}


def test_add_arguments_aliases_and_switches():
    table = ParameterTable(
        Parameter("name", Text(), mandatory=True, position=0),
        Parameter("enable_adfs_authentication", Switch(), aliases=("on_premise",)),
        Parameter("resource_manager_endpoint", Url(), aliases=("resource_manager",)),
    )
    parser = argparse.ArgumentParser()
    table.add_arguments(parser)
    args = parser.parse_args(["s1", "--on-premise", "--resource-manager", "https://rm/"])
    assert vars(args) == {
        "name": "s1",
        "enable_adfs_authentication": True,
        "resource_manager_endpoint": "https://rm/",
    }


def test_add_arguments_without_selector_for_single_set():
    table = ParameterTable(Parameter("name", Text(), position=0))
    parser = argparse.ArgumentParser()
    table.add_arguments(parser)
    assert "--parameter-set" not in parser.format_help()
