#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Renders cmdlet results for the console.

A result is an object with a `to_dict` method, a dict, or a list of either.
`render` writes it in one of the `FORMATS`:

`text`
:  One `Key : Value` line per field with the keys aligned. Records in a list
are separated by a blank line. With `color`, the `State` field of a job is
colored by its value.

`json`
:  Indented JSON.

`yaml`
:  Block style YAML.
"""

import json
import sys
from datetime import datetime, timedelta

import colorama
import yaml
from colorama import Fore, Style

from azcmdlet.params import format_timespan

FORMATS = ("text", "json", "yaml")

_STATE_COLORS = {
    "succeeded": Fore.GREEN,
    "completedwithinformation": Fore.GREEN,
    "failed": Fore.RED,
    "cancelled": Fore.RED,
    "suspended": Fore.RED,
    "inprogress": Fore.YELLOW,
    "notstarted": Fore.YELLOW,
}


def render(result, output="text", color=False, out=None):
    """Write `result` to `out`, standard output by default, in format `output`."""
    out = out or sys.stdout
    records = _records(result)
    data = records if isinstance(result, list) else records[0]

    if output == "json":
        print(json.dumps(data, indent=2, default=_scalar), file=out)

    elif output == "yaml":
        yaml.safe_dump(
            _plain(data), out, default_flow_style=False, sort_keys=False
        )

    elif output == "text":
        if color:
            colorama.init()
        print("\n\n".join(_text(r, color) for r in records), file=out)

    else:
        raise ValueError(f"unknown output format: {output}")


def _records(result):
    items = result if isinstance(result, list) else [result]
    return [i.to_dict() if hasattr(i, "to_dict") else dict(i) for i in items]


def _scalar(value):
    if isinstance(value, timedelta):
        return format_timespan(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _plain(data):
    if isinstance(data, dict):
        return {k: _plain(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_plain(v) for v in data]
    if data is None or isinstance(data, (str, int, float, bool)):
        return data
    return _scalar(data)


def _text(record, color):
    if not record:
        return ""

    width = max(len(k) for k in record)
    lines = []
    for key, value in record.items():
        if isinstance(value, list):
            value = ", ".join(_scalar(v) for v in value)
        elif value is None:
            value = ""
        else:
            value = _scalar(value)

        if color and key == "State" and value.lower() in _STATE_COLORS:
            value = f"{_STATE_COLORS[value.lower()]}{value}{Style.RESET_ALL}"

        lines.append(f"{key:{width}} : {value}".rstrip())
    return "\n".join(lines)
