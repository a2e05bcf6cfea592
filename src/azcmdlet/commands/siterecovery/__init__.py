#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Contains the built-in cmdlets for Azure Site Recovery.

Each module is an `azcmdlet.runner.Cmdlet` that can be invoked by its module
name from `azcmdlet.cli`, as this package is on the default command path. The
vault they operate on is selected with the `--subscription`,
`--resource-group`, and `--vault` options of the CLI.
"""
