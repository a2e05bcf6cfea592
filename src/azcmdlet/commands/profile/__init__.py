#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Contains the built-in cmdlets for Azure environment records.

Each module is an `azcmdlet.runner.Cmdlet` that can be invoked by its module
name from `azcmdlet.cli`, as this package is on the default command path.
"""
