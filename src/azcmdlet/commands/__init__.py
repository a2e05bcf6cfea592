#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Contains the built-in cmdlets included in azcmdlet.

`azcmdlet.commands.profile`
:  Cmdlets that add and show Azure environment records.

`azcmdlet.commands.siterecovery`
:  Cmdlets that manage Azure Site Recovery replication policies and jobs.

Both packages are on the default command path of the CLI.

## User-Defined Cmdlets

A cmdlet for the CLI is a module containing a subclass of
`azcmdlet.runner.Cmdlet` called `CLICommand`. The module name is the command
name. Here is a complete cmdlet, saved as `hello.py`, that takes one
mandatory parameter, which may also be given positionally:

    from azcmdlet.params import Parameter, ParameterTable, Text
    from azcmdlet.runner import Cmdlet

    class CLICommand(Cmdlet):
        \"\"\"Say hello.\"\"\"

        parameters = ParameterTable(
            Parameter('name', Text(), mandatory=True, position=0),
        )

        def execute(self, context, request):
            return {'Greeting': f"hello {self.invocation['name']}"}

    $ azcmdlet --cmd-path . hello world
    Greeting : hello world

The value returned by `execute` is rendered by `azcmdlet.output`. Return a
dict, an object with a `to_dict` method, or a list of either.

### Parameter Sets

Parameters that only make sense together are grouped into parameter sets. The
runner picks the set whose mandatory parameters were all supplied and which
accepts every supplied parameter, and rejects the invocation if no set or more
than one set fits:

    parameters = ParameterTable(
        Parameter('name', Text(), sets=['ByName'], mandatory=True, position=0),
        Parameter('location', Url(), sets=['ByLocation'], mandatory=True),
        sets=['ByName', 'ByLocation'],
    )

`self.invocation.parameter_set` tells `execute` which set was resolved.

### Mutating Cmdlets

A cmdlet that changes anything sets `action`, which makes the runner ask the
user before executing it, and builds its request in `build` so that every
check happens before the question is asked:

    class CLICommand(Cmdlet):
        action = 'deleting widget'

        def build(self, invocation):
            return WidgetDeleteRequest(invocation['name'])

        def execute(self, context, request):
            ...

The user can skip the question with `--force`, or see what would happen
without doing it with `--what-if`.

### Defaults From the Configuration File

Any parameter can be given a default in the user configuration file under the
name of the command. Defaults are only applied after the parameter set has
been resolved:

    Commands:
      new_asr_policy:
        compression: Enable
"""
