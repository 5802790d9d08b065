"""
Fault actuators.

This package contains the *actuators* that modify the state of the cluster
under test in response to nemesis operations. Every actuator implements
FaultActuator (see actuator.py): it is set up once before a run, invoked once
per 'start'/'stop' operation pulled from the nemesis's generator, and torn
down once when the run is over or aborted.

Primitive actuators act on the nodes (partitions, process faults, clock
faults). Restarting decorates any actuator with a recovery sweep after every
'stop'. Compose routes the labelled operations of a dual-fault schedule to two
sub-actuators.

Things to consider when adding or modifying *actuators*:
1. Per-node failures (an unreachable node, a command exiting non-zero) are
   results, not errors. Fan per-node work out with
   chaosnemesis.control.on_nodes and attach the per-node outcomes to the
   operation's value.
2. Only structural problems (an unknown action, a failed setup or teardown)
   may raise out of an actuator. They abort the run.
3. Setup and teardown must leave the cluster in a known state no matter which
   operations ran before.
"""
