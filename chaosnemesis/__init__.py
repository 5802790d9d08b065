"""
chaosnemesis module

This module schedules and composes faults ("nemeses") against a live cluster
of nodes under test, to check that a distributed database keeps its
guarantees under network partitions, process crashes and clock skew.

It contains:
 - timing generators that decide when faults start and stop (generator.py)
 - actuators that carry faults out on the nodes (actions directory)
 - probes that gather cluster state without changing it (probes directory)
 - the catalog of ready-to-run nemeses and the composer that runs two of
   them under one schedule (nemesis.py)
 - a runner that drives a nemesis for a given time and always cleans up
   after it (runner.py)
 - node-level primitives (control.py) built on a remote execution tool on
   top of Python Fabric (execute directory)
 - common definitions and defaults (common directory)
 - helpers for the script driving a run: logging setup and loading the node
   set from a file (helpers.py)

A nemesis run goes through the same steps every time:

1. The actuator is set up once. Clock nemeses synchronize every node's clock
   first.
2. The runner pulls steps from the nemesis's 'during' generator until the
   time limit is reached. Sleep steps are waited out; operations are handed
   to the actuator one at a time and the actuator's answer is recorded in the
   run's history.
3. The 'final' generator runs to completion so that every fault that was
   started is stopped.
4. The actuator is torn down, leaving clocks synchronized, the network
   healed and any node a fault took down brought back, even when the run was
   aborted before the final phase. The runner then checks that the database is running on every
   node (and, for clock nemeses, that clocks are back in sync) and logs a
   warning if not.

Faults encountered on individual nodes while carrying out an operation (an
unreachable node, a command that fails) do NOT abort the run. They are
recorded per node in the operation's value for whoever analyzes the history.
Only structural errors (an operation no actuator knows, a failed setup or
teardown) abort a run.
"""
