"""
Chaos 'probes' module.

This module contains *probes* that gather data about the state of the cluster
under test without changing it: whether the database process is running on
each node, and how far each node's clock is from the reference NTP server.
Probes return per-node NodeResults so an unreachable node shows up as data.
"""
