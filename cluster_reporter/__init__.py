"""Cluster Ops Reporter: failover cluster provisioning and reporting."""

__version__ = "0.1.0"
