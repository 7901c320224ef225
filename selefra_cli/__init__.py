"""Selefra CLI - infrastructure policy tooling.

The ``module_graph`` package resolves a workspace's ``modules:`` declarations
into the flat, uniquely named module list consumed by the rule loader.
"""

__version__ = "0.1.0"
