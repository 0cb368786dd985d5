"""
metis-ops - administrative tooling for Metis dataset migrations.

Subpackages:
- metis_ops.core: errors, structured logging, settings
- metis_ops.execution: retrying external requests
- metis_ops.results: execution status logs, latest-outcome aggregation, reports
- metis_ops.namespaces: namespace prefixes and vocabulary sets
- metis_ops.cli: the ``metis-ops`` command line
"""

__version__ = "0.1.0"
