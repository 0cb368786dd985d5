"""
CLI layer for metis-ops.

Provides a Typer application whose sub-commands delegate to the library
packages (``metis_ops.results``, ``metis_ops.namespaces``). This package
handles only terminal transport: argument parsing, coloured output, and
table formatting.

Entry point::

    metis-ops --help
"""

from metis_ops.cli.app import app

__all__ = ["app"]
