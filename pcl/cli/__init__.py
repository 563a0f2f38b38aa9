"""pcl CLI — Typer-based command-line interface.

Provides the ``pcl`` command with subcommands for wallet authentication,
storing assertions in DA, registering them with dApp projects, and handing
``test``/``build`` through to the external build tool.

All output uses Rich for formatted terminal display.
"""
