"""pcl: command-line client for Credible Layer assertions.

Authenticates a wallet through a device-pairing flow, builds and flattens
assertion contracts with an external Forge-compatible tool, stores the
artifacts in the assertion DA service, and registers them with projects in
the dApp.
"""

__version__ = "0.1.0"

from pcl.cli.app import app as cli

__all__ = ["cli", "__version__"]
