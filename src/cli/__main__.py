# =============================================================================
# src/cli/__main__.py: Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m src.cli
#
# The reconciliation job is the only CLI tool, so it is the default.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.sync_views import run

run()
