# =============================================================================
# src/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Standalone command-line tools for Inkwell, run via
# `python -m src.cli.<module>`.
#
#   1. VIEW SYNC (sync_views.py)
#      Reconciles live view counts from the volatile counter store into
#      the durable post store.  Designed to be run by an external
#      scheduler; also has an in-process --loop mode.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Each module constructs its own dependencies from Settings rather
#     than importing the web app, because CLI tools run as one-shot
#     scripts, not long-lived servers.
# =============================================================================

"""CLI tools for Inkwell.

- ``python -m src.cli.sync_views``: reconcile view counts into the
  durable store (exit status non-zero when any record fails).
"""
