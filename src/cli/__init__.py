# =============================================================================
# src/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line tools for operators.  Everything lives in news.py and is
# reached through `python -m src.cli <command>`.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Components are built once per invocation through src.main
#     build_components(), the same composition root any other entry
#     point would use.
# =============================================================================

"""CLI tools for newspulse (``python -m src.cli``)."""
