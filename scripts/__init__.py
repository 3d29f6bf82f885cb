"""Command-line entry points for the project sources archiver.

Run ``python -m scripts.package_sources --help`` from the repository root.
"""

__all__ = ["package_sources"]
