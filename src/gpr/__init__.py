"""
gpr-tool — publish NuGet packages to GitHub Packages.

The heart of the package is the publish pipeline in :mod:`gpr.execution`:
archives found by a glob are optionally rewritten (:mod:`gpr.nuget.archive`)
and uploaded through a retry + timeout policy with bounded concurrency.
"""

__version__ = "0.6.0"

__all__ = ["__version__"]
