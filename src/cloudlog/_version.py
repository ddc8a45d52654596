"""Installed distribution version, read from package metadata."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cloudlog")
except PackageNotFoundError:
    # Source checkout that was never installed
    __version__ = "0.0.0+local"
