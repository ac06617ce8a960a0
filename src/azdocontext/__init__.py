"""azdo-context: cached, retrying query layer over Azure DevOps wikis, test plans and work items."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "azdo-context"
UNKNOWN_VERSION = "0.0.0+unknown"


def installed_version(distribution: str = DISTRIBUTION_NAME) -> str:
    """Version of the installed distribution, or ``UNKNOWN_VERSION`` from a bare checkout."""
    try:
        return version(distribution)
    except PackageNotFoundError:
        return UNKNOWN_VERSION


__version__ = installed_version()

# User-Agent header on every request
USER_AGENT = f"{DISTRIBUTION_NAME}/{__version__}"
