"""Installed harness version, recorded in every results bundle."""

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "agent-bench"


def harness_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0+unknown"
