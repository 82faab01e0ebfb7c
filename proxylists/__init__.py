"""Extract categorised IPv4 address lists from IP2Proxy binary databases."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["get_version"]


def get_version() -> str:
    """Return the installed package version or a development marker."""
    try:
        return version("proxylists")
    except PackageNotFoundError:
        return "0.0.0-dev"
