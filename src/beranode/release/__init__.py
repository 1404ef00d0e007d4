"""Release metadata for the beacond and bera-reth binaries."""

from .client import (
    BEACOND_REPO,
    BERARETH_REPO,
    detect_platform_arch,
    fetch_release,
    release_url,
    select_asset_url,
    validate_version_tag,
)

__all__ = [
    "BEACOND_REPO",
    "BERARETH_REPO",
    "detect_platform_arch",
    "fetch_release",
    "release_url",
    "select_asset_url",
    "validate_version_tag",
]
