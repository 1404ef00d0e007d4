"""
Release metadata for the client binaries.

Releases are published on GitHub. The release manifest lists one asset per
platform, plus detached signatures:

    beacond-v1.3.0-linux-amd64.tar.gz
    beacond-v1.3.0-linux-amd64.tar.gz.sig

Lookups have no fallback. A missing tag, an HTTP error or a body that is
not a release manifest aborts the caller.
"""

from __future__ import annotations

import logging
import platform
import re
from typing import Any

import httpx

from beranode.exceptions import ReleaseError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

DEFAULT_TIMEOUT = 30.0
"""HTTP request timeout in seconds."""

BEACOND_REPO = "berachain/beacon-kit"
BERARETH_REPO = "berachain/bera-reth"

VERSION_TAG_PATTERN = re.compile(
    r"^(latest|v\.?[0-9]+\.[0-9]+\.[0-9]+(-rc[0-9]+(\.[0-9]+)?)?)$"
)
"""`latest`, `vX.Y.Z` or `vX.Y.Z-rcN[.M]`."""

SUPPORTED_ARCHES = ("darwin-arm64", "linux-arm64", "linux-amd64")


def validate_version_tag(tag: str) -> bool:
    """Check that `tag` names a release (e.g. `latest`, `v0.7.1`, `v0.7.1-rc2`)."""
    return VERSION_TAG_PATTERN.fullmatch(tag) is not None


def release_url(repo: str, tag: str = "latest") -> str:
    """API endpoint for the release `tag` of `repo`."""
    if tag == "latest":
        return f"{GITHUB_API_URL}/repos/{repo}/releases/latest"
    return f"{GITHUB_API_URL}/repos/{repo}/releases/tags/{tag}"


def detect_platform_arch(system: str | None = None, machine: str | None = None) -> str:
    """
    Asset suffix for the running platform.

    macOS is always `darwin-arm64`. On Linux, ARM machines get
    `linux-arm64` and everything else `linux-amd64`.

    Raises:
        ReleaseError: On any other operating system.
    """
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()

    if system == "darwin":
        return "darwin-arm64"
    if system == "linux":
        if machine in ("aarch64", "arm64") or machine.startswith("arm"):
            return "linux-arm64"
        return "linux-amd64"
    raise ReleaseError(GITHUB_API_URL, f"Unsupported platform: {system} - {machine}")


def fetch_release(
    repo: str,
    tag: str = "latest",
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """
    Fetch the release manifest of `repo` at `tag`.

    Args:
        repo: GitHub `owner/name`.
        tag: Release tag, or `latest`.
        client: HTTP client to use. A short-lived one is created if omitted.

    Returns:
        The decoded release manifest.

    Raises:
        ReleaseError: If the tag is malformed, the release does not exist,
            the request fails, or the body is not a release manifest.
    """
    url = release_url(repo, tag)
    if not validate_version_tag(tag):
        raise ReleaseError(url, f"Invalid version tag {tag!r}")

    logger.info(f"Fetching release metadata from {url}")
    headers = {"Accept": "application/vnd.github+json"}

    try:
        if client is None:
            with httpx.Client(timeout=DEFAULT_TIMEOUT, follow_redirects=True) as owned:
                response = owned.get(url, headers=headers)
        else:
            response = client.get(url, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise ReleaseError(url, f"Release {tag!r} not found for {repo}") from exc
        raise ReleaseError(url, f"HTTP error {exc.response.status_code}") from exc
    except httpx.RequestError as exc:
        raise ReleaseError(url, f"Network error ({exc})") from exc

    try:
        manifest = response.json()
    except ValueError as exc:
        raise ReleaseError(url, "Response is not JSON") from exc

    if not isinstance(manifest, dict) or not manifest.get("tag_name"):
        raise ReleaseError(url, "Response has no tag_name")

    logger.info(f"Found release {manifest['tag_name']} of {repo}")
    return manifest


def select_asset_url(manifest: dict[str, Any], arch: str) -> str:
    """
    Download URL of the `.tar.gz` asset for `arch`.

    Signature files are skipped. The first matching asset wins.

    Raises:
        ReleaseError: If no asset matches.
    """
    for asset in manifest.get("assets") or []:
        name = asset.get("name", "")
        if arch in name and name.endswith(".tar.gz") and ".sig" not in name:
            url = asset.get("browser_download_url")
            if url:
                return url
    raise ReleaseError(
        manifest.get("url", GITHUB_API_URL),
        f"No download URL found for the required binary for {arch!r}",
    )
