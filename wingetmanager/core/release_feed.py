# wingetmanager/core/release_feed.py
from dataclasses import dataclass

import requests
from packaging.version import InvalidVersion, Version

from wingetmanager.core import system_utils
from wingetmanager.common import constants


@dataclass
class ReleaseInfo:
    """Latest published winget release, fetched fresh on every run."""
    version: Version
    download_url: str
    tag: str = ""


def parse_version(raw: str | None) -> Version | None:
    """
    Parses a version string such as "v1.9.25180" or "1.9.25180".
    A single leading 'v' is stripped. Returns None for anything unparsable.
    """
    if not raw:
        return None
    text = raw.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return Version(text)
    except InvalidVersion:
        return None

def select_bundle_asset(asset_urls: list[str], extension: str = constants.BUNDLE_EXTENSION) -> str | None:
    """First URL whose file name ends with the bundle extension."""
    suffix = extension.lower()
    for url in asset_urls:
        if not url:
            continue
        file_name = url.rstrip('/').split('/')[-1].split('?')[0]
        if file_name.lower().endswith(suffix):
            return url
    return None

def fetch_latest_release(
    feed_url: str = constants.WINGET_RELEASES_API_URL,
    extension: str = constants.BUNDLE_EXTENSION
) -> ReleaseInfo | None:
    print(f"Fetching latest winget release info from: {feed_url}")
    headers = {
        'Accept': 'application/vnd.github+json',
        'User-Agent': f'{constants.APP_NAME}/{constants.APP_VERSION}'
    }
    try:
        response = requests.get(feed_url, timeout=constants.HTTP_TIMEOUT_SECONDS, headers=headers)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        system_utils.print_error(f"Error fetching release feed ({feed_url}): {e}")
        return None
    except ValueError as e:
        system_utils.print_error(f"Release feed returned invalid JSON ({feed_url}): {e}")
        return None

    if not isinstance(data, dict):
        system_utils.print_error("Could not parse release feed response structure.")
        return None

    tag = data.get("tag_name") or ""
    version = parse_version(tag)
    if version is None:
        system_utils.print_error(f"Release tag '{tag}' is not a valid version.")
        return None

    asset_urls = [asset.get("browser_download_url", "") for asset in data.get("assets") or [] if isinstance(asset, dict)]
    download_url = select_bundle_asset(asset_urls, extension)
    if not download_url:
        system_utils.print_error(f"Release {tag} has no asset ending in '{extension}'.")
        return None

    print(f"Latest winget release: {version} ({download_url})")
    return ReleaseInfo(version=version, download_url=download_url, tag=tag)
