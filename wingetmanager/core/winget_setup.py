# wingetmanager/core/winget_setup.py
import glob
import time
import shutil
import pathlib
from dataclasses import dataclass

from packaging.version import Version

from wingetmanager.core import system_utils
from wingetmanager.core.release_feed import parse_version
from wingetmanager.common import constants


@dataclass
class ToolInstallation:
    executable: pathlib.Path | None = None
    version: Version | None = None

    @property
    def is_installed(self) -> bool:
        return self.executable is not None


def _package_version_key(path: str) -> Version:
    # ...\Microsoft.DesktopAppInstaller_1.21.3482.0_x64__8wekyb3d8bbwe\winget.exe
    package_dir = pathlib.PureWindowsPath(path).parent.name
    parts = package_dir.split("_")
    version = parse_version(parts[1]) if len(parts) > 1 else None
    return version or Version("0")

def locate_installed_tool(fallback_pattern: str = constants.WINGET_FALLBACK_GLOB) -> pathlib.Path | None:
    """
    Resolves winget.exe via PATH, then via the WindowsApps install location.
    The fallback path has a wildcard for the package version segment.
    """
    resolved = shutil.which(constants.WINGET_EXECUTABLE)
    if resolved:
        return pathlib.Path(resolved)

    matches = glob.glob(fallback_pattern)
    if matches:
        return pathlib.Path(max(matches, key=_package_version_key))
    return None

def wait_for_tool(
    attempts: int = constants.POLL_ATTEMPTS,
    delay: float = constants.POLL_DELAY_SECONDS
) -> pathlib.Path | None:
    """Polls for the executable while the OS finishes registering a new package."""
    for attempt in range(1, attempts + 1):
        path = locate_installed_tool()
        if path is not None:
            return path
        if attempt < attempts:
            print(f"winget not registered yet (attempt {attempt}/{attempts}), waiting {delay * attempt:.1f}s...")
            time.sleep(delay * attempt)
    return None

def read_installed_version(executable: pathlib.Path) -> Version | None:
    result = system_utils.run_command([str(executable), constants.WINGET_VERSION_FLAG], capture_output=True, check_return_code=True)
    if result is None:
        system_utils.print_error(f"Could not run '{executable} {constants.WINGET_VERSION_FLAG}'.")
        return None
    output = (result.stdout or "").strip()
    version = parse_version(output)
    if version is None:
        system_utils.print_error(f"Unrecognized winget version output: '{output}'")
    return version

def read_reported_version(executable: pathlib.Path, staging_dir: pathlib.Path) -> Version | None:
    """
    Re-reads the version after an update with stdout redirected to a file,
    so the freshly registered executable is queried in a separate process
    without a pipe attached.
    """
    staging_dir.mkdir(parents=True, exist_ok=True)
    output_path = staging_dir / "winget_version.txt"
    try:
        result = system_utils.run_command([str(executable), constants.WINGET_VERSION_FLAG], stdout_path=output_path, check_return_code=True)
        if result is None or not output_path.is_file():
            system_utils.print_error(f"Could not run '{executable} {constants.WINGET_VERSION_FLAG}'.")
            return None
        lines = [line.strip() for line in output_path.read_text(encoding='utf-8', errors='replace').splitlines() if line.strip()]
    finally:
        system_utils.remove_file(output_path)

    reported = lines[0] if lines else ""
    version = parse_version(reported)
    if version is None:
        system_utils.print_error(f"Unrecognized winget version output: '{reported}'")
    return version

def wait_for_version(
    executable: pathlib.Path,
    staging_dir: pathlib.Path,
    expected: Version,
    attempts: int = constants.POLL_ATTEMPTS,
    delay: float = constants.POLL_DELAY_SECONDS
) -> Version | None:
    """
    Re-reads the reported version until it matches the expected one, with the same
    bounded linear backoff as wait_for_tool. Returns the last version read.
    """
    version = None
    for attempt in range(1, attempts + 1):
        version = read_reported_version(executable, staging_dir)
        if version == expected:
            return version
        if attempt < attempts:
            print(f"winget reports {version}, expected {expected} (attempt {attempt}/{attempts}), waiting {delay * attempt:.1f}s...")
            time.sleep(delay * attempt)
    return version

def compare_versions(installed: Version, latest: Version) -> str:
    return constants.STATUS_UP_TO_DATE if installed >= latest else constants.STATUS_STALE

def _quote_powershell(path: pathlib.Path) -> str:
    # Single-quoted PowerShell strings escape a quote by doubling it
    return str(path).replace("'", "''")

def install_or_update(download_url: str, staging_dir: pathlib.Path) -> bool:
    """
    Downloads the bundle into the staging directory and provisions it for all users.
    The downloaded bundle is always removed afterwards.
    """
    if not download_url:
        system_utils.print_error("No download URL given for the winget bundle.")
        return False

    bundle_name = download_url.rstrip('/').split('/')[-1].split('?')[0]
    if not bundle_name:
        system_utils.print_error(f"Download URL has no file name: {download_url}")
        return False
    bundle_path = staging_dir / bundle_name
    staging_dir.mkdir(parents=True, exist_ok=True)
    try:
        if not system_utils.download_file(download_url, bundle_path) or not bundle_path.is_file():
            system_utils.print_error(f"Download of {download_url} did not produce {bundle_path}.")
            return False

        print(f"Provisioning {bundle_name} for all users...")
        result = system_utils.run_powershell(constants.PROVISION_COMMAND_TEMPLATE.format(path=_quote_powershell(bundle_path)))
        if result is None:
            system_utils.print_error(f"Failed to install {bundle_name}.")
            return False
        system_utils.print_success(f"Installed {bundle_name}.")
        return True
    finally:
        system_utils.remove_file(bundle_path)
