# wingetmanager/core/reconciler.py
"""
Keeps winget installed and at the latest published release.

Every step is tried once. Failures are reported through ReconcileResult
instead of exiting, and main() picks the exit code.
"""
import pathlib
from dataclasses import dataclass, field

from packaging.version import Version

from wingetmanager.core import host_checks
from wingetmanager.core import release_feed
from wingetmanager.core import system_utils
from wingetmanager.core import winget_setup
from wingetmanager.common import constants

RESULT_UP_TO_DATE = "up_to_date"
RESULT_INSTALLED = "installed"
RESULT_UPDATED = "updated"
RESULT_STALE = "stale"
RESULT_FAILED = "failed"


@dataclass
class ReconcilerConfig:
    staging_dir: pathlib.Path
    feed_url: str = constants.WINGET_RELEASES_API_URL
    bundle_extension: str = constants.BUNDLE_EXTENSION
    poll_attempts: int = constants.POLL_ATTEMPTS
    poll_delay: float = constants.POLL_DELAY_SECONDS
    check_prerequisites: bool = True
    check_only: bool = False


@dataclass
class ReconcileResult:
    success: bool
    status: str
    message: str
    fatal: bool = False
    installation: winget_setup.ToolInstallation = field(default_factory=winget_setup.ToolInstallation)
    latest_version: Version | None = None

    @property
    def exit_code(self) -> int:
        if self.success:
            return constants.EXIT_OK
        return constants.EXIT_FATAL if self.fatal else constants.EXIT_FAILURE


def _failed(message: str, installation: winget_setup.ToolInstallation, latest: Version | None = None, fatal: bool = False) -> ReconcileResult:
    system_utils.print_error(message)
    return ReconcileResult(False, RESULT_FAILED, message, fatal=fatal, installation=installation, latest_version=latest)

def check_prerequisites(config: ReconcilerConfig) -> str | None:
    """Returns an error message if the host cannot run winget, None otherwise."""
    if not host_checks.check_host_support():
        return "Host operating system is not supported."
    if config.check_only:
        if not host_checks.has_runtime_dependency():
            return "Required Visual C++ runtime is not installed."
    elif not host_checks.ensure_runtime_dependency(config.staging_dir):
        return "Required Visual C++ runtime is missing and could not be installed."
    return None

def reconcile(config: ReconcilerConfig) -> ReconcileResult:
    installation = winget_setup.ToolInstallation()

    if config.check_prerequisites:
        system_utils.print_info("Checking prerequisites...")
        problem = check_prerequisites(config)
        if problem:
            return _failed(problem, installation, fatal=True)

    system_utils.print_info("Locating winget...")
    installation.executable = winget_setup.locate_installed_tool()
    freshly_installed = False
    if installation.executable is None:
        if config.check_only:
            return _failed("winget is not installed.", installation)
        system_utils.print_warning("winget is not installed. Installing the latest release...")
        release = release_feed.fetch_latest_release(config.feed_url, config.bundle_extension)
        if release is None:
            return _failed("Could not determine the latest winget release.", installation)
        if not winget_setup.install_or_update(release.download_url, config.staging_dir):
            return _failed("winget installation failed.", installation, release.version)
        installation.executable = winget_setup.wait_for_tool(config.poll_attempts, config.poll_delay)
        if installation.executable is None:
            return _failed("winget was installed but could not be located.", installation, release.version)
        freshly_installed = True
    print(f"winget found at: {installation.executable}")

    installation.version = winget_setup.read_installed_version(installation.executable)
    if installation.version is None:
        return _failed("Could not read the installed winget version.", installation)
    print(f"Installed winget version: {installation.version}")

    release = release_feed.fetch_latest_release(config.feed_url, config.bundle_extension)
    if release is None:
        return _failed("Could not determine the latest winget release.", installation)

    if winget_setup.compare_versions(installation.version, release.version) == constants.STATUS_UP_TO_DATE:
        status = RESULT_INSTALLED if freshly_installed else RESULT_UP_TO_DATE
        message = f"winget {installation.version} is {constants.STATUS_UP_TO_DATE}."
        system_utils.print_success(message)
        return ReconcileResult(True, status, message, installation=installation, latest_version=release.version)

    if config.check_only:
        message = f"winget {installation.version} is {constants.STATUS_STALE} (latest: {release.version})."
        system_utils.print_warning(message)
        return ReconcileResult(False, RESULT_STALE, message, installation=installation, latest_version=release.version)

    system_utils.print_warning(f"Updating winget {installation.version} -> {release.version}...")
    if not winget_setup.install_or_update(release.download_url, config.staging_dir):
        return _failed("winget update failed.", installation, release.version)

    executable = winget_setup.wait_for_tool(config.poll_attempts, config.poll_delay)
    if executable is None:
        return _failed("winget could not be located after the update.", installation, release.version)
    installation.executable = executable

    installation.version = winget_setup.wait_for_version(executable, config.staging_dir, release.version, config.poll_attempts, config.poll_delay)
    if installation.version is None:
        return _failed("Could not read the winget version after the update.", installation, release.version)
    if installation.version != release.version:
        return _failed(f"winget reports {installation.version} after the update, expected {release.version}.", installation, release.version)

    message = f"winget updated to {installation.version}."
    system_utils.print_success(message)
    return ReconcileResult(True, RESULT_UPDATED, message, installation=installation, latest_version=release.version)
