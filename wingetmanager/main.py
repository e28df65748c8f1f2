# wingetmanager/main.py
import argparse
import sys
import pathlib

from wingetmanager.core import system_utils
from wingetmanager.core import host_checks
from wingetmanager.core import release_feed
from wingetmanager.core import winget_setup
from wingetmanager.core import reconciler
from wingetmanager.common import constants

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=f"{constants.APP_NAME} - Keeps the Windows Package Manager (winget) installed and up to date.")

    # --- System Utils Arguments ---
    sys_group = parser.add_argument_group('System Utilities')
    sys_group.add_argument(
        "--check-admin",
        action="store_true",
        help="Check if the script is running with admin privileges and exit."
    )
    sys_group.add_argument(
        "--show-data-dir",
        action="store_true",
        help="Show the user data and staging directories for this application and exit."
    )

    # --- Prerequisite Arguments ---
    prereq_group = parser.add_argument_group('Prerequisites')
    prereq_group.add_argument(
        "--check-host",
        action="store_true",
        help=f"Check that the Windows build is {constants.MIN_WINDOWS_BUILD} or newer."
    )
    prereq_group.add_argument(
        "--ensure-runtime",
        action="store_true",
        help="Install the Visual C++ Redistributable if it is missing."
    )

    # --- Inspection Arguments ---
    inspect_group = parser.add_argument_group('Inspection')
    inspect_group.add_argument(
        "--locate",
        action="store_true",
        help="Print the path of the installed winget executable."
    )
    inspect_group.add_argument(
        "--show-version",
        action="store_true",
        help="Print the installed winget version."
    )
    inspect_group.add_argument(
        "--show-latest",
        action="store_true",
        help="Print the latest published winget release and its bundle URL."
    )

    # --- Reconcile Arguments ---
    reconcile_group = parser.add_argument_group('Install / Update')
    reconcile_group.add_argument(
        "--reconcile",
        action="store_true",
        help="Install winget if missing and update it to the latest release."
    )
    reconcile_group.add_argument(
        "--check-only",
        action="store_true",
        help="Report whether winget is up to date without installing anything."
    )
    reconcile_group.add_argument(
        "--skip-prerequisites",
        action="store_true",
        help="Skip the Windows build and Visual C++ runtime checks."
    )
    reconcile_group.add_argument(
        "--staging-dir",
        type=pathlib.Path,
        default=None,
        help="Directory for downloaded installers. Defaults to the user data directory."
    )
    reconcile_group.add_argument(
        "--feed-url",
        default=constants.WINGET_RELEASES_API_URL,
        help="Release feed to query for the latest winget release."
    )
    reconcile_group.add_argument(
        "--poll-attempts",
        type=int,
        default=constants.POLL_ATTEMPTS,
        help="How many times to look for winget after installing it."
    )
    reconcile_group.add_argument(
        "--poll-delay",
        type=float,
        default=constants.POLL_DELAY_SECONDS,
        help="Base delay in seconds between those lookups."
    )
    return parser

def main(argv: list[str] | None = None) -> int:
    """Main entry point for the WingetManager CLI."""
    args = build_parser().parse_args(argv)

    # --- Handle System Util Commands ---
    if args.check_admin:
        is_admin = system_utils.check_admin_privileges()
        print("Running with administrative privileges." if is_admin else "Not running with administrative privileges.")
        return constants.EXIT_OK

    if args.show_data_dir:
        print(f"User data directory: {system_utils.get_user_data_directory()}")
        print(f"Staging directory: {system_utils.get_staging_directory(args.staging_dir)}")
        return constants.EXIT_OK

    # --- Handle Prerequisite Commands ---
    if args.check_host:
        return constants.EXIT_OK if host_checks.check_host_support() else constants.EXIT_FATAL

    if args.ensure_runtime:
        if not system_utils.check_admin_privileges():
            system_utils.print_error("Error: Admin privileges required to install the Visual C++ Redistributable. Re-run as administrator.")
            return constants.EXIT_FAILURE
        staging_dir = system_utils.get_staging_directory(args.staging_dir)
        return constants.EXIT_OK if host_checks.ensure_runtime_dependency(staging_dir) else constants.EXIT_FATAL

    # --- Handle Inspection Commands ---
    if args.locate:
        path = winget_setup.locate_installed_tool()
        if path is None:
            print("winget not found.")
            return constants.EXIT_FAILURE
        print(f"winget found at: {path}")
        return constants.EXIT_OK

    if args.show_version:
        path = winget_setup.locate_installed_tool()
        version = winget_setup.read_installed_version(path) if path else None
        if version is None:
            print("Could not determine the installed winget version.")
            return constants.EXIT_FAILURE
        print(f"Installed winget version: {version}")
        return constants.EXIT_OK

    if args.show_latest:
        release = release_feed.fetch_latest_release(args.feed_url)
        if release is None:
            return constants.EXIT_FAILURE
        print(f"Latest release: {release.version} (tag {release.tag})")
        print(f"Bundle URL: {release.download_url}")
        return constants.EXIT_OK

    # --- Handle Reconcile Commands ---
    if args.reconcile or args.check_only:
        if args.reconcile and not args.check_only and not system_utils.check_admin_privileges():
            system_utils.print_error("Error: Admin privileges required to provision winget for all users. Re-run as administrator.")
            return constants.EXIT_FAILURE
        config = reconciler.ReconcilerConfig(
            staging_dir=system_utils.get_staging_directory(args.staging_dir),
            feed_url=args.feed_url,
            poll_attempts=args.poll_attempts,
            poll_delay=args.poll_delay,
            check_prerequisites=not args.skip_prerequisites,
            check_only=args.check_only,
        )
        result = reconciler.reconcile(config)
        return result.exit_code

    print(f"Welcome to {constants.APP_NAME} {constants.APP_VERSION}!")
    print("Use --help for available commands.")
    return constants.EXIT_OK

if __name__ == "__main__":
    sys.exit(main())
