# wingetmanager/core/__init__.py
# This file makes Python treat the `core` directory as a package.

from .system_utils import (
    check_admin_privileges,
    get_user_data_directory,
    get_staging_directory,
    run_command,
    download_file,
    remove_file,
)

from .host_checks import (
    check_host_support,
    ensure_runtime_dependency,
)

from .release_feed import (
    ReleaseInfo,
    parse_version,
    select_bundle_asset,
    fetch_latest_release,
)

from .winget_setup import (
    ToolInstallation,
    locate_installed_tool,
    wait_for_tool,
    wait_for_version,
    read_installed_version,
    read_reported_version,
    compare_versions,
    install_or_update,
)

from .reconciler import (
    ReconcilerConfig,
    ReconcileResult,
    reconcile,
)
