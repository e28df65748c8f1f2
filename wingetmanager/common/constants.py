# wingetmanager/common/constants.py

APP_NAME = "WingetManager"
APP_VERSION = "0.2.0"

# Windows 10 1809 is the first build winget supports
MIN_WINDOWS_BUILD = 17763

# Release feed
WINGET_RELEASES_API_URL = "https://api.github.com/repos/microsoft/winget-cli/releases/latest"
BUNDLE_EXTENSION = ".msixbundle"
HTTP_TIMEOUT_SECONDS = 60

# Tool lookup
WINGET_EXECUTABLE = "winget"
WINGET_FALLBACK_GLOB = r"C:\Program Files\WindowsApps\Microsoft.DesktopAppInstaller_*_x64__8wekyb3d8bbwe\winget.exe"
WINGET_VERSION_FLAG = "--version"

# VC++ runtime. Either release line satisfies winget.
VCREDIST_NAME_PATTERNS = (
    "Microsoft Visual C++ 2015-2019 Redistributable",
    "Microsoft Visual C++ 2015-2022 Redistributable",
)
VCREDIST_URL_TEMPLATE = "https://aka.ms/vs/17/release/vc_redist.{arch}.exe"
VCREDIST_INSTALL_FLAGS = ["/install", "/quiet", "/norestart"]
# 3010: reboot required, 1638: a newer version is already installed
VCREDIST_SUCCESS_CODES = (0, 1638, 3010)
UNINSTALL_REGISTRY_KEYS = (
    r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
    r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
)

# Provisioned (all users) package install, no license file
PROVISION_COMMAND_TEMPLATE = "Add-AppxProvisionedPackage -Online -PackagePath '{path}' -SkipLicense"

# Default directory names within user_data_directory
DIR_NAME_PREREQUISITES = "prerequisites"

# Polling for the tool after an install; the OS registers packages asynchronously
POLL_ATTEMPTS = 5
POLL_DELAY_SECONDS = 2.0

# Version comparison outcomes
STATUS_UP_TO_DATE = "up to date"
STATUS_STALE = "stale"

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_FATAL = 2
