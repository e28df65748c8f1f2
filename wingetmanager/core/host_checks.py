# wingetmanager/core/host_checks.py
import os
import sys
import pathlib
import platform

from wingetmanager.core import system_utils
from wingetmanager.common import constants


def get_windows_build() -> int | None:
    """Returns the Windows build number, or None when it cannot be determined."""
    if os.name != 'nt':
        return None
    getwindowsversion = getattr(sys, "getwindowsversion", None)
    if getwindowsversion is not None:
        return getwindowsversion().build
    # platform.version() looks like "10.0.19045"
    parts = platform.version().split('.')
    if len(parts) >= 3 and parts[2].isdigit():
        return int(parts[2])
    return None

def check_host_support(min_build: int = constants.MIN_WINDOWS_BUILD) -> bool:
    build = get_windows_build()
    if build is None:
        system_utils.print_error(f"{constants.APP_NAME} only supports Windows hosts (detected: {platform.system() or os.name}).")
        return False
    if build < min_build:
        system_utils.print_error(f"Windows build {build} is not supported. Build {min_build} (Windows 10 1809) or newer is required.")
        return False
    print(f"Windows build {build} is supported.")
    return True

def get_host_architecture() -> str:
    """'x64' on 64-bit hosts, 'x86' otherwise. Matches the vc_redist download names."""
    return "x64" if platform.machine().lower().endswith("64") else "x86"

def get_installed_program_names() -> list[str]:
    """DisplayName of every entry under the machine-wide Uninstall registry keys."""
    if os.name != 'nt':
        return []
    import winreg

    names = []
    for key_path in constants.UNINSTALL_REGISTRY_KEYS:
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
                for i in range(winreg.QueryInfoKey(key)[0]):
                    try:
                        subkey_name = winreg.EnumKey(key, i)
                        with winreg.OpenKey(key, subkey_name) as subkey:
                            display_name, _ = winreg.QueryValueEx(subkey, "DisplayName")
                    except OSError:
                        # Entries without a DisplayName are common
                        continue
                    names.append(str(display_name))
        except FileNotFoundError:
            continue
    return names

def find_runtime_dependency(program_names: list[str], arch: str) -> str | None:
    arch_marker = f"({arch})".lower()
    for name in program_names:
        lowered = name.lower()
        if arch_marker not in lowered:
            continue
        for pattern in constants.VCREDIST_NAME_PATTERNS:
            if pattern.lower() in lowered:
                return name
    return None

def has_runtime_dependency() -> bool:
    return find_runtime_dependency(get_installed_program_names(), get_host_architecture()) is not None

def ensure_runtime_dependency(staging_dir: pathlib.Path) -> bool:
    """
    Makes sure the Visual C++ runtime winget depends on is installed.
    Downloads and silently runs vc_redist for the host architecture when it is missing.
    """
    arch = get_host_architecture()
    found = find_runtime_dependency(get_installed_program_names(), arch)
    if found:
        print(f"Found installed runtime: {found}")
        return True

    system_utils.print_warning(f"Visual C++ Redistributable ({arch}) is not installed. Installing it now...")
    installer_url = constants.VCREDIST_URL_TEMPLATE.format(arch=arch)
    installer_path = staging_dir / installer_url.split('/')[-1]

    staging_dir.mkdir(parents=True, exist_ok=True)
    try:
        if not system_utils.download_file(installer_url, installer_path) or not installer_path.is_file():
            system_utils.print_error(f"Failed to download Visual C++ Redistributable from {installer_url}")
            return False
        result = system_utils.run_command([str(installer_path), *constants.VCREDIST_INSTALL_FLAGS], check_return_code=False)
        if result is None or result.returncode not in constants.VCREDIST_SUCCESS_CODES:
            code = "not started" if result is None else f"exit code {result.returncode}"
            system_utils.print_error(f"Visual C++ Redistributable installer failed ({code}).")
            return False
    finally:
        system_utils.remove_file(installer_path)

    system_utils.print_success("Visual C++ Redistributable installed.")
    return True
