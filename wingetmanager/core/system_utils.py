# wingetmanager/core/system_utils.py
import os
import sys
import ctypes
import pathlib
import subprocess

import requests
from colorama import Fore, Style, just_fix_windows_console

from wingetmanager.common import constants

just_fix_windows_console()


def _emit(color: str, message: str, stream) -> None:
    print(f"{color}{message}{Style.RESET_ALL}", file=stream)

def print_info(message: str) -> None:
    _emit(Fore.CYAN, message, sys.stdout)

def print_success(message: str) -> None:
    _emit(Fore.GREEN, message, sys.stdout)

def print_warning(message: str) -> None:
    _emit(Fore.YELLOW, message, sys.stderr)

def print_error(message: str) -> None:
    _emit(Fore.RED, message, sys.stderr)


def check_admin_privileges() -> bool:
    if os.name == 'nt':
        try:
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        except AttributeError:
            print_error("Could not determine admin status using ctypes.windll.shell32.IsUserAnAdmin().")
            return False
        except OSError as e:
            print_error(f"Error checking admin privileges: {e}")
            return False
    elif os.name == 'posix':
        return os.geteuid() == 0
    else:
        print_error(f"Unsupported OS for admin check: {os.name}")
        return False

def get_user_data_directory(tool_name: str = constants.APP_NAME) -> pathlib.Path:
    tool_name_fs = tool_name.replace(' ', '_')
    if os.name == 'nt':
        app_data_dir = os.getenv('APPDATA')
        if app_data_dir:
            path = pathlib.Path(app_data_dir) / tool_name_fs
        else:
            path = pathlib.Path.home() / f".{tool_name_fs}_config"
    elif os.name == 'posix':
        xdg_config_home = os.getenv('XDG_CONFIG_HOME')
        if xdg_config_home:
            path = pathlib.Path(xdg_config_home) / tool_name_fs
        else:
            path = pathlib.Path.home() / ".config" / tool_name_fs
    else:
        path = pathlib.Path.home() / f".{tool_name_fs}_config"

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print_error(f"Error creating data directory {path}: {e}")
    return path

def get_staging_directory(base_dir: pathlib.Path | None = None) -> pathlib.Path:
    """Directory that holds downloaded installers until they are removed."""
    if base_dir is None:
        base_dir = get_user_data_directory() / constants.DIR_NAME_PREREQUISITES
    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir

def run_command(
    command_parts: list[str],
    working_directory: str | os.PathLike | None = None,
    capture_output: bool = True,
    check_return_code: bool = True,
    stdout_path: pathlib.Path | None = None,
    env: dict | None = None
) -> subprocess.CompletedProcess | None:
    """
    Runs a command and returns the CompletedProcess, or None if it could not be
    started or (with check_return_code) exited non-zero.
    If stdout_path is given, standard output is written to that file instead of
    being captured.
    """
    command_str = ' '.join(str(part) for part in command_parts)
    try:
        if stdout_path is not None:
            with open(stdout_path, 'w', encoding='utf-8') as out_file:
                result = subprocess.run(
                    command_parts,
                    cwd=working_directory,
                    stdout=out_file,
                    stderr=subprocess.PIPE,
                    text=True,
                    check=False,
                    env=env
                )
        else:
            result = subprocess.run(
                command_parts,
                cwd=working_directory,
                capture_output=capture_output,
                text=True,
                check=False,
                env=env
            )

        if check_return_code and result.returncode != 0:
            print_error(f"Command failed with exit code {result.returncode}: {command_str}")
            if result.stdout:
                print(f"STDOUT:\n{result.stdout}", file=sys.stderr)
            if result.stderr:
                print(f"STDERR:\n{result.stderr}", file=sys.stderr)
            return None
        return result
    except FileNotFoundError:
        print_error(f"Error: Command not found - {command_parts[0]}. Is it in PATH or an absolute path?")
        return None
    except OSError as e:
        print_error(f"An error occurred while running command {command_str}: {e}")
        return None

def run_powershell(script: str, check_return_code: bool = True) -> subprocess.CompletedProcess | None:
    command = ["powershell", "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command", script]
    return run_command(command, capture_output=True, check_return_code=check_return_code)

def download_file(url: str, destination_path: pathlib.Path, show_progress: bool = True) -> bool:
    print(f"Downloading {url} to {destination_path}...")
    headers = {'User-Agent': f'{constants.APP_NAME}/{constants.APP_VERSION}'}
    try:
        response = requests.get(url, stream=True, timeout=constants.HTTP_TIMEOUT_SECONDS, headers=headers)
        response.raise_for_status()
        total_size = int(response.headers.get('content-length', 0))
        block_size = 8192
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        with open(destination_path, 'wb') as f:
            downloaded_size = 0
            for chunk in response.iter_content(chunk_size=block_size):
                f.write(chunk)
                downloaded_size += len(chunk)
                if show_progress and total_size > 0:
                    progress = min(int(50 * downloaded_size / total_size), 50)
                    percentage = (downloaded_size / total_size) * 100
                    sys.stdout.write(f"\r[{'#' * progress}{'.' * (50 - progress)}] {percentage:.2f}% ({downloaded_size // 1024}KB / {total_size // 1024}KB)")
                    sys.stdout.flush()
            if show_progress and total_size > 0:
                sys.stdout.write('\n')
        print(f"Download complete: {destination_path}")
        return True
    except requests.exceptions.RequestException as e:
        print_error(f"Error downloading {url}: {e}")
    except OSError as e:
        print_error(f"Error writing {destination_path}: {e}")
    if destination_path.exists():
        try:
            destination_path.unlink()
        except OSError:
            pass
    return False

def remove_file(path: pathlib.Path) -> bool:
    """Deletes a transient file. A locked or undeletable file is reported, not raised."""
    try:
        path.unlink(missing_ok=True)
        return True
    except OSError as e:
        print_warning(f"Could not delete {path}: {e}")
        return False
