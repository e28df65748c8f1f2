import pathlib
import subprocess

import requests

from wingetmanager.common import constants


class FakeResponse:
    def __init__(self, json_data=None, content=b"", status_code=200):
        self._json_data = json_data
        self.content = content
        self.status_code = status_code
        self.headers = {"content-length": str(len(content))}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_data

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]


def release_payload(tag, asset_names=None):
    version = tag.lstrip("v")
    if asset_names is None:
        asset_names = ["DesktopAppInstaller_License1.xml", "Microsoft.DesktopAppInstaller_8wekyb3d8bbwe.msixbundle"]
    return {
        "tag_name": tag,
        "assets": [
            {"name": name, "browser_download_url": f"https://github.com/microsoft/winget-cli/releases/download/v{version}/{name}"}
            for name in asset_names
        ],
    }


def package_path_from_script(script):
    """Undoes the PowerShell single-quote escaping of the -PackagePath argument."""
    quoted = script.split("-PackagePath '", 1)[1].rsplit("' -SkipLicense", 1)[0]
    return pathlib.Path(quoted.replace("''", "'"))


class FakeHost:
    """A Windows host with an optional winget install and a scripted release feed."""

    def __init__(self, tmp_path: pathlib.Path):
        self.executable = tmp_path / "WindowsApps" / "winget.exe"
        self.installed_version = None
        self.feed_tag = "v1.0.0"
        self.feed_reachable = True
        self.feed_asset_names = None
        self.install_fails = False
        self.download_fails = False
        self.version_output_override = None
        # Version reads that still report the previous version after an install
        self.registration_lag = 0
        self.lost_after_install = False
        self.feed_requests = 0
        self.downloads = []
        self.install_calls = []
        self.bundle_present_during_install = []
        self.version_reads = 0
        self.sleeps = []
        self._previous_version = None
        self._pending_reads = 0

    # requests.get replacement
    def get(self, url, **kwargs):
        if url == constants.WINGET_RELEASES_API_URL:
            self.feed_requests += 1
            if not self.feed_reachable:
                raise requests.exceptions.ConnectionError("feed unreachable")
            return FakeResponse(json_data=release_payload(self.feed_tag, self.feed_asset_names))
        self.downloads.append(url)
        if self.download_fails:
            return FakeResponse(status_code=404)
        return FakeResponse(content=b"bundle-bytes" * 100)

    # system_utils.run_command replacement
    def run_command(self, command_parts, working_directory=None, capture_output=True,
                    check_return_code=True, stdout_path=None, env=None):
        if command_parts[0] == "powershell":
            script = command_parts[-1]
            self.install_calls.append(script)
            self.bundle_present_during_install.append(package_path_from_script(script).is_file())
            if self.install_fails:
                return None
            self._previous_version = self.installed_version
            self._pending_reads = self.registration_lag
            self.installed_version = self.feed_tag.lstrip("v")
            return subprocess.CompletedProcess(command_parts, 0, stdout="", stderr="")

        if command_parts[1:] == [constants.WINGET_VERSION_FLAG]:
            self.version_reads += 1
            if self.installed_version is None:
                return None
            reported = self.installed_version
            if self._pending_reads > 0 and self._previous_version is not None:
                self._pending_reads -= 1
                reported = self._previous_version
            output = self.version_output_override or f"v{reported}"
            if stdout_path is not None:
                pathlib.Path(stdout_path).write_text(output + "\n", encoding="utf-8")
                return subprocess.CompletedProcess(command_parts, 0, stdout=None, stderr="")
            return subprocess.CompletedProcess(command_parts, 0, stdout=output + "\r\n", stderr="")

        raise AssertionError(f"unexpected command: {command_parts}")

    def locate(self, fallback_pattern=constants.WINGET_FALLBACK_GLOB):
        if self.installed_version is None:
            return None
        if self.lost_after_install and self.install_calls:
            return None
        return self.executable
