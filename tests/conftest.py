import pytest
import requests

from tests.helpers import FakeHost
from wingetmanager.core import system_utils
from wingetmanager.core import winget_setup


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "prerequisites"
    path.mkdir()
    return path


@pytest.fixture
def fake_host(tmp_path, monkeypatch):
    host = FakeHost(tmp_path)
    monkeypatch.setattr(requests, "get", host.get)
    monkeypatch.setattr(system_utils, "run_command", host.run_command)
    monkeypatch.setattr(winget_setup, "locate_installed_tool", host.locate)
    monkeypatch.setattr(winget_setup.time, "sleep", host.sleeps.append)
    return host
