import time

import platformdirs
import pytest
import requests

from addon_manifest.models import AssetRecord, ReleaseRecord

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    for marker in (
        "unit: fast isolated tests",
        "configuration: configuration loading tests",
        "manifest: release selection and manifest assembly tests",
        "integration: end-to-end pipeline tests",
    ):
        config.addinivalue_line("markers", marker)


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the environment at a temporary layout.

    Sets XDG_* variables, removes GITHUB_TOKEN/REPO/ADDON_MANIFEST_CONFIG so
    tests never pick up the developer's environment, and patches platformdirs
    user_* functions to return temporary paths.
    """
    base = tmp_path_factory.mktemp("addon_manifest")
    config_dir = base / "config"
    cache_dir = base / "cache"
    log_dir = base / "log"
    for path in (config_dir, cache_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    for variable in ("GITHUB_TOKEN", "REPO", "ADDON_MANIFEST_CONFIG"):
        monkeypatch.delenv(variable, raising=False)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.

    The GitHub request helper sleeps briefly after every call.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


@pytest.fixture
def make_release():
    """
    Factory building ReleaseRecord objects with sensible defaults.

    Assets are given as (name, size) tuples.
    """

    def _make(
        tag_name,
        published_at="2024-01-01T00:00:00Z",
        assets=(),
        **kwargs,
    ):
        kwargs.setdefault(
            "zipball_url", f"https://api.github.com/repos/o/r/zipball/{tag_name}"
        )
        return ReleaseRecord(
            tag_name=tag_name,
            published_at=published_at,
            assets=[
                AssetRecord(
                    name=name,
                    size=size,
                    download_url=f"https://github.com/o/r/releases/download/{tag_name}/{name}",
                )
                for name, size in assets
            ],
            **kwargs,
        )

    return _make


@pytest.fixture
def github_release_payload():
    """Factory building raw GitHub API release dicts."""

    def _make(tag_name, published_at="2024-01-01T00:00:00Z", assets=(), **kwargs):
        data = {
            "tag_name": tag_name,
            "name": kwargs.pop("name", tag_name),
            "body": kwargs.pop("body", ""),
            "draft": kwargs.pop("draft", False),
            "prerelease": kwargs.pop("prerelease", False),
            "published_at": published_at,
            "created_at": kwargs.pop("created_at", published_at),
            "author": {"login": kwargs.pop("author", "owner")},
            "zipball_url": f"https://api.github.com/repos/owner/repo/zipball/{tag_name}",
            "tarball_url": f"https://api.github.com/repos/owner/repo/tarball/{tag_name}",
            "assets": [
                {
                    "name": name,
                    "size": size,
                    "browser_download_url": f"https://github.com/owner/repo/releases/download/{tag_name}/{name}",
                }
                for name, size in assets
            ],
        }
        data.update(kwargs)
        return data

    return _make
