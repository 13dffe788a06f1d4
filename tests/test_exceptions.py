"""
Tests for the addon-manifest exception hierarchy.
"""

import pytest

from addon_manifest.exceptions import (
    AddonManifestError,
    ConfigMissingError,
    ConfigParseError,
    ConfigurationError,
    FetchError,
    ManifestWriteError,
    MissingEnvironmentError,
)

pytestmark = pytest.mark.unit


class TestAddonManifestError:
    def test_basic_message(self):
        error = AddonManifestError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.details is None

    def test_message_with_details(self):
        error = AddonManifestError("Operation failed", details="Connection timeout")
        assert str(error) == "Operation failed - Connection timeout"
        assert error.message == "Operation failed"


class TestConfigurationErrors:
    @pytest.mark.parametrize(
        "error",
        [
            ConfigMissingError("repos.json"),
            ConfigParseError("repos.json", details="bad"),
            MissingEnvironmentError("REPO"),
        ],
    )
    def test_fatal_errors_are_configuration_errors(self, error):
        assert isinstance(error, ConfigurationError)
        assert isinstance(error, AddonManifestError)

    def test_config_missing_keeps_path(self):
        error = ConfigMissingError("/tmp/addon-repos.json")
        assert error.path == "/tmp/addon-repos.json"
        assert "/tmp/addon-repos.json" in str(error)

    def test_missing_environment_names_variable(self):
        error = MissingEnvironmentError("GITHUB_TOKEN", details="private repo")
        assert error.variable == "GITHUB_TOKEN"
        assert str(error) == (
            "Missing required environment variable: GITHUB_TOKEN - private repo"
        )


class TestFetchError:
    def test_attributes(self):
        error = FetchError(
            "owner/repo",
            url="https://api.github.com/repos/owner/repo/releases",
            status_code=404,
        )
        assert error.repo == "owner/repo"
        assert error.status_code == 404
        assert str(error) == "Failed to fetch releases for owner/repo"

    def test_is_not_a_configuration_error(self):
        assert not isinstance(FetchError("owner/repo"), ConfigurationError)


def test_manifest_write_error_keeps_path():
    error = ManifestWriteError("docs/omsi-addons.json", details="read-only")
    assert error.path == "docs/omsi-addons.json"
    assert str(error) == "Could not write manifest to docs/omsi-addons.json - read-only"
