from gce_cloud_provider.consts import (
    CLOUD_PLATFORM_SCOPE,
    COMPUTE_SCOPE,
    DEFAULT_CREDENTIAL_SCOPES,
    METADATA_PATH_PREFIX,
    PACKAGE_VERSION,
    TOKEN_POLL_INTERVAL_SECONDS,
    TOKEN_POLL_TIMEOUT_SECONDS,
)


class TestPackageConstants:
    """Test package constants are properly defined"""

    def test_package_version_defined(self):
        """Test that package version is defined"""
        assert isinstance(PACKAGE_VERSION, str)
        assert "." in PACKAGE_VERSION  # Should be semantic version

    def test_default_scopes(self):
        """Test default credentials ask for cloud-platform and compute"""
        assert DEFAULT_CREDENTIAL_SCOPES == (CLOUD_PLATFORM_SCOPE, COMPUTE_SCOPE)
        for scope in DEFAULT_CREDENTIAL_SCOPES:
            assert scope.startswith("https://www.googleapis.com/auth/")

    def test_metadata_prefix(self):
        assert METADATA_PATH_PREFIX.startswith("/")
        assert METADATA_PATH_PREFIX.endswith("/")

    def test_warm_up_window(self):
        """Test the warm-up polls several times within its window"""
        assert TOKEN_POLL_INTERVAL_SECONDS < TOKEN_POLL_TIMEOUT_SECONDS
