"""Unit tests for library settings loading.

Tests TOML loading with strict schema validation and environment overrides.
"""

from pathlib import Path

from pydantic import ValidationError
import pytest

pytestmark = pytest.mark.unit


class TestLoadSettings:
    """Test settings file loading and parsing."""

    def test_Should_UseDefaults_When_NoFileGiven(self, monkeypatch):
        """Should fall back to INFO logging and 2-space indent."""
        from jmxdoc.config import load_settings

        monkeypatch.delenv("JMXDOC_LOGGING__LEVEL", raising=False)
        monkeypatch.delenv("JMXDOC_IO__INDENT", raising=False)

        settings = load_settings()

        assert settings.logging.level == "INFO"
        assert settings.io.indent == 2
        assert settings.io.create_parent_dirs is False

    def test_Should_LoadValues_When_ValidTOMLProvided(self, sample_config_toml: Path):
        """Should read every section and uppercase the log level."""
        from jmxdoc.config import load_settings

        settings = load_settings(sample_config_toml)

        assert settings.logging.level == "DEBUG"
        assert settings.io.indent == 4
        assert settings.io.create_parent_dirs is True

    def test_Should_RaiseFileNotFound_When_PathMissing(self, tmp_path: Path):
        from jmxdoc.config import load_settings

        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.toml")

    def test_Should_RejectSettings_When_ExtraKeyPresent(self, tmp_path: Path):
        """Should reject keys not in the schema."""
        from jmxdoc.config import load_settings

        path = tmp_path / "bad.toml"
        path.write_text('[io]\nindent = 2\ncompress = true\n')

        with pytest.raises(ValidationError) as exc_info:
            load_settings(path)

        assert "extra" in str(exc_info.value).lower()

    def test_Should_RejectLevel_When_NotALoggingLevel(self):
        from jmxdoc.config import LoggingConfig

        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_Should_RejectIndent_When_Negative(self):
        from jmxdoc.config import IOConfig

        with pytest.raises(ValidationError):
            IOConfig(indent=-1)


class TestEnvironmentOverrides:
    """Test JMXDOC_ environment variables."""

    def test_Should_OverrideToml_When_EnvVarSet(self, sample_config_toml: Path, monkeypatch):
        from jmxdoc.config import load_settings

        monkeypatch.setenv("JMXDOC_IO__INDENT", "0")

        settings = load_settings(sample_config_toml)

        assert settings.io.indent == 0
        assert settings.logging.level == "DEBUG"

    def test_Should_ValidateLevel_When_SetFromEnv(self, monkeypatch):
        from jmxdoc.config import Settings

        monkeypatch.setenv("JMXDOC_LOGGING__LEVEL", "warning")

        assert Settings().logging.level == "WARNING"
