"""Tests for settings loading."""

import json

import pytest

from instfetch.settings import FetchSettings, load_settings, settings_from_dict


class TestLoadSettings:
    """Tests for load_settings."""

    def test_no_path_means_defaults(self):
        """No settings file gives the built-in defaults."""
        s = load_settings(None)
        assert s == FetchSettings()
        assert s.optical_mount_attempts == 10
        assert s.optical_mount_delay == 3.0
        assert s.ssl_verify is False

    def test_missing_file_means_defaults(self, tmp_path):
        """A path that does not exist is not an error."""
        assert load_settings(str(tmp_path / "absent.yaml")) == FetchSettings()

    def test_yaml(self, tmp_path):
        """YAML files are read with PyYAML."""
        p = tmp_path / "fetch.yaml"
        p.write_text("http_timeout: 5\nssl_verify: 'yes'\nscratch_dir: /run/x\n")
        s = load_settings(str(p))
        assert s.http_timeout == 5.0
        assert s.ssl_verify is True
        assert s.scratch_dir == "/run/x"

    def test_json(self, tmp_path):
        """JSON is the fallback format."""
        p = tmp_path / "fetch.conf"
        p.write_text(json.dumps({"optical_mount_attempts": "3"}))
        s = load_settings(str(p))
        assert s.optical_mount_attempts == 3
        assert s.optical_retry.max_attempts == 3

    def test_non_mapping_is_rejected(self, tmp_path):
        """A list at the top level is a configuration error."""
        p = tmp_path / "fetch.json"
        p.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_settings(str(p))


class TestSettingsFromDict:
    """Tests for settings_from_dict."""

    def test_unknown_keys_are_ignored(self, caplog):
        """Unknown keys only produce a warning."""
        s = settings_from_dict({"bogus": 1, "ftp_timeout": 7})
        assert s.ftp_timeout == 7.0
        assert "bogus" in caplog.text

    def test_zero_attempts_is_rejected(self):
        """At least one optical mount attempt is required."""
        with pytest.raises(ValueError):
            settings_from_dict({"optical_mount_attempts": 0})

    def test_round_trip_through_dict(self):
        """to_dict output is accepted back unchanged."""
        s = FetchSettings(http_timeout=12.0)
        assert settings_from_dict(s.to_dict()) == s
