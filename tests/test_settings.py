"""Tests for settings resolution."""

import os

import pytest


def _load(tmp_path, environ=None):
    from cnc_dashboard.settings import load_settings

    return load_settings(state_dir=tmp_path, environ=environ or {}, load_env_file=False)


class TestDefaults:
    """Test built-in defaults."""

    def test_defaults(self, tmp_path):
        """Test settings without a file or environment."""
        settings = _load(tmp_path)

        assert settings.debug is False
        assert settings.service_timeout == 10.0
        assert settings.validation_pause == 0.5
        assert settings.namespace == "cncDashboard"
        assert settings.state_file == tmp_path / "state.json"
        assert settings.service_urls == {
            "jsonScanner": "http://localhost:3001",
            "toolManager": "http://localhost:3002",
            "clampingPlateManager": "http://localhost:3003",
        }

    def test_endpoints_keep_paths(self, tmp_path):
        """Test overriding a URL keeps each service's API paths."""
        settings = _load(tmp_path, {"CNC_PLATES_MANAGER_URL": "http://plates.local:9000/"})
        endpoint = settings.endpoints()["clampingPlateManager"]

        assert endpoint.base_url == "http://plates.local:9000"
        assert endpoint.status_url == "http://plates.local:9000/api/health"
        assert endpoint.name == "Clamping Plate Manager"

    def test_dispatch_deadline_follows_timeout(self, tmp_path):
        """Test the total service deadline scales with the request timeout."""
        assert _load(tmp_path).dispatch_deadline == 20.0
        assert _load(tmp_path, {"CNC_SERVICE_TIMEOUT": "3"}).dispatch_deadline == 6.0


class TestSettingsFile:
    """Test settings.yaml."""

    def test_yaml_overrides(self, tmp_path):
        """Test values from settings.yaml."""
        (tmp_path / "settings.yaml").write_text(
            "debug: true\n"
            "service_timeout: 3\n"
            "validation_pause: 0\n"
            "namespace: shopFloor\n"
            "services:\n"
            "  toolManager: http://tools.local:8080\n"
        )
        settings = _load(tmp_path)

        assert settings.debug is True
        assert settings.service_timeout == 3.0
        assert settings.validation_pause == 0.0
        assert settings.namespace == "shopFloor"
        assert settings.service_urls["toolManager"] == "http://tools.local:8080"
        assert settings.service_urls["jsonScanner"] == "http://localhost:3001"

    def test_env_beats_yaml(self, tmp_path):
        """Test environment variables override the file."""
        (tmp_path / "settings.yaml").write_text("service_timeout: 3\n")
        settings = _load(tmp_path, {"CNC_SERVICE_TIMEOUT": "20"})
        assert settings.service_timeout == 20.0

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML is a ConfigError."""
        from cnc_dashboard.wizard.exceptions import ConfigError

        (tmp_path / "settings.yaml").write_text("services: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            _load(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        """Test a list document is rejected."""
        from cnc_dashboard.wizard.exceptions import ConfigError

        (tmp_path / "settings.yaml").write_text("- debug\n")
        with pytest.raises(ConfigError, match="mapping"):
            _load(tmp_path)

    def test_unknown_service(self, tmp_path):
        """Test unknown service ids are rejected."""
        from cnc_dashboard.wizard.exceptions import ConfigError

        (tmp_path / "settings.yaml").write_text("services:\n  printer: http://localhost:4000\n")
        with pytest.raises(ConfigError, match="Unknown service 'printer'"):
            _load(tmp_path)


class TestEnvironment:
    """Test environment variables."""

    @pytest.mark.parametrize("environ,key", [
        ({"CNC_SERVICE_TIMEOUT": "soon"}, "CNC_SERVICE_TIMEOUT"),
        ({"CNC_VALIDATION_PAUSE": "-1"}, "CNC_VALIDATION_PAUSE"),
        ({"CNC_DASHBOARD_DEBUG": "maybe"}, "CNC_DASHBOARD_DEBUG"),
        ({"CNC_JSON_SCANNER_URL": "localhost:3001"}, "CNC_JSON_SCANNER_URL"),
    ])
    def test_invalid_values(self, tmp_path, environ, key):
        """Test bad values name the offending variable."""
        from cnc_dashboard.wizard.exceptions import ConfigError

        with pytest.raises(ConfigError) as exc_info:
            _load(tmp_path, environ)
        assert exc_info.value.config_key == key

    def test_debug_flag(self, tmp_path):
        """Test boolean parsing."""
        assert _load(tmp_path, {"CNC_DASHBOARD_DEBUG": "yes"}).debug is True
        assert _load(tmp_path, {"CNC_DASHBOARD_DEBUG": "0"}).debug is False

    def test_home_directory(self, tmp_path):
        """Test CNC_DASHBOARD_HOME picks the state directory."""
        from cnc_dashboard.settings import load_settings

        home = tmp_path / "home"
        settings = load_settings(environ={"CNC_DASHBOARD_HOME": str(home)}, load_env_file=False)
        assert settings.state_dir == home
        assert settings.state_file == home / "state.json"

    def test_env_file(self, tmp_path, monkeypatch):
        """Test a .env file in the state directory is loaded."""
        from cnc_dashboard.settings import load_settings

        monkeypatch.setattr(os, "environ", {})
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CNC_SERVICE_TIMEOUT=7\n")

        settings = load_settings(state_dir=tmp_path)
        assert settings.service_timeout == 7.0
