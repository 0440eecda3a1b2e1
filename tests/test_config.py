"""Tests for configuration loading."""
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Keep real environment / .env secrets out of config tests."""
    from filmsync import config

    for var in config.ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


def test_load_config_without_file_returns_defaults(clean_env):
    from filmsync.config import load_config

    with tempfile.TemporaryDirectory() as tmpdir:
        config = load_config(Path(tmpdir) / "missing.yaml")

    assert config["wordpress"]["post_type"] == "project"
    assert config["images"]["max_width"] == 1920
    assert config["edition"]["prefix"] == "Excéntrico"


def test_load_config_merges_over_defaults(clean_env):
    from filmsync.config import load_config

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("wordpress:\n  base_url: https://example.org\nimages:\n  quality: 70\n", encoding="utf-8")

        config = load_config(path)

    assert config["wordpress"]["base_url"] == "https://example.org"
    assert config["wordpress"]["category_taxonomy"] == "project_category"
    assert config["images"]["quality"] == 70
    assert config["images"]["max_height"] == 1080


def test_environment_overrides_file(clean_env):
    from filmsync.config import load_config

    clean_env.setenv("WORDPRESS_APP_PASSWORD", "abcd efgh")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("wordpress:\n  application_password: from-file\n", encoding="utf-8")

        config = load_config(path)

    assert config["wordpress"]["application_password"] == "abcd efgh"


def test_invalid_yaml_raises_config_error(clean_env):
    from filmsync.config import load_config
    from filmsync.exceptions import ConfigError

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("wordpress: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)


def _valid_config(tmpdir: str) -> dict:
    from filmsync.config import DEFAULT_CONFIG, _deep_merge

    credentials = Path(tmpdir) / "credentials.json"
    credentials.write_text("{}", encoding="utf-8")
    return _deep_merge(DEFAULT_CONFIG, {
        "google": {"credentials_path": str(credentials), "sheet_id": "sheet-1"},
        "wordpress": {"base_url": "https://example.org", "username": "editor", "application_password": "pw"},
    })


def test_validate_config_accepts_complete_config():
    from filmsync.config import validate_config

    with tempfile.TemporaryDirectory() as tmpdir:
        validate_config(_valid_config(tmpdir))


@pytest.mark.parametrize("section,key", [
    ("wordpress", "base_url"),
    ("wordpress", "username"),
    ("wordpress", "application_password"),
    ("google", "sheet_id"),
])
def test_validate_config_rejects_missing_settings(section, key):
    from filmsync.config import validate_config
    from filmsync.exceptions import ConfigError

    with tempfile.TemporaryDirectory() as tmpdir:
        config = _valid_config(tmpdir)
        config[section][key] = ""

        with pytest.raises(ConfigError):
            validate_config(config)


def test_validate_config_rejects_missing_credentials_file():
    from filmsync.config import validate_config
    from filmsync.exceptions import ConfigError

    with tempfile.TemporaryDirectory() as tmpdir:
        config = _valid_config(tmpdir)
        config["google"]["credentials_path"] = str(Path(tmpdir) / "nope.json")

        with pytest.raises(ConfigError, match="credentials"):
            validate_config(config)


def test_write_default_config_refuses_to_overwrite():
    from filmsync.config import write_default_config
    from filmsync.exceptions import ConfigError

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config" / "config.yaml"

        assert write_default_config(path) == path
        assert "wordpress:" in path.read_text(encoding="utf-8")

        with pytest.raises(ConfigError):
            write_default_config(path)

        write_default_config(path, force=True)


def test_default_config_template_parses_to_defaults(clean_env):
    """The starter file should load without errors."""
    from filmsync.config import load_config, write_default_config

    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_default_config(Path(tmpdir) / "config.yaml")
        config = load_config(path)

    assert config["storage"]["films_dir"] == "films"
    assert config["listing"]["dir"] == "metadata"
