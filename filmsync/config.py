"""Configuration loading for filmsync.

Settings live in ``config/config.yaml`` under the project directory and are
deep-merged over ``DEFAULT_CONFIG``. Secrets can also come from the
environment (or a ``.env`` file).
"""
import copy
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from filmsync.exceptions import ConfigError

DEFAULT_CONFIG = {
    "google": {
        "credentials_path": "credentials.json",
        "sheet_id": "",
        "sheet_range": "TODO!A:ZZ",
    },
    "wordpress": {
        "base_url": "",
        "username": "",
        "application_password": "",
        "post_type": "project",
        "category_taxonomy": "project_category",
        "timeout": 60,
    },
    "images": {
        "max_width": 1920,
        "max_height": 1080,
        "quality": 85,
    },
    "storage": {
        "database_path": "data/filmsync.db",
        "films_dir": "films",
    },
    "templates": {"dir": "templates"},
    "listing": {"dir": "metadata"},
    "edition": {"prefix": "Excéntrico"},
    "logging": {"retention_days": 30},
}

# env var -> (section, key)
ENV_OVERRIDES = {
    "GOOGLE_CREDENTIALS_PATH": ("google", "credentials_path"),
    "GOOGLE_SHEET_ID": ("google", "sheet_id"),
    "WORDPRESS_BASE_URL": ("wordpress", "base_url"),
    "WORDPRESS_USERNAME": ("wordpress", "username"),
    "WORDPRESS_APP_PASSWORD": ("wordpress", "application_password"),
}

DEFAULT_CONFIG_TEMPLATE = """\
# filmsync configuration
google:
  credentials_path: credentials.json   # service account JSON
  sheet_id: ""                         # spreadsheet holding one row per film
  sheet_range: "TODO!A:ZZ"

wordpress:
  base_url: https://your-wordpress-site.com
  username: your-username
  application_password: ""             # or WORDPRESS_APP_PASSWORD in .env
  post_type: project
  category_taxonomy: project_category

images:
  max_width: 1920
  max_height: 1080
  quality: 85

storage:
  database_path: data/filmsync.db
  films_dir: films

templates:
  dir: templates                       # <year>.json style presets

listing:
  dir: metadata                        # <year>.json cities and dates

edition:
  prefix: Excéntrico

logging:
  retention_days: 30
"""


def get_project_dir() -> Path:
    """Directory config, data and logs are resolved against."""
    return Path(os.getenv("FILMSYNC_HOME", Path.cwd()))


def get_config_path() -> Path:
    return get_project_dir() / "config" / "config.yaml"


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict:
    """Load config YAML, merge over defaults and apply environment overrides.

    A missing file is not an error: defaults plus environment are used.
    """
    load_dotenv()

    config_path = Path(path) if path else get_config_path()
    loaded = {}
    if config_path.exists():
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path} must contain a mapping at top level")

    config = _deep_merge(DEFAULT_CONFIG, loaded)

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            config[section][key] = value

    return config


def resolve_path(value: str | Path) -> Path:
    """Resolve a configured path relative to the project directory."""
    path = Path(value)
    if not path.is_absolute():
        path = get_project_dir() / path
    return path


def get_films_dir(config: dict) -> Path:
    return resolve_path(config["storage"]["films_dir"])


def get_database_path(config: dict) -> Path:
    return resolve_path(config["storage"]["database_path"])


def get_credentials_path(config: dict) -> Path:
    return resolve_path(config["google"]["credentials_path"])


def validate_config(config: dict) -> None:
    """Check settings required for a sync run."""
    wp = config["wordpress"]
    if not wp.get("base_url"):
        raise ConfigError("wordpress.base_url is required in configuration")
    if not wp.get("username"):
        raise ConfigError("wordpress.username is required in configuration")
    if not wp.get("application_password"):
        raise ConfigError(
            "wordpress.application_password is required. Set it in config.yaml or WORDPRESS_APP_PASSWORD."
        )
    if not config["google"].get("sheet_id"):
        raise ConfigError("google.sheet_id is required in configuration")

    credentials = get_credentials_path(config)
    if not credentials.exists():
        raise ConfigError(f"Google credentials file not found at {credentials}")

    images = config["images"]
    if images["max_width"] <= 0 or images["max_height"] <= 0:
        raise ConfigError("images.max_width and images.max_height must be positive")
    if not 1 <= images["quality"] <= 100:
        raise ConfigError("images.quality must be between 1 and 100")


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    """Write a starter config.yaml. Returns the path written."""
    config_path = Path(path) if path else get_config_path()
    if config_path.exists() and not force:
        raise ConfigError(f"{config_path} already exists (use --force to overwrite)")
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    return config_path
