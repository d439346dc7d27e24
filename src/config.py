"""Configuration loading for the feed generator."""
import copy
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

MISSING_DATE_POLICIES = ("omit", "generation", "skip")

DEFAULT_CONFIG = {
    "site": {
        "title": "Aron Beal",
        "site_url": "https://aronbeal.info",
        "feed_url": "https://aronbeal.info/feed.xml",
        "description": "Aron Beal",
        "language": "en",
    },
    "paths": {
        "pages_dir": "pages",
        "posts_dir": "posts",
        "output": "public/feed.xml",
    },
    "feed": {
        # What to do with posts that have no date: omit | generation | skip
        "missing_date": "omit",
        # When set, item links become link_base + path relative to pages_dir
        "link_base": None,
    },
    "logging": {
        "retention_days": 30,
    },
    "footer": {
        "author": "Aron Beal",
        "feed_link": "/feed.xml",
        "twitter": "https://twitter.com/aronbeal",
        "github": "https://github.com/aronbeal",
        "email": "aron.beal.biz@gmail.com",
    },
}


def get_project_dir() -> Path:
    """Return the project root (the directory holding pages/ and public/)."""
    return Path(__file__).parent.parent


def get_config_path() -> Path:
    return get_project_dir() / "config" / "config.yaml"


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict:
    """Load config.yaml merged over the defaults.

    Args:
        path: Config file to read (default: config/config.yaml in the project dir).
            A missing file yields the defaults.

    Raises:
        ValueError: the file is not a YAML mapping or names an unknown missing_date policy
    """
    path = path or get_config_path()
    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(loaded).__name__}")

    config = _merge(DEFAULT_CONFIG, loaded)
    policy = config["feed"]["missing_date"]
    if policy not in MISSING_DATE_POLICIES:
        raise ValueError(
            f"feed.missing_date must be one of {', '.join(MISSING_DATE_POLICIES)}, got {policy!r}"
        )
    return config


def get_pages_dir(config: dict, root: Path | None = None) -> Path:
    root = root or get_project_dir()
    return (root / config["paths"]["pages_dir"]).absolute()


def get_posts_root(config: dict, root: Path | None = None) -> Path:
    """Absolute path of the posts directory that gets walked."""
    return get_pages_dir(config, root) / config["paths"]["posts_dir"]


def get_output_path(config: dict, root: Path | None = None) -> Path:
    root = root or get_project_dir()
    return (root / config["paths"]["output"]).absolute()
