"""Configuration loading from config.toml and env vars."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


def _default_config_path() -> Path:
    """Return the default config file path."""
    return Path.home() / ".config" / "metalcal" / "config.toml"


def _env(name: str, default: str) -> str:
    """Read an env var, dropping surrounding double quotes."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip('"')


@dataclass(frozen=True)
class AppSettings:
    """Application-wide settings.

    Loaded from config.toml and overridden by env vars.
    """

    database_path: Path = field(
        default_factory=lambda: Path("data") / "metalcal.db",
    )
    base_url: str = "http://localhost:3000"
    is_prod: bool = False
    headless: bool = True
    browser_data_dir: Path = field(
        default_factory=lambda: Path.cwd() / "browser_data",
    )


def load_settings(
    config_path: Path | None = None,
) -> AppSettings:
    """Load settings from config file and env vars.

    Priority: env vars > config.toml > defaults.

    Args:
        config_path: Path to config.toml. Uses default
            (~/.config/metalcal/config.toml) if None.

    Returns:
        Frozen AppSettings instance.
    """
    if config_path is None:
        config_path = _default_config_path()

    file_cfg: dict[str, dict[str, object]] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            file_cfg = tomllib.load(f)

    database_cfg = file_cfg.get("database", {})
    app_cfg = file_cfg.get("app", {})
    browser_cfg = file_cfg.get("browser", {})

    database_path = _env(
        "DATABASE_URL",
        str(database_cfg.get("path", Path("data") / "metalcal.db")),
    )
    base_url = _env(
        "BASE_URL",
        str(app_cfg.get("base_url", "http://localhost:3000")),
    )

    is_prod_raw = app_cfg.get("is_prod", False)
    is_prod = is_prod_raw if isinstance(is_prod_raw, bool) else False
    if "IS_PROD" in os.environ:
        is_prod = _env("IS_PROD", "false").lower() == "true"

    headless_raw = browser_cfg.get("headless", True)
    headless = headless_raw if isinstance(headless_raw, bool) else True

    data_dir_raw = browser_cfg.get("data_dir")
    browser_data_dir = (
        Path(os.path.expanduser(str(data_dir_raw)))
        if data_dir_raw
        else Path.cwd() / "browser_data"
    )

    return AppSettings(
        database_path=Path(os.path.expanduser(database_path)),
        base_url=base_url,
        is_prod=is_prod,
        headless=headless,
        browser_data_dir=browser_data_dir,
    )
