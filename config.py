"""Configuration management for Curio.

Reads configuration from ~/.config/curio.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import List
import tomllib
import tomli_w
from models.view import SortKey, SortOrder

SORT_KEYS = [key.value for key in SortKey]
SORT_ORDERS = [order.value for order in SortOrder]


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    system_categories: List[str] = field(default_factory=lambda: ["Favorites"])
    default_sort: str = "name"
    default_order: str = "asc"

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "curio"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="curio.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "curio.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.

    Raises:
        ValueError: If the default sort key or order is not recognised.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return parse_config(data)


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data, filling in defaults.

    Args:
        data: Dictionary as returned by tomllib.

    Returns:
        Config object.
    """
    defaults = Config.default()
    base_dir = Path(data.get("base_dir", defaults.base_dir))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", defaults.db_filename)

    log_config = data.get("logging", {})
    log_level = log_config.get("level", defaults.log_level)
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    category_config = data.get("categories", {})
    system_categories = list(
        category_config.get("system_categories", defaults.system_categories)
    )
    default_sort = category_config.get("default_sort", defaults.default_sort)
    default_order = category_config.get("default_order", defaults.default_order)

    if default_sort not in SORT_KEYS:
        raise ValueError(
            f"Invalid default_sort '{default_sort}'. Must be one of: {', '.join(SORT_KEYS)}"
        )
    if default_order not in SORT_ORDERS:
        raise ValueError(
            f"Invalid default_order '{default_order}'. Must be one of: {', '.join(SORT_ORDERS)}"
        )

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        system_categories=system_categories,
        default_sort=default_sort,
        default_order=default_order,
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "categories": {
            "system_categories": list(config.system_categories),
            "default_sort": config.default_sort,
            "default_order": config.default_order,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
