"""Configuration management for Assetree.

Reads configuration from ~/.config/assetree.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
import tomllib
import tomli_w

HISTORY_RANGES = ("1M", "3M", "1Y", "ALL")


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    archive_enabled: bool
    archive_dir: Path
    enable_reset: bool = False
    currency_symbol: str = "¥"
    history_range: str = "1Y"

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "assetree"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="assetree.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            archive_enabled=True,
            archive_dir=base_dir / "archives",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "assetree.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def get_seed_dir() -> Path:
    """Get the path to the bundled seed data directory."""
    return Path(__file__).parent / "db" / "seed"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.

    Raises:
        ValueError: If display.history_range is not a known range.
    """
    config_path = get_config_path()

    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    base_dir = Path(data.get("base_dir", Path.home() / "data" / "assetree"))
    enable_reset = data.get("enable_reset", False)

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "assetree.db")

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    archive_config = data.get("archive", {})
    archive_enabled = archive_config.get("enabled", True)
    archive_dir = Path(archive_config.get("archive_dir", base_dir / "archives"))

    display_config = data.get("display", {})
    currency_symbol = display_config.get("currency_symbol", "¥")
    history_range = display_config.get("history_range", "1Y")
    if history_range not in HISTORY_RANGES:
        raise ValueError(
            f"Invalid display.history_range '{history_range}', "
            f"expected one of {', '.join(HISTORY_RANGES)}"
        )

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        archive_enabled=archive_enabled,
        archive_dir=archive_dir,
        enable_reset=enable_reset,
        currency_symbol=currency_symbol,
        history_range=history_range,
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "enable_reset": config.enable_reset,
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "archive": {
            "enabled": config.archive_enabled,
            "archive_dir": str(config.archive_dir),
        },
        "display": {
            "currency_symbol": config.currency_symbol,
            "history_range": config.history_range,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
