"""
Settings loaded from the environment and an optional .env file.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

from .errors import ConfigurationError


@dataclass
class Settings:
    """Runtime settings; CLI flags override these."""

    log_dir: Path = Path( "logs" );
    backup_dir: Path = Path( "backup" );
    min_duration_ms: int = 100;
    encoding: str = "utf-8-sig";


def _int_setting( name: str, default: int, minimum: int = 0 ) -> int:
    raw = os.getenv( name );
    if raw is None or raw.strip() == "":
        return default;

    try:
        value = int( raw );
    except ValueError:
        raise ConfigurationError( f"{name} must be an integer, got: {raw!r}" ) from None;

    if value < minimum:
        raise ConfigurationError( f"{name} must be at least {minimum}, got: {value}" );
    return value;


def load_settings( env_file: Path = None ) -> Settings:
    """
    Build settings from environment variables.

    Variables: WAVESYNC_LOG_DIR, WAVESYNC_BACKUP_DIR,
    WAVESYNC_MIN_DURATION_MS, WAVESYNC_ENCODING. Values already set in the
    environment win over the .env file.

    Raises:
        ConfigurationError: If a numeric setting is not a valid integer
    """
    env_file = Path( env_file ) if env_file else Path( ".env" );
    if env_file.exists():
        load_dotenv( env_file );

    return Settings(
        log_dir=Path( os.getenv( "WAVESYNC_LOG_DIR" ) or "logs" ),
        backup_dir=Path( os.getenv( "WAVESYNC_BACKUP_DIR" ) or "backup" ),
        min_duration_ms=_int_setting( "WAVESYNC_MIN_DURATION_MS", 100 ),
        encoding=os.getenv( "WAVESYNC_ENCODING" ) or "utf-8-sig"
    );
