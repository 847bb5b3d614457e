import logging
import os

from pydantic import BaseModel


LOGGER_NAME = "gpxkml"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_TRUE = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        logging.getLogger(LOGGER_NAME).warning("Ignoring invalid %s=%r, using %d", name, raw, default)
        return default


class Settings(BaseModel):
    log_level: str = "INFO"
    pretty: bool = False
    max_upload_bytes: int = 20 * 1024 * 1024
    link_store_size: int = 100
    # Optional CLI paths, same variables the old one-shot script read
    gpx_file: str | None = None
    kml_file: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("GPXKML_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            pretty=_env_bool("GPXKML_PRETTY"),
            max_upload_bytes=_env_int("GPXKML_MAX_UPLOAD_BYTES", 20 * 1024 * 1024),
            link_store_size=_env_int("GPXKML_LINK_STORE_SIZE", 100),
            gpx_file=os.getenv("GPX_FILE") or None,
            kml_file=os.getenv("KML_FILE") or None,
        )


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger once; later calls only adjust the level."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers and not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
