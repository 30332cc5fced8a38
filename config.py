# config.py
import os
from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Project-wide settings (Pydantic V2).
    Values are read from the .env file and fall back to the defaults below.
    """

    # Project Info
    PROJECT_NAME: str = "Ride_Analysis"
    VERSION: str = "1.0.0"

    # Storage Settings
    DATA_ROOT: str = "data"
    LOG_DIR: str = "./logs"

    # Analysis Settings
    DEFAULT_SAMPLE_RATE: float = 1600.0  # portable vibration meter default (Hz)
    DISPLAY_MAX_POINTS: int = 8000
    FFT_WINDOW_S: float = 4.0
    ISO_LOW_PASS_HZ: float = 10.0  # GB/T 24474 weighting preset
    A95_WINDOW_S: float = 1.0

    # .env file loading
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# singleton instance
settings = Settings()

# create output directories at import time
os.makedirs(settings.LOG_DIR, exist_ok=True)


def configure_logging(name: str):
    """Adds a rotating file sink under LOG_DIR for a script run."""
    logger.add(
        os.path.join(settings.LOG_DIR, f"{name}.log"),
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
    )
