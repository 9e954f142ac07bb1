"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

from seerial.core.models import Parity, SessionConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with SEERIAL_ (e.g., SEERIAL_SERIAL_PORT).
    """

    serial_port: str = "/dev/ttyUSB0"
    serial_baud: int = 9600
    serial_data_bits: int = 8
    serial_stop_bits: int = 1
    serial_parity: Parity = Parity.NONE
    auto_open: bool = True
    receive_buffer_size: int = 256
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="SEERIAL_")

    def session_config(self) -> SessionConfig:
        """Build the link settings for the gateway's session.

        Raises:
            pydantic.ValidationError: If the serial settings are out of range
        """
        return SessionConfig(
            link_address=self.serial_port,
            baud_rate=self.serial_baud,
            data_bits=self.serial_data_bits,
            stop_bits=self.serial_stop_bits,
            parity=self.serial_parity,
        )


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
