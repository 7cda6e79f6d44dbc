"""Configuration settings for a DGR session, resolved from the environment."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ValidationError, field_validator

from common.constants import (
    ENV_FIRST_RECEIVE_TIMEOUT,
    ENV_MASTER_DEST_IP,
    ENV_MASTER_DEST_PORT,
    ENV_MAX_PACKET_BYTES,
    ENV_MAX_RECORDS,
    ENV_MODE,
    ENV_SLAVE_LISTEN_PORT,
    ENV_STALENESS_WINDOW,
    FIRST_RECEIVE_TIMEOUT_SECONDS,
    MAX_PACKET_BYTES,
    MAX_RECORDS,
    MODE_MASTER,
    MODE_SLAVE,
    STALENESS_WINDOW_SECONDS,
)
from dgr.exceptions import ConfigurationError


class DGRSettings(BaseModel):
    """Settings for one process. ``mode`` other than master/slave disables DGR."""
    mode: Optional[str] = None
    master_dest_ip: Optional[str] = None
    master_dest_port: Optional[int] = None
    slave_listen_port: Optional[int] = None
    first_receive_timeout: float = FIRST_RECEIVE_TIMEOUT_SECONDS
    staleness_window: float = STALENESS_WINDOW_SECONDS
    max_records: int = MAX_RECORDS
    max_packet_bytes: int = MAX_PACKET_BYTES

    @field_validator("master_dest_port")
    @classmethod
    def check_dest_port(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not 1 <= value <= 65535:
            raise ValueError(f"destination port {value} is out of range")
        return value

    @field_validator("slave_listen_port")
    @classmethod
    def check_listen_port(cls, value: Optional[int]) -> Optional[int]:
        # 0 binds an ephemeral port
        if value is not None and not 0 <= value <= 65535:
            raise ValueError(f"listen port {value} is out of range")
        return value

    @field_validator("first_receive_timeout", "staleness_window", "max_records", "max_packet_bytes")
    @classmethod
    def check_positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def is_master(self) -> bool:
        return self.mode == MODE_MASTER

    @property
    def is_slave(self) -> bool:
        return self.mode == MODE_SLAVE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DGRSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated settings

        Raises:
            ConfigurationError: If a variable is present but invalid
        """
        if environ is None:
            environ = os.environ

        values = {
            "mode": environ.get(ENV_MODE),
            "master_dest_ip": environ.get(ENV_MASTER_DEST_IP),
            "master_dest_port": environ.get(ENV_MASTER_DEST_PORT),
            "slave_listen_port": environ.get(ENV_SLAVE_LISTEN_PORT),
            "first_receive_timeout": environ.get(ENV_FIRST_RECEIVE_TIMEOUT),
            "staleness_window": environ.get(ENV_STALENESS_WINDOW),
            "max_records": environ.get(ENV_MAX_RECORDS),
            "max_packet_bytes": environ.get(ENV_MAX_PACKET_BYTES),
        }
        values = {key: value for key, value in values.items() if value not in (None, "")}

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid DGR configuration: {e}") from e
