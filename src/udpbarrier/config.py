from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_MAX_HOSTS,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_SEND_INTERVAL,
    DEFAULT_TOTAL_TIMEOUT,
)
from .coordinator import AckPolicy


@dataclass(frozen=True, slots=True)
class BarrierConfig:
    hosts_file: str = ""
    port: int = DEFAULT_PORT
    total_timeout: float = DEFAULT_TOTAL_TIMEOUT
    send_interval: float = DEFAULT_SEND_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    max_hosts: int = DEFAULT_MAX_HOSTS
    hostname: Optional[str] = None
    bind_host: str = "0.0.0.0"
    exit_on_ready: bool = False
    ack_policy: AckPolicy = AckPolicy.FIRST

    def __post_init__(self) -> None:
        for name in ("total_timeout", "send_interval", "poll_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.max_hosts < 1:
            raise ValueError(f"max_hosts must be at least 1, got {self.max_hosts}")
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
