from __future__ import annotations

import logging
import random
import socket
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import MAX_DATAGRAM


@dataclass(frozen=True, slots=True)
class Impairment:
    loss_rate: float = 0.0
    delay_ms: int = 0

    def should_drop(self) -> bool:
        return self.loss_rate > 0 and random.random() < self.loss_rate

    def sleep_if_needed(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)


class UdpEndpoint:
    """One IPv4 datagram socket, shared for sending to and hearing from every peer."""

    def __init__(self, sock: socket.socket, impairment: Impairment | None = None):
        self.sock = sock
        self.impairment = impairment or Impairment()

    @classmethod
    def listening(
        cls,
        host: str,
        port: int,
        impairment: Impairment | None = None,
    ) -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((host, port))
        except OSError:
            sock.close()
            raise
        return cls(sock, impairment)

    @property
    def address(self) -> Tuple[str, int]:
        return self.sock.getsockname()

    def sendto(self, data: bytes, addr: Tuple[str, int]) -> None:
        if self.impairment.should_drop():
            logging.debug("DROPPED outbound %d bytes to %s:%d", len(data), addr[0], addr[1])
            return
        self.impairment.sleep_if_needed()
        self.sock.sendto(data, addr)

    def send(self, data: bytes, addr: Tuple[str, int]) -> bool:
        """Best-effort send; errors are logged and left to the next retransmission."""
        try:
            self.sendto(data, addr)
        except OSError as exc:
            logging.warning("sendto %s:%d failed: %s", addr[0], addr[1], exc)
            return False
        return True

    def poll(self, timeout: float) -> Optional[Tuple[bytes, Tuple[str, int]]]:
        """Wait up to ``timeout`` seconds for one datagram."""
        try:
            self.sock.settimeout(timeout)
            return self.sock.recvfrom(MAX_DATAGRAM)
        except socket.timeout:
            return None
        except OSError as exc:
            logging.warning("recvfrom failed: %s", exc)
            return None

    def close(self) -> None:
        self.sock.close()
