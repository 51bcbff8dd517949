from __future__ import annotations

import enum

from .constants import ACK_PAYLOAD, HEARTBEAT_PAYLOAD


class MessageKind(enum.Enum):
    HEARTBEAT = HEARTBEAT_PAYLOAD
    HEARTBEAT_ACK = ACK_PAYLOAD

    def to_bytes(self) -> bytes:
        return self.value

    @staticmethod
    def from_bytes(raw: bytes) -> "MessageKind":
        # exact literal match: no framing, no trailing newline or NUL
        try:
            return MessageKind(bytes(raw))
        except ValueError:
            raise ValueError(f"unrecognized payload: {bytes(raw)[:32]!r}") from None
