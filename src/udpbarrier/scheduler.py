from __future__ import annotations

from dataclasses import dataclass, field

from .constants import DEFAULT_SEND_INTERVAL
from .peers import Peer


@dataclass(slots=True)
class HeartbeatScheduler:
    """Fixed-interval retransmission, tracked per peer.

    A peer is due when its ACK has not arrived yet and either nothing has been
    sent to it or ``interval`` seconds have passed since the last send. Each
    peer has its own timer, so a silent peer never delays the others.
    """

    interval: float = DEFAULT_SEND_INTERVAL
    last_sent: dict[str, float] = field(default_factory=dict)

    def due_for_send(self, peer: Peer, now: float) -> bool:
        if peer.ack_received:
            return False
        last = self.last_sent.get(peer.hostname)
        return last is None or now - last >= self.interval

    def record_send(self, peer: Peer, now: float) -> None:
        self.last_sent[peer.hostname] = now
