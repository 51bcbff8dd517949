from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

Address = Tuple[str, int]


@dataclass(slots=True)
class Peer:
    hostname: str
    address: Address
    heartbeat_received: bool = False
    ack_received: bool = False

    @property
    def done(self) -> bool:
        return self.heartbeat_received and self.ack_received


class PeerDirectory:
    """Ordered, fixed peer set plus the liveness flags of every remote peer.

    The entry at ``self_index`` is the running process. It is never matched
    against senders, never sent to and never counted towards completion.
    Flags only ever go from False to True.
    """

    def __init__(self, peers: Sequence[Peer], self_index: int):
        if not 0 <= self_index < len(peers):
            raise ValueError(f"self index {self_index} out of range for {len(peers)} peers")
        self._peers: Tuple[Peer, ...] = tuple(peers)
        self.self_index = self_index

    def __len__(self) -> int:
        return len(self._peers)

    @property
    def me(self) -> Peer:
        return self._peers[self.self_index]

    def remote(self) -> Iterator[Peer]:
        for i, peer in enumerate(self._peers):
            if i != self.self_index:
                yield peer

    def lookup_by_sender(self, addr: Address) -> Optional[Peer]:
        # first configured match wins when two entries resolve to one address
        for peer in self.remote():
            if peer.address == addr:
                return peer
        return None

    def mark_heartbeat_received(self, peer: Peer) -> bool:
        """Set the flag; returns True only on the first transition."""
        if peer.heartbeat_received:
            return False
        peer.heartbeat_received = True
        return True

    def mark_ack_received(self, peer: Peer) -> bool:
        """Set the flag; returns True only on the first transition."""
        if peer.ack_received:
            return False
        peer.ack_received = True
        return True

    def is_barrier_complete(self) -> bool:
        return all(peer.done for peer in self.remote())

    def missing(self) -> list[str]:
        return [peer.hostname for peer in self.remote() if not peer.done]
