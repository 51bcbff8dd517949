from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Tuple

from .constants import DEFAULT_POLL_TIMEOUT, DEFAULT_SEND_INTERVAL, DEFAULT_TOTAL_TIMEOUT
from .message import MessageKind
from .peers import Address, Peer, PeerDirectory
from .scheduler import HeartbeatScheduler


class Transport(Protocol):
    def send(self, data: bytes, addr: Address) -> bool: ...

    def poll(self, timeout: float) -> Optional[Tuple[bytes, Address]]: ...


class BarrierState(enum.Enum):
    RUNNING = "running"
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"


class AckPolicy(enum.Enum):
    FIRST = "first"
    EVERY = "every"


@dataclass(slots=True)
class BarrierResult:
    state: BarrierState = BarrierState.RUNNING
    elapsed_s: float = 0.0
    heartbeats_sent: int = 0
    acks_sent: int = 0
    datagrams_received: int = 0
    datagrams_ignored: int = 0
    send_errors: int = 0
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is BarrierState.COMPLETE


@dataclass(slots=True)
class BarrierCoordinator:
    directory: PeerDirectory
    udp: Transport
    total_timeout: float = DEFAULT_TOTAL_TIMEOUT
    send_interval: float = DEFAULT_SEND_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    exit_on_ready: bool = False
    ack_policy: AckPolicy = AckPolicy.FIRST
    clock: Callable[[], float] = time.monotonic
    state: BarrierState = field(default=BarrierState.RUNNING, init=False)
    scheduler: HeartbeatScheduler = field(init=False)
    _stop: threading.Event = field(default_factory=threading.Event, init=False)

    def __post_init__(self) -> None:
        self.scheduler = HeartbeatScheduler(self.send_interval)

    def stop(self) -> None:
        """Ask the loop to finish at its next tick; safe from signal handlers and other threads."""
        self._stop.set()

    def run(self) -> BarrierResult:
        result = BarrierResult()
        start = self.clock()
        logging.info("I am %s; waiting on %d peer(s)", self.directory.me.hostname, len(self.directory) - 1)
        for peer in self.directory.remote():
            logging.debug("expecting messages from %s (%s:%d)", peer.hostname, *peer.address)

        self._check_complete()
        # nobody to serve after completion when the peer set is only ourselves
        linger = not self.exit_on_ready and len(self.directory) > 1
        while True:
            now = self.clock()
            if self.state is BarrierState.COMPLETE and (not linger or self._stop.is_set()):
                break
            if now - start >= self.total_timeout or self._stop.is_set():
                if self.state is BarrierState.RUNNING:
                    self.state = BarrierState.TIMED_OUT
                break

            if self.state is BarrierState.RUNNING:
                self._send_due(now, result)

            datagram = self.udp.poll(self.poll_timeout)
            if datagram is not None:
                result.datagrams_received += 1
                self._dispatch(datagram[0], datagram[1], result)

            self._check_complete()

        result.state = self.state
        result.elapsed_s = self.clock() - start
        result.missing = self.directory.missing()
        if self.state is BarrierState.TIMED_OUT:
            logging.warning(
                "Total timeout reached; still missing %s. Please run the program again.",
                ", ".join(result.missing) or "nothing",
            )
        return result

    def _send_due(self, now: float, result: BarrierResult) -> None:
        for peer in self.directory.remote():
            if self.scheduler.due_for_send(peer, now):
                self._send(peer, MessageKind.HEARTBEAT, result)
                self.scheduler.record_send(peer, now)

    def _send(self, peer: Peer, kind: MessageKind, result: BarrierResult) -> None:
        if not self.udp.send(kind.to_bytes(), peer.address):
            result.send_errors += 1
            return
        if kind is MessageKind.HEARTBEAT:
            result.heartbeats_sent += 1
        else:
            result.acks_sent += 1
        logging.debug("sent %s to %s", kind.name, peer.hostname)

    def _dispatch(self, raw: bytes, addr: Address, result: BarrierResult) -> None:
        peer = self.directory.lookup_by_sender(addr)
        if peer is None:
            result.datagrams_ignored += 1
            logging.debug("ignoring datagram from unknown sender %s:%d", addr[0], addr[1])
            return
        try:
            kind = MessageKind.from_bytes(raw)
        except ValueError as exc:
            result.datagrams_ignored += 1
            logging.debug("ignoring datagram from %s: %s", peer.hostname, exc)
            return

        if kind is MessageKind.HEARTBEAT:
            first = self.directory.mark_heartbeat_received(peer)
            if first:
                logging.info("received heartbeat from %s", peer.hostname)
            if first or self.ack_policy is AckPolicy.EVERY:
                self._send(peer, MessageKind.HEARTBEAT_ACK, result)
        elif self.directory.mark_ack_received(peer):
            logging.info("received ACK from %s", peer.hostname)

    def _check_complete(self) -> None:
        if self.state is BarrierState.RUNNING and self.directory.is_barrier_complete():
            self.state = BarrierState.COMPLETE
            logging.info("READY")
