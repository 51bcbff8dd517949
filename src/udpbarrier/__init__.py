"""UDP rendezvous barrier

Every peer in a fixed host list proves to every other peer that it is
reachable by trading HEARTBEAT / HEARTBEAT_ACK datagrams before a job starts.
- peer table and liveness flags are kept apart from the socket
- retransmission is a fixed-interval schedule, not a reliable channel
- the coordinator is a single-threaded loop driven by a bounded poll
"""

__all__ = []
