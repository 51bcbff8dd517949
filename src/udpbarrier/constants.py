from __future__ import annotations

HEARTBEAT_PAYLOAD = b"HEARTBEAT"
ACK_PAYLOAD = b"HEARTBEAT_ACK"

MAX_DATAGRAM = 1024

DEFAULT_PORT = 8888
DEFAULT_TOTAL_TIMEOUT = 120.0
DEFAULT_SEND_INTERVAL = 2.0
DEFAULT_POLL_TIMEOUT = 1.0
DEFAULT_MAX_HOSTS = 10

EXIT_COMPLETE = 0
EXIT_TIMED_OUT = 1
EXIT_STARTUP_FAILURE = 2
