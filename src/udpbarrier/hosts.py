from __future__ import annotations

import logging
import socket
from typing import Iterable, Optional, Tuple

from .constants import DEFAULT_MAX_HOSTS
from .peers import Address, Peer, PeerDirectory


class StartupError(Exception):
    """A condition that must stop the process before the barrier loop starts."""


def read_hosts(path: str, max_hosts: int = DEFAULT_MAX_HOSTS) -> list[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as exc:
        raise StartupError(f"unable to open hosts file {path!r}: {exc}") from exc

    entries: list[str] = []
    for line in lines:
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        if entry in entries:
            logging.warning("duplicate host entry %r ignored", entry)
            continue
        if len(entries) >= max_hosts:
            logging.warning("maximum number of hosts (%d) reached; ignoring the rest", max_hosts)
            break
        entries.append(entry)
    return entries


def split_entry(entry: str, default_port: int) -> Tuple[str, int]:
    """``host`` or ``host:port``."""
    host, sep, port = entry.rpartition(":")
    if not sep:
        return entry, default_port
    if not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise StartupError(f"malformed host entry {entry!r}")
    return host, int(port)


def resolve(host: str, port: int) -> Address:
    try:
        infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)
    except socket.gaierror as exc:
        raise StartupError(f"unable to resolve {host!r}: {exc}") from exc
    if not infos:
        raise StartupError(f"no IPv4 address for {host!r}")
    ip, resolved_port = infos[0][4][:2]
    return ip, resolved_port


def local_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError as exc:
        raise StartupError(f"error getting hostname: {exc}") from exc


def find_self(entries: Iterable[str], hostname: str, default_port: int) -> int:
    for i, entry in enumerate(entries):
        if entry == hostname or split_entry(entry, default_port)[0] == hostname:
            return i
    raise StartupError(f"current host {hostname} not found in hosts file")


def build_directory(
    entries: list[str],
    default_port: int,
    hostname: Optional[str] = None,
) -> PeerDirectory:
    """Pick out self, then resolve every entry once; any failure is fatal.

    Entries resolving to an address already taken (by self or an earlier
    entry) are dropped, since only the first of them could ever be matched.
    """
    if hostname is None:
        hostname = local_hostname()
    self_index = find_self(entries, hostname, default_port)

    resolved = [resolve(*split_entry(entry, default_port)) for entry in entries]
    taken = {resolved[self_index]}
    peers = []
    me = 0
    for i, (entry, address) in enumerate(zip(entries, resolved)):
        if i == self_index:
            me = len(peers)
        elif address in taken:
            logging.warning("host entry %r resolves to an address already listed (%s:%d); ignored", entry, *address)
            continue
        taken.add(address)
        peers.append(Peer(hostname=entry, address=address))
    return PeerDirectory(peers, me)
