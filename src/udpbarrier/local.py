from __future__ import annotations

import threading

from .config import BarrierConfig
from .coordinator import BarrierCoordinator, BarrierResult
from .net import Impairment, UdpEndpoint
from .peers import Peer, PeerDirectory


def run_local_cluster(
    size: int,
    config: BarrierConfig,
    *,
    loss_rate: float = 0.0,
    delay_ms: int = 0,
) -> dict[str, BarrierResult]:
    """Run ``size`` coordinators on loopback, one thread and one socket each."""
    if size < 1:
        raise ValueError("cluster needs at least one peer")
    impair = Impairment(loss_rate=loss_rate, delay_ms=delay_ms)
    endpoints = [UdpEndpoint.listening("127.0.0.1", 0, impairment=impair) for _ in range(size)]
    names = [f"node{i + 1}" for i in range(size)]

    results: dict[str, BarrierResult] = {}
    threads = []
    try:
        for i, udp in enumerate(endpoints):
            peers = [Peer(name, ep.address) for name, ep in zip(names, endpoints)]
            coordinator = BarrierCoordinator(
                PeerDirectory(peers, i),
                udp,
                total_timeout=config.total_timeout,
                send_interval=config.send_interval,
                poll_timeout=config.poll_timeout,
                exit_on_ready=config.exit_on_ready,
                ack_policy=config.ack_policy,
            )

            def runner(name: str = names[i], c: BarrierCoordinator = coordinator) -> None:
                results[name] = c.run()

            t = threading.Thread(target=runner, name=names[i], daemon=True)
            threads.append(t)

        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=config.total_timeout + config.poll_timeout + 5.0)
    finally:
        for udp in endpoints:
            udp.close()

    return results
