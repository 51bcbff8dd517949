from __future__ import annotations

from udpbarrier.config import BarrierConfig
from udpbarrier.coordinator import AckPolicy, BarrierState
from udpbarrier.local import run_local_cluster


def fast(**kwargs):
    kwargs.setdefault("total_timeout", 10.0)
    return BarrierConfig(send_interval=0.1, poll_timeout=0.05, **kwargs)


def test_lossless_cluster_completes():
    results = run_local_cluster(4, fast(exit_on_ready=True))
    assert sorted(results) == ["node1", "node2", "node3", "node4"]
    for r in results.values():
        assert r.state is BarrierState.COMPLETE
        assert r.missing == []
        assert r.elapsed_s < 10.0


def test_cluster_lingers_until_timeout():
    results = run_local_cluster(3, fast(total_timeout=1.0, ack_policy=AckPolicy.EVERY))
    for r in results.values():
        assert r.state is BarrierState.COMPLETE
        assert r.elapsed_s >= 1.0


def test_single_node_cluster():
    results = run_local_cluster(1, fast())
    assert results["node1"].state is BarrierState.COMPLETE
