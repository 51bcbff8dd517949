from __future__ import annotations

import argparse
import json
import logging
import signal

from .config import BarrierConfig
from .constants import (
    DEFAULT_MAX_HOSTS,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_SEND_INTERVAL,
    DEFAULT_TOTAL_TIMEOUT,
    EXIT_COMPLETE,
    EXIT_STARTUP_FAILURE,
    EXIT_TIMED_OUT,
)
from .coordinator import AckPolicy, BarrierCoordinator, BarrierResult
from .hosts import StartupError, build_directory, read_hosts
from .local import run_local_cluster
from .net import UdpEndpoint


def summary(result: BarrierResult) -> dict:
    return {
        "state": result.state.value,
        "seconds": round(result.elapsed_s, 3),
        "heartbeats_sent": result.heartbeats_sent,
        "acks_sent": result.acks_sent,
        "received": result.datagrams_received,
        "ignored": result.datagrams_ignored,
        "send_errors": result.send_errors,
        "missing": result.missing,
    }


def config_from_args(args: argparse.Namespace) -> BarrierConfig:
    return BarrierConfig(
        hosts_file=getattr(args, "hosts_file", ""),
        port=getattr(args, "port", DEFAULT_PORT),
        total_timeout=args.timeout,
        send_interval=args.send_interval,
        poll_timeout=args.poll_timeout,
        max_hosts=getattr(args, "max_hosts", DEFAULT_MAX_HOSTS),
        hostname=getattr(args, "hostname", None),
        bind_host=getattr(args, "bind_host", "0.0.0.0"),
        exit_on_ready=args.exit_on_ready,
        ack_policy=AckPolicy(args.ack_policy),
    )


def cmd_run(args: argparse.Namespace) -> int:
    cfg: BarrierConfig = args.config
    logging.debug("using hosts file: %s", cfg.hosts_file)
    try:
        entries = read_hosts(cfg.hosts_file, cfg.max_hosts)
        directory = build_directory(entries, cfg.port, cfg.hostname)
    except StartupError as exc:
        logging.error("%s", exc)
        return EXIT_STARTUP_FAILURE

    try:
        udp = UdpEndpoint.listening(cfg.bind_host, directory.me.address[1])
    except OSError as exc:
        logging.error("error creating socket on %s:%d: %s", cfg.bind_host, directory.me.address[1], exc)
        return EXIT_STARTUP_FAILURE

    coordinator = BarrierCoordinator(
        directory,
        udp,
        total_timeout=cfg.total_timeout,
        send_interval=cfg.send_interval,
        poll_timeout=cfg.poll_timeout,
        exit_on_ready=cfg.exit_on_ready,
        ack_policy=cfg.ack_policy,
    )

    def on_signal(signum, frame):
        logging.info("received signal %d; stopping", signum)
        coordinator.stop()

    previous = {sig: signal.signal(sig, on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        result = coordinator.run()
    finally:
        udp.close()
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if args.json:
        print(json.dumps(summary(result), indent=2))
    return EXIT_COMPLETE if result.ok else EXIT_TIMED_OUT


def cmd_local(args: argparse.Namespace) -> int:
    results = run_local_cluster(
        args.peers,
        args.config,
        loss_rate=args.loss_rate,
        delay_ms=args.delay_ms,
    )
    payload = {name: summary(r) for name, r in sorted(results.items())}
    print(json.dumps(payload, indent=2) if args.json else payload)
    ok = len(results) == args.peers and all(r.ok for r in results.values())
    return EXIT_COMPLETE if ok else EXIT_TIMED_OUT


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="udpbarrier", description="UDP heartbeat rendezvous barrier.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    p.add_argument("-d", "--debug", action="store_true", help="shorthand for --log-level DEBUG")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--timeout", type=float, default=DEFAULT_TOTAL_TIMEOUT, help="total barrier timeout (s)")
        x.add_argument("--send-interval", type=float, default=DEFAULT_SEND_INTERVAL)
        x.add_argument("--poll-timeout", type=float, default=DEFAULT_POLL_TIMEOUT)
        x.add_argument("--exit-on-ready", action="store_true", help="leave as soon as this peer is ready")
        x.add_argument("--ack-policy", choices=[a.value for a in AckPolicy], default=AckPolicy.FIRST.value)
        x.add_argument("--json", action="store_true")

    run = sub.add_parser("run", help="join the barrier described by a hosts file")
    add_common(run)
    run.add_argument("-f", "--hosts-file", required=True)
    run.add_argument("--port", type=int, default=DEFAULT_PORT)
    run.add_argument("--max-hosts", type=int, default=DEFAULT_MAX_HOSTS)
    run.add_argument("--hostname", default=None, help="override the local hostname")
    run.add_argument("--bind-host", default="0.0.0.0")
    run.set_defaults(func=cmd_run)

    local = sub.add_parser("local", help="run a whole barrier on loopback")
    add_common(local)
    local.add_argument("--peers", type=int, default=3)
    local.add_argument("--loss-rate", type=float, default=0.0, help="simulate outbound datagram loss")
    local.add_argument("--delay-ms", type=int, default=0, help="simulate outbound send delay")
    local.set_defaults(func=cmd_local)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.DEBUG if args.debug else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")
    try:
        args.config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
