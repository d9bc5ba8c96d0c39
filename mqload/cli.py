import argparse
import asyncio
import logging
from dataclasses import replace

from mqload.scheduler.runner import LoadRunner
from mqload.utils.config import ConfigError, load_config, parse_duration, validate
from mqload.utils.log import setup_logging

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(prog="mqload", description="Load generator for the message queue service")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--base-url", help="service base URL (default: $BASE_URL or http://localhost:8080)")
    common.add_argument("--min-length", type=int, help="minimum message length")
    common.add_argument("--max-length", type=int, help="maximum message length")
    common.add_argument("--metrics-port", type=int, help="serve Prometheus metrics on this port (0 disables)")
    common.add_argument("--log-level", help="logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", parents=[common], help="run the producer and consumer scenarios")
    run.add_argument("--producer-vus", type=int)
    run.add_argument("--producer-duration", help='e.g. "1m", "30s"')
    run.add_argument("--consumer-vus", type=int)
    run.add_argument("--consumer-duration", help='e.g. "1m", "30s"')

    drain = sub.add_parser("drain", parents=[common], help="publish messages, drain them and report duplicates")
    drain.add_argument("--messages", type=int, help="number of messages to publish")
    drain.add_argument("--workers", type=int, help="concurrent publishers")
    return parser


def apply_overrides(cfg, args):
    cfg = dict(cfg)
    if args.base_url:
        cfg["BASE_URL"] = args.base_url.rstrip("/")
    if args.min_length is not None:
        cfg["MIN_MESSAGE_LENGTH"] = args.min_length
    if args.max_length is not None:
        cfg["MAX_MESSAGE_LENGTH"] = args.max_length
    if args.metrics_port is not None:
        cfg["METRICS_PORT"] = args.metrics_port
    if args.log_level:
        cfg["LOG_LEVEL"] = args.log_level.upper()
    scenarios = dict(cfg["SCENARIOS"])
    for name in ("producer", "consumer"):
        vus = getattr(args, f"{name}_vus", None)
        duration = getattr(args, f"{name}_duration", None)
        if vus is not None:
            scenarios[name] = replace(scenarios[name], vus=vus)
        if duration is not None:
            scenarios[name] = replace(scenarios[name], duration=parse_duration(duration))
    cfg["SCENARIOS"] = scenarios
    if getattr(args, "messages", None) is not None:
        cfg["DRAIN_MESSAGES"] = args.messages
    if getattr(args, "workers", None) is not None:
        cfg["DRAIN_WORKERS"] = args.workers
    return validate(cfg)


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        cfg = apply_overrides(load_config(), args)
    except ConfigError as e:
        setup_logging()
        logger.error("invalid configuration: %s", e)
        return 2
    setup_logging(cfg["LOG_LEVEL"])
    runner = LoadRunner(cfg)
    if args.command == "drain":
        report = asyncio.run(runner.drain())
        return 1 if report.duplicates else 0
    asyncio.run(runner.run())
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
