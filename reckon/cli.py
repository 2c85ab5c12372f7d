# ==============================================
# CLI — Command Line Entry Point
# ==============================================
#
# COMMANDS:
# ---------
# 1. Randomly sample one or more instances:
#    python -m reckon.cli sample --redis localhost:6379 --min-samples 500
#    python -m reckon.cli sample --redis a:6379 --redis b:6379 --sample-rate 0.05
#
# 2. Scan every key matching a glob:
#    python -m reckon.cli scan --redis localhost:6379 --glob 'user:*'
#
# Common options:
#    --aggregator any-key|value-type|key-prefix
#    --out DIR          (one output-<bucket>.json per bucket)
#    --keep-going       (skip unreachable instances instead of failing)
#
# Defaults come from reckon.config.get_config().
#
# ==============================================

import argparse
import sys
from typing import List, Optional, Tuple

from reckon.analysis.aggregator import AGGREGATORS, get_aggregator
from reckon.config import get_config
from reckon.errors import ReckonError
from reckon.pipeline import SamplingPipeline
from reckon.report import write_reports
from reckon.sampling.run_config import RunConfig


def parse_address(value: str) -> Tuple[str, int]:
    """'host:port' → (host, port); IPv6 hosts may be written as [::1]:6379."""
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected host:port, got {value!r}")
    try:
        return host.strip("[]"), int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="reckon", description="Sample Redis keyspaces and report on value sizes."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--redis", dest="addresses", action="append", type=parse_address,
                        metavar="HOST:PORT",
                        help="redis instance to sample (may be given several times)")
    common.add_argument("--db", type=int, default=config.redis.db)
    common.add_argument("--aggregator", choices=sorted(AGGREGATORS), default=config.aggregator)
    common.add_argument("--out", default=config.report_dir, help="directory for JSON reports")
    common.add_argument("--keep-going", action="store_true",
                        help="skip instances that fail instead of aborting")
    common.add_argument("--quiet", action="store_true")

    sample = sub.add_parser("sample", parents=[common], help="sample random keys")
    sample.add_argument("--min-samples", type=int, default=config.sampling.min_samples)
    sample.add_argument("--sample-rate", type=float, default=config.sampling.sample_rate)

    scan = sub.add_parser("scan", parents=[common], help="scan keys matching a glob")
    scan.add_argument("--glob", default=config.sampling.glob)

    return parser


def build_run_configs(args: argparse.Namespace) -> List[RunConfig]:
    config = get_config()
    addresses = args.addresses or [(config.redis.host, config.redis.port)]
    if args.command == "scan":
        return [RunConfig.scan(host, port, glob=args.glob, db=args.db) for host, port in addresses]
    return [
        RunConfig.sample(host, port, min_samples=args.min_samples,
                         sample_rate=args.sample_rate, db=args.db)
        for host, port in addresses
    ]


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    pipeline = SamplingPipeline(
        aggregator=get_aggregator(args.aggregator),
        isolate_failures=args.keep_going,
        verbose=not args.quiet,
    )
    try:
        result = pipeline.run(build_run_configs(args))
    except ReckonError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    if not result.instances:
        print("✗ No instance could be sampled", file=sys.stderr)
        return 1

    for path in write_reports(result.results, args.out, result.key_count):
        print(f"✓ Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
