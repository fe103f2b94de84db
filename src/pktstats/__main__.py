"""
Watch rx/tx throughput of host network interfaces.

Usage:
    python -m pktstats -d eth0
    python -m pktstats --rx eth0 --tx eth1 --format plain --duration 30
    python -m pktstats --config stats.yaml --output stats.txt

Counters print one line per interface and direction every second and a
summary line per counter when the run ends (duration expired or Ctrl-C).
"""
import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from .config import StatsTaskConfig, load_config
from .errors import ConfigurationError
from .formatters.registry import FormatterRegistry
from .task import StatsTask


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pktstats",
        description="Print rx/tx packet and bit rates of network interfaces.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # both directions of eth0 until Ctrl-C
  python -m pktstats -d eth0

  # rx of eth0 and tx of eth1 for 10 seconds, written to a file
  python -m pktstats --rx eth0 --tx eth1 --duration 10 --output stats.txt
        """
    )
    parser.add_argument("--config", "-c", default=None, help="YAML file with a 'stats:' section")
    parser.add_argument("--device", "-d", action="append", dest="devices", default=None,
                        metavar="NIC", help="Track rx and tx of NIC (repeatable)")
    parser.add_argument("--rx", action="append", dest="rx_devices", default=None,
                        metavar="NIC", help="Track rx of NIC (repeatable)")
    parser.add_argument("--tx", action="append", dest="tx_devices", default=None,
                        metavar="NIC", help="Track tx of NIC (repeatable)")
    parser.add_argument("--format", "-f", default=None, help="Output format (default: plain)")
    parser.add_argument("--output", "-o", default=None, help="Output file (default: standard out)")
    parser.add_argument("--interval", type=float, default=None, metavar="MS",
                        help="Idle time between sampling passes in ms (default: 100)")
    parser.add_argument("--duration", type=float, default=None, metavar="SECONDS",
                        help="Stop after this many seconds (default: run until Ctrl-C)")
    parser.add_argument("--list-formats", action="store_true", help="List output formats and exit")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> StatsTaskConfig:
    """Config file values, overridden by whatever was given on the command line."""
    config = load_config(args.config) if args.config else StatsTaskConfig()
    overrides = {}
    if args.devices is not None:
        overrides["devices"] = args.devices
    if args.rx_devices is not None:
        overrides["rx_devices"] = args.rx_devices
    if args.tx_devices is not None:
        overrides["tx_devices"] = args.tx_devices
    if args.format is not None:
        overrides["format"] = args.format
    if args.output is not None:
        overrides["file"] = args.output
    if args.interval is not None:
        overrides["interval_ms"] = args.interval
    config = replace(config, **overrides)

    if not (config.devices or config.rx_devices or config.tx_devices):
        raise ConfigurationError("No devices to track, use --device, --rx or --tx")
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.list_formats:
        for name in FormatterRegistry.names():
            print(name)
        return 0

    if args.duration is not None and args.duration <= 0:
        print("[PktStats] ERROR: --duration must be positive", file=sys.stderr)
        return 1

    try:
        task = StatsTask.from_config(build_config(args))
    except ConfigurationError as e:
        print(f"[PktStats] ERROR: {e}", file=sys.stderr)
        return 1

    task.start()
    try:
        task.join(args.duration)
    except KeyboardInterrupt:
        pass
    task.stop()
    task.join()
    return 1 if task.error is not None else 0


if __name__ == "__main__":
    sys.exit(main())
