"""
Command-line entry points.

    cdma-simulate [input]           run a round in-process
    cdma-server --port 51717        TCP combiner for one round
    cdma-client localhost 51717 < input.txt
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import ChannelConfig
from .errors import CDMAError
from .simulation import run_clients, serve, simulate_round
from .utils import format_sequence, read_messages

logger = logging.getLogger("cdma")


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _load_config(args) -> ChannelConfig:
    config = ChannelConfig.from_yaml(args.config) if args.config else ChannelConfig()
    for name in ("host", "port", "join_timeout", "recv_timeout", "log_level"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)
    if getattr(args, "legacy_decode", False):
        config.strict_decode = False
    return config


def _add_common(parser: argparse.ArgumentParser):
    parser.add_argument("--config", type=str, help="Config YAML path")
    parser.add_argument("--join-timeout", dest="join_timeout", type=float)
    parser.add_argument("--recv-timeout", dest="recv_timeout", type=float)
    parser.add_argument("--log-level", dest="log_level", type=str)


def _read_input(path: Optional[str]) -> List[str]:
    if path is None or path == "-":
        return sys.stdin.readlines()
    with open(path, 'r') as f:
        return f.readlines()


def _print_results(stations):
    for sid in sorted(stations):
        print(stations[sid].summary())
        print()


def simulate_main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run one CDMA round in-process")
    parser.add_argument("input", nargs="?", help="Round description (default: stdin)")
    parser.add_argument("--legacy-decode", action="store_true",
                        help="Decode anything but +1 as 0 instead of failing")
    _add_common(parser)
    args = parser.parse_args(argv)

    config = _load_config(args)
    _setup_logging(config.log_level)

    try:
        messages = read_messages(_read_input(args.input))
        result = simulate_round(messages, config)
    except CDMAError as e:
        logger.error("round failed: %s", e)
        return 1

    print(f"Signal: {format_sequence(result.composite)}\n")
    _print_results(result.stations)
    return 0


def server_main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="CDMA combiner over TCP")
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--port", type=int, default=None)
    _add_common(parser)
    args = parser.parse_args(argv)

    config = _load_config(args)
    _setup_logging(config.log_level)

    try:
        serve(config)
    except CDMAError as e:
        logger.error("round failed: %s", e)
        return 1
    return 0


def client_main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Three CDMA stations over TCP")
    parser.add_argument("host", type=str)
    parser.add_argument("port", type=int)
    parser.add_argument("--input", type=str, default=None,
                        help="Round description (default: stdin)")
    parser.add_argument("--legacy-decode", action="store_true")
    _add_common(parser)
    args = parser.parse_args(argv)

    config = _load_config(args)
    _setup_logging(config.log_level)

    try:
        messages = read_messages(_read_input(args.input))
        stations = run_clients(messages, config)
    except CDMAError as e:
        logger.error("round failed: %s", e)
        return 1

    _print_results(stations)
    return 0


if __name__ == "__main__":
    sys.exit(simulate_main())
