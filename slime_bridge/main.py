#!/usr/bin/env python3
"""
Bridge entry point: starts acquisition sources and the status monitor, then
runs the aggregator on the main thread.
"""

import argparse
import logging
import sys

from slime_bridge.core.aggregator import Aggregator
from slime_bridge.core.source_factory import AcquisitionSourceFactory
from slime_bridge.utils.config_loader import (
    BridgeConfig,
    load_bridge_config,
    parse_address,
    save_config_template,
)
from slime_bridge.utils.status_monitor import StatusMonitor

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Source type -> (module, class)
BUILTIN_SOURCES = {
    "simulation": ("slime_bridge.plugins.simulation_source", "SimulationSource"),
    "joycon": ("slime_bridge.plugins.joycon_source", "JoyconSource"),
}

logger = logging.getLogger("SlimeBridge")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forward controller orientation to a SlimeVR server")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML or JSON configuration file")
    parser.add_argument("--address", type=str, default=None,
                        help="Tracker server address, e.g. 127.0.0.1:6969")
    parser.add_argument("--source", action="append", default=None,
                        choices=sorted(BUILTIN_SOURCES),
                        help="Acquisition source, repeatable (default: joycon)")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    parser.add_argument("--save-config", type=str, default=None,
                        help="Write a configuration template to this path and exit")
    return parser


def resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Config file values, overridden by command line flags."""
    config = load_bridge_config(args.config) if args.config else BridgeConfig()
    if args.address:
        config.address = args.address
    if args.source:
        config.sources = [{"type": name} for name in args.source]
    if args.log_level:
        config.log_level = args.log_level
    return config


def create_sources(config: BridgeConfig, event_queue):
    sources = []
    for source_config in config.sources:
        source_type = source_config.get("type")
        plugin = BUILTIN_SOURCES.get(source_type)
        if plugin and not AcquisitionSourceFactory.is_registered(source_type):
            AcquisitionSourceFactory.load_plugin(*plugin, register_name=source_type)
        sources.append(AcquisitionSourceFactory.create_from_config(source_config, event_queue))
    return sources


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.save_config:
        fmt = "json" if args.save_config.lower().endswith(".json") else "yaml"
        save_config_template(args.save_config, format=fmt)
        print(f"Configuration template written to {args.save_config}")
        return 0

    config = resolve_config(args)
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO), format=LOG_FORMAT)

    aggregator = Aggregator(
        parse_address(config.address),
        firmware_name=config.firmware_name,
        log_level=getattr(logging, config.log_level, logging.INFO),
    )
    sources = create_sources(config, aggregator.event_queue)
    monitor = StatusMonitor(aggregator.status_queue, interval=config.status_interval)

    for source in sources:
        source.start()
    monitor.start()

    try:
        aggregator.run()
    except KeyboardInterrupt:
        logger.info("Ctrl+C received, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
