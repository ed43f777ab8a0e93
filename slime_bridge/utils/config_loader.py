"""
Configuration loader for the bridge.
"""

import ipaddress
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import yaml

from slime_bridge.protocol.codec import DEFAULT_FIRMWARE_NAME

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6969
DEFAULT_ADDRESS = f"{DEFAULT_HOST}:{DEFAULT_PORT}"

_logger = logging.getLogger("ConfigLoader")


@dataclass
class BridgeConfig:
    """Bridge configuration."""
    address: str = DEFAULT_ADDRESS  # Tracker server "host:port"
    firmware_name: str = DEFAULT_FIRMWARE_NAME  # Name sent in the handshake
    sources: List[Dict[str, Any]] = field(default_factory=lambda: [{"type": "joycon"}])
    status_interval: float = 1.0  # Seconds between status log lines
    log_level: str = "INFO"


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from file.

    Supports JSON and YAML formats.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    ext = os.path.splitext(config_path)[1].lower()

    with open(config_path, 'r') as f:
        if ext in ['.yaml', '.yml']:
            return yaml.safe_load(f) or {}
        elif ext == '.json':
            return json.load(f)
        else:
            raise ValueError(f"Unsupported configuration format: {ext}")


def create_bridge_config(config_dict: Dict[str, Any]) -> BridgeConfig:
    """
    Create BridgeConfig from configuration dictionary.

    Args:
        config_dict: Configuration dictionary

    Returns:
        BridgeConfig instance
    """
    defaults = BridgeConfig()
    sources = config_dict.get("sources", defaults.sources)
    # a bare name is shorthand for {"type": name}
    sources = [{"type": s} if isinstance(s, str) else dict(s) for s in sources]

    return BridgeConfig(
        address=str(config_dict.get("address", defaults.address)),
        firmware_name=config_dict.get("firmware_name", defaults.firmware_name),
        sources=sources,
        status_interval=float(config_dict.get("status_interval", defaults.status_interval)),
        log_level=str(config_dict.get("log_level", defaults.log_level)).upper(),
    )


def load_bridge_config(config_path: str) -> BridgeConfig:
    """Load a BridgeConfig from a YAML or JSON file."""
    return create_bridge_config(load_config_file(config_path))


def parse_address(text: str) -> Tuple[str, int]:
    """
    Parse "ip:port" or "[ipv6]:port".

    Anything else falls back to 127.0.0.1:6969 with a warning.

    Args:
        text: Address string

    Returns:
        (host, port)
    """
    try:
        host, _, port_text = text.strip().rpartition(":")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
            if ipaddress.ip_address(host).version != 6:
                raise ValueError(f"Bracketed host must be IPv6: {host}")
        elif ipaddress.ip_address(host).version != 4:
            raise ValueError(f"IPv6 address must be bracketed: {host}")
        port = int(port_text)
        if not 0 < port <= 0xFFFF:
            raise ValueError(f"Port out of range: {port}")
    except ValueError as e:
        _logger.warning(f"Invalid address {text!r} ({e}), using {DEFAULT_ADDRESS}")
        return (DEFAULT_HOST, DEFAULT_PORT)
    return (host, port)


BRIDGE_CONFIG_TEMPLATE = {
    "address": DEFAULT_ADDRESS,
    "firmware_name": DEFAULT_FIRMWARE_NAME,
    "status_interval": 1.0,
    "log_level": "INFO",
    "sources": [
        {
            "type": "joycon",
            "params": {
                "scan_interval": 1.0,
                "read_timeout_ms": 100
            }
        }
    ]
}


def save_config_template(output_path: str, format: str = "yaml"):
    """
    Save a configuration template to file.

    Args:
        output_path: Path to save configuration
        format: Output format ("yaml" or "json")
    """
    with open(output_path, 'w') as f:
        if format == "yaml":
            yaml.dump(BRIDGE_CONFIG_TEMPLATE, f, default_flow_style=False, sort_keys=False)
        elif format == "json":
            json.dump(BRIDGE_CONFIG_TEMPLATE, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")
