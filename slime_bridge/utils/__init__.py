from .config_loader import (
    BridgeConfig,
    create_bridge_config,
    load_bridge_config,
    load_config_file,
    parse_address,
    save_config_template,
)
from .status_monitor import StatusMonitor

__all__ = [
    "BridgeConfig",
    "create_bridge_config",
    "load_bridge_config",
    "load_config_file",
    "parse_address",
    "save_config_template",
    "StatusMonitor",
]
