"""
Acquisition source factory for plugin-based source creation.
"""

import importlib
import inspect
import logging
import queue
from typing import Any, Dict, List, Optional, Type

from .base_source import BaseAcquisitionSource, SourceConfig


class AcquisitionSourceFactory:
    """
    Factory class for creating acquisition sources.

    Supports:
    - Plugin registration
    - Dynamic loading
    - Configuration-based creation
    """

    # Class-level registry of source types
    _registry: Dict[str, Type[BaseAcquisitionSource]] = {}
    _logger = logging.getLogger("AcquisitionSourceFactory")

    @classmethod
    def register(cls, name: str, source_class: Type[BaseAcquisitionSource]):
        """
        Register a source class.

        Args:
            name: Unique name for the source type
            source_class: Source class (must inherit from BaseAcquisitionSource)
        """
        if not inspect.isclass(source_class) or not issubclass(source_class, BaseAcquisitionSource):
            raise ValueError(f"{source_class} must be a subclass of BaseAcquisitionSource")

        if name in cls._registry and cls._registry[name] is not source_class:
            cls._logger.warning(f"Overriding existing registration for {name}")

        cls._registry[name] = source_class
        cls._logger.debug(f"Registered source type: {name}")

    @classmethod
    def unregister(cls, name: str):
        """Unregister a source type."""
        if name in cls._registry:
            del cls._registry[name]
            cls._logger.debug(f"Unregistered source type: {name}")

    @classmethod
    def create(cls, name: str, event_queue: queue.Queue,
               config: Optional[SourceConfig] = None) -> BaseAcquisitionSource:
        """
        Create a source instance.

        Args:
            name: Registered name of the source type
            event_queue: Queue the source emits events onto
            config: Source configuration

        Returns:
            Source instance

        Raises:
            ValueError: If source type not registered
        """
        if name not in cls._registry:
            available = list(cls._registry.keys())
            raise ValueError(f"Unknown source type: {name}. Available: {available}")

        source = cls._registry[name](event_queue, config or SourceConfig(name=name))
        cls._logger.info(f"Created {name} source")
        return source

    @classmethod
    def create_from_config(cls, config_dict: Dict[str, Any],
                           event_queue: queue.Queue) -> BaseAcquisitionSource:
        """
        Create a source from a configuration dictionary.

        Args:
            config_dict: Dictionary with keys:
                - type: Source type name
                - name: Optional instance name
                - params: Backend parameters
            event_queue: Queue the source emits events onto

        Returns:
            Source instance
        """
        source_type = config_dict.get("type")
        if not source_type:
            raise ValueError("Source configuration must include 'type' field")

        config = SourceConfig(
            name=config_dict.get("name", source_type),
            params=dict(config_dict.get("params") or {}),
        )
        return cls.create(source_type, event_queue, config)

    @classmethod
    def load_plugin(cls, module_path: str, class_name: str, register_name: Optional[str] = None):
        """
        Dynamically load and register a source plugin.

        Args:
            module_path: Python module path (e.g., "my_package.my_module")
            class_name: Name of the source class in the module
            register_name: Name to register the class as (defaults to class_name)
        """
        try:
            module = importlib.import_module(module_path)
            source_class = getattr(module, class_name)
        except ImportError as e:
            cls._logger.error(f"Failed to import module {module_path}: {e}")
            raise
        except AttributeError as e:
            cls._logger.error(f"Class {class_name} not found in {module_path}: {e}")
            raise

        cls.register(register_name or class_name, source_class)
        cls._logger.info(f"Loaded plugin {class_name} from {module_path}")

    @classmethod
    def get_registered_types(cls) -> List[str]:
        """Get list of registered source types."""
        return list(cls._registry.keys())

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a source type is registered."""
        return name in cls._registry


# Decorator for auto-registration
def register_source(name: str):
    """
    Decorator to automatically register a source class.

    Usage:
        @register_source("my_controller")
        class MySource(BaseAcquisitionSource):
            ...
    """
    def decorator(cls):
        AcquisitionSourceFactory.register(name, cls)
        return cls
    return decorator
