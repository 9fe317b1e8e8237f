"""Instantiate the live store named by the configuration."""

import importlib
from typing import Any

import structlog

from ..config import StoreConfig
from ..utils.exceptions import ConfigurationError
from .protocol import EntityStore

logger = structlog.get_logger(__name__)


def _import_attribute(path: str) -> Any:
    """
    Import ``package.module:attribute`` (attribute may be dotted).

    Raises:
        ConfigurationError: The path is malformed or cannot be imported
    """
    module_name, separator, attribute = path.partition(":")
    if not separator or not module_name or not attribute:
        raise ConfigurationError(
            f"Store factory '{path}' must have the form 'package.module:attribute'"
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import store module '{module_name}': {e}") from e

    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ConfigurationError(
                f"Store factory '{path}' does not exist in '{module_name}'"
            ) from None

    return target


def load_store(config: StoreConfig) -> EntityStore:
    """
    Create the live store from its configuration.

    Args:
        config: Store configuration (factory import path and options)

    Returns:
        The store returned by the factory

    Raises:
        ConfigurationError: The factory cannot be imported or returns no store
    """
    factory = _import_attribute(config.factory)
    if not callable(factory):
        raise ConfigurationError(f"Store factory '{config.factory}' is not callable")

    store = factory(**config.options)
    if not isinstance(store, EntityStore):
        raise ConfigurationError(
            f"Store factory '{config.factory}' returned {type(store).__name__}, "
            "which does not implement EntityStore"
        )

    logger.debug("Loaded entity store", factory=config.factory, store=type(store).__name__)
    return store
