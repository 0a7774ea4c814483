"""Layer registry — auto-discovers and registers all detection layers."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import TYPE_CHECKING

from track_probe import layers as layers_pkg
from track_probe.core.base import LAYER_ORDER, LayerName

if TYPE_CHECKING:
    from track_probe.core.base import BaseLayer

logger = logging.getLogger(__name__)

_registry: dict[LayerName, BaseLayer] = {}
_discovered = False


def _discover_layers() -> None:
    """Walk track_probe.layers.* and instantiate every BaseLayer subclass."""
    global _discovered
    if _discovered:
        return

    from track_probe.core.base import BaseLayer

    for _importer, modname, ispkg in pkgutil.iter_modules(
        layers_pkg.__path__, layers_pkg.__name__ + "."
    ):
        if not ispkg:
            continue
        # Import the layer.py inside each sub-package
        try:
            mod = importlib.import_module(f"{modname}.layer")
        except ImportError:
            logger.warning("Could not import layer package %s", modname, exc_info=True)
            continue

        for attr_name in dir(mod):
            attr = getattr(mod, attr_name)
            if (
                isinstance(attr, type)
                and issubclass(attr, BaseLayer)
                and attr is not BaseLayer
            ):
                instance = attr()
                _registry[instance.name] = instance

    missing = [name.value for name in LAYER_ORDER if name not in _registry]
    if missing:
        raise RuntimeError(f"Detection layers missing from registry: {', '.join(missing)}")

    _discovered = True


def get_layer(name: LayerName | str) -> BaseLayer | None:
    """Get a layer by name."""
    _discover_layers()
    try:
        return _registry.get(LayerName(name))
    except ValueError:
        return None


def get_all_layers() -> dict[LayerName, BaseLayer]:
    """Return all layers in declaration order."""
    _discover_layers()
    return {name: _registry[name] for name in LAYER_ORDER}
