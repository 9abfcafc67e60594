"""
The set of layers currently shown on the map.

Layers are kept in the order they were added; a folium page is composed
from this set on demand.
"""

import logging
from typing import Dict, List, Optional, Tuple, Type

from branca.element import Element as BrancaElement

logger = logging.getLogger(__name__)


class RenderSurface:
    """Ordered mapping of layer key -> folium element on the map."""

    def __init__(self):
        self._layers: Dict[str, BrancaElement] = {}

    def add(self, key: str, element: BrancaElement) -> None:
        """Add (or replace) a layer."""
        self._layers.pop(key, None)
        self._layers[key] = element
        logger.debug(f"Layer added to surface: {key}")

    def remove(self, key: str) -> bool:
        if key in self._layers:
            del self._layers[key]
            logger.debug(f"Layer removed from surface: {key}")
            return True
        return False

    def has(self, key: str) -> bool:
        return key in self._layers

    def get(self, key: str) -> Optional[BrancaElement]:
        return self._layers.get(key)

    def keys(self) -> List[str]:
        return list(self._layers)

    def items(self) -> List[Tuple[str, BrancaElement]]:
        return list(self._layers.items())

    def layers_of_type(self, element_type: Type[BrancaElement]) -> List[BrancaElement]:
        """Top-level layers of a type (e.g. HeatMap)."""
        return [element for element in self._layers.values() if isinstance(element, element_type)]

    def count_descendants(self, element_type: Type[BrancaElement]) -> int:
        """Count elements of a type anywhere on the surface, including inside groups."""
        return sum(_count(element, element_type) for element in self._layers.values())

    def __len__(self) -> int:
        return len(self._layers)


def _count(element: BrancaElement, element_type: Type[BrancaElement]) -> int:
    total = 1 if isinstance(element, element_type) else 0
    for child in element._children.values():
        total += _count(child, element_type)
    return total
