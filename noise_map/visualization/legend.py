"""
Shared legend registry.

Layers publish their color encoding under a key; every mutation redraws the
whole legend panel from the registry.
"""

import html
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegendItem:
    label: str
    color: Optional[str] = None


@dataclass(frozen=True)
class LegendGroup:
    """Swatch/label pairs for one logical layer."""
    title: str
    items: Tuple[LegendItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_pairs(cls, title: str, pairs: List[Tuple[str, str]]) -> 'LegendGroup':
        return cls(title=title, items=tuple(LegendItem(label, color) for label, color in pairs))

    def to_dict(self) -> Dict:
        return {
            'title': self.title,
            'items': [{'label': item.label, 'color': item.color} for item in self.items]
        }


RenderListener = Callable[[List[Tuple[str, LegendGroup]]], None]


class LegendRegistry:
    """
    Insertion-ordered registry of legend groups (last writer wins per key).
    """

    def __init__(self):
        self._groups: Dict[str, LegendGroup] = {}
        self._snapshot: List[Tuple[str, LegendGroup]] = []
        self._listeners: List[RenderListener] = []

    def set_group(self, key: str, group: Optional[LegendGroup]) -> None:
        """Upsert a group, or delete it when group is None, then re-render."""
        if group is not None:
            self._groups[key] = group
        else:
            self._groups.pop(key, None)
        self.render()

    def upsert(self, key: str, group: LegendGroup) -> None:
        self.set_group(key, group)

    def remove(self, key: str) -> None:
        self.set_group(key, None)

    def get(self, key: str) -> Optional[LegendGroup]:
        return self._groups.get(key)

    def keys(self) -> List[str]:
        return list(self._groups)

    def subscribe(self, listener: RenderListener) -> None:
        self._listeners.append(listener)

    def render(self) -> List[Tuple[str, LegendGroup]]:
        """Rebuild the display list from scratch, skipping empty groups."""
        self._snapshot = [
            (key, group) for key, group in self._groups.items()
            if group is not None and group.items
        ]
        for listener in self._listeners:
            listener(list(self._snapshot))
        return list(self._snapshot)

    def render_snapshot(self) -> List[Tuple[str, LegendGroup]]:
        """The display list produced by the most recent render."""
        return list(self._snapshot)

    def to_html(self) -> str:
        """Render the legend panel as a fixed-position HTML block."""
        if not self._snapshot:
            body = '<div class="legend-empty">No layers visible</div>'
        else:
            body = ''.join(self._group_html(group) for _key, group in self._snapshot)

        return f"""
        <div class="legend-container" style="position: fixed;
                   top: 80px; right: 10px; width: 220px; max-height: 60%;
                   overflow-y: auto; background-color: white;
                   border: 2px solid grey; z-index: 9999;
                   font-size: 13px; padding: 8px;">
            <div class="legend-header" style="font-weight: bold; margin-bottom: 6px;">Legend</div>
            <div class="legend-body">{body}</div>
        </div>
        """

    @staticmethod
    def _group_html(group: LegendGroup) -> str:
        items = []
        for item in group.items:
            swatch_color = f"background-color: {html.escape(item.color)};" if item.color else ''
            items.append(f"""
                <div class="legend-item" style="margin-bottom: 4px;">
                    <span class="legend-swatch" style="{swatch_color}
                          width: 14px; height: 14px; display: inline-block;
                          border: 1px solid #9ca3af; margin-right: 6px;"></span>
                    <span class="legend-label">{html.escape(item.label)}</span>
                </div>
            """)

        title = ''
        if group.title:
            title = f'<div class="legend-group-title" style="font-weight: 600;">{html.escape(group.title)}</div>'

        return f'<div class="legend-group" style="margin-bottom: 8px;">{title}{"".join(items)}</div>'
