"""
Deterministic category -> color mappings.

Distinct values keep first-occurrence order, so identical input order always
yields identical assignments.
"""

from typing import Any, Dict, Iterable, List

# Named palettes offered for uploaded layers
PALETTES: Dict[str, List[str]] = {
    'bold': [
        '#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd',
        '#8c564b', '#e377c2', '#7f7f7f', '#bcbd22', '#17becf',
    ],
    'pastel': [
        '#a7f3d0', '#fde68a', '#fecaca', '#bfdbfe', '#ddd6fe',
        '#fbcfe8', '#c7d2fe', '#fed7aa', '#d9f99d', '#e5e7eb',
    ],
    'spectrum': [],  # generated: evenly spaced hues
}
DEFAULT_PALETTE = 'bold'
HUE_SATURATION = 55
HUE_LIGHTNESS = 78


def distinct_values(values: Iterable[Any]) -> List[str]:
    """Distinct non-blank values as strings, in first-occurrence order."""
    seen = {}
    for value in values:
        if value is None:
            continue
        key = str(value)
        if key.strip() == '':
            continue
        seen.setdefault(key, None)
    return list(seen)


def palette_color_map(values: Iterable[Any], palette: List[str]) -> Dict[str, str]:
    """Cycle through a fixed palette, wrapping when there are more values than colors."""
    if not palette:
        raise ValueError("palette must contain at least one color")
    return {
        value: palette[idx % len(palette)]
        for idx, value in enumerate(distinct_values(values))
    }


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(value)


def hue_color_map(values: Iterable[Any], saturation: int = HUE_SATURATION,
                  lightness: int = HUE_LIGHTNESS) -> Dict[str, str]:
    """Assign hue = idx * 360 / N to each of the N distinct values."""
    unique = distinct_values(values)
    count = len(unique) or 1
    return {
        value: f"hsl({_format_number(idx * 360 / count)}, {saturation}%, {lightness}%)"
        for idx, value in enumerate(unique)
    }


def build_category_color_map(values: Iterable[Any], palette_name: str = DEFAULT_PALETTE) -> Dict[str, str]:
    """
    Build a category color map using one of the named palettes.

    Raises:
        ValueError: If the palette name is unknown
    """
    if palette_name not in PALETTES:
        raise ValueError(f"Unknown palette: {palette_name}. Choose from {sorted(PALETTES)}")
    if palette_name == 'spectrum':
        return hue_color_map(values)
    return palette_color_map(values, PALETTES[palette_name])
