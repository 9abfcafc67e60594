"""
Trinidad & Tobago Noise Map

Interactive web map of noise-complaint data over Trinidad & Tobago, with
toggleable GeoJSON overlays, a shared legend and a user upload pipeline for
CSV, GeoJSON and zipped shapefile data.

## Quick Start

```python
from noise_map import MapSession, MapConfig

session = MapSession(MapConfig.create_default_config())
session.load_overlays()
session.load_complaints()

session.set_complaints_visible(True)
session.set_display_mode('heatmap')
session.build_map().save('noise_map.html')
```

## Architecture

- `config/`: Map configuration and the overlay catalog
- `geometry/`: UTM 20N reprojection and bounds helpers
- `data/`: Complaint records, source readers, field inference, remote loaders
- `visualization/`: Colors, legend registry, layer builders, folium page
- `uploads/`: Upload staging and layer building
- `map_session.py`: Rendering coordinator that owns all map state
"""

from .config import MapConfig
from .data import ComplaintPoint, classify, read_source
from .map_session import MapSession
from .uploads import UploadConfig, UploadPipeline
from .visualization import LegendRegistry, NoiseMapBuilder

# Version information
__version__ = "1.0.0"

# Public API
__all__ = [
    'MapSession',
    'MapConfig',
    'ComplaintPoint',
    'classify',
    'read_source',
    'UploadConfig',
    'UploadPipeline',
    'LegendRegistry',
    'NoiseMapBuilder',
    '__version__'
]
