"""
Catalog of the remote GeoJSON overlays drawn over the base map.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

BASE_URL = 'https://raw.githubusercontent.com/Noise-unit/GeojsonLayers/refs/heads/main/'


class OverlayType(Enum):
    """Thematic overlay types."""
    MUNICIPALITY = "municipality"
    PROTECTED = "protected"
    ROADS = "roads"
    ZONE = "zone"
    EVENTS = "events"
    POI = "poi"
    POLICY = "policy"
    WATERSHED = "watershed"


@dataclass(frozen=True)
class OverlayConfig:
    """A named remote GeoJSON overlay."""
    id: str
    name: str
    url: str
    type: str
    label_field: Optional[str] = None

    @property
    def is_roads(self) -> bool:
        return self.type == OverlayType.ROADS.value


def _overlay(overlay_id: str, name: str, filename: str, overlay_type: OverlayType,
             label_field: Optional[str] = None) -> OverlayConfig:
    return OverlayConfig(
        id=overlay_id,
        name=name,
        url=BASE_URL + quote(filename),
        type=overlay_type.value,
        label_field=label_field
    )


OVERLAY_CATALOG = [
    _overlay('municipality', 'Municipalities', 'Municipality.geojson', OverlayType.MUNICIPALITY),
    _overlay('aripo', 'Aripo Savannas', 'Aripo Savannas.geojson', OverlayType.PROTECTED),
    _overlay('matura', 'Matura National Park', 'Matura National Park.geojson', OverlayType.PROTECTED),
    _overlay('nariva', 'Nariva Swamp', 'Nariva Swamp.geojson', OverlayType.PROTECTED),
    _overlay('caroni', 'Caroni Swamp', 'Caroni Swamp.geojson', OverlayType.PROTECTED),
    _overlay('aripo_buffer', 'Aripo Savannas Buffer', 'Aripo Savannas Buffer.geojson', OverlayType.PROTECTED),
    _overlay('matura_buffer', 'Matura National Park Buffer', 'Matura National Park Buffer.geojson', OverlayType.PROTECTED),
    _overlay('nariva_buffer', 'Nariva Swamp Buffer', 'Nariva Swamp Buffer.geojson', OverlayType.PROTECTED),
    _overlay('major_roads', 'Major Roads', 'Major Roads.geojson', OverlayType.ROADS),
    _overlay('noise_zones', 'Noise Zones', 'Noise Zones.geojson', OverlayType.ZONE),
    _overlay('proposed_noise_zones', 'Proposed Noise Zones', 'Proposed Noise Zones.geojson', OverlayType.ZONE),
    _overlay('chag_events', 'Chaguaramas Event Locations', 'Chaguaramas Event Locations.geojson', OverlayType.EVENTS),
    _overlay('chag_nature_reserve', 'Chaguaramas Nature Reserve', 'Chaguaramas.geojson', OverlayType.PROTECTED),
    _overlay('forest_reserves', 'Trinidad Forest Reserves', 'Forest Reserves.geojson', OverlayType.PROTECTED),
    _overlay('main_ridge', 'Main Ridge', 'HummingBirds_MainRidge.geojson', OverlayType.PROTECTED),
    _overlay('private_medical_trinidad', 'Private Medical Facilities',
             'PrivateMedicalFacilities_Trinidad.geojson', OverlayType.POI),
    _overlay('tobago_tcpd_policy', 'Tobago TCPD Policy', 'Tobago TCPD Policy.geojson',
             OverlayType.POLICY, label_field='Class_Name'),
    _overlay('tobago_watersheds', 'Tobago Watershed', 'Tobago Watersheds.geojson',
             OverlayType.WATERSHED, label_field='WATERSHED'),
    _overlay('tobago_hospitals', 'Tobago Hospitals', 'TobagoHospitals.geojson', OverlayType.POI),
    _overlay('trinidad_tcpd_policy', 'Trinidad TCPD Policy', 'Trinidad TCPD Policy.geojson',
             OverlayType.POLICY, label_field='Class_Name'),
    _overlay('trinidad_watersheds', 'Trinidad Watershed', 'Trinidad Watersheds.geojson',
             OverlayType.WATERSHED, label_field='Name'),
    _overlay('trinidad_hospitals', 'Trinidad Hospitals', 'TrinidadHospitals.geojson', OverlayType.POI),
    _overlay('turtle_nesting_sites', 'Turtle Nesting Sites', 'TurtleNestingSites.geojson',
             OverlayType.POI, label_field='layer'),
]


def get_overlay_config(overlay_id: str) -> OverlayConfig:
    """
    Look up an overlay from the catalog.

    Raises:
        KeyError: If no overlay has the given id
    """
    for overlay in OVERLAY_CATALOG:
        if overlay.id == overlay_id:
            return overlay
    raise KeyError(f"Overlay not found: {overlay_id}")
