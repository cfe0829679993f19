"""Raster basemaps (satellite, terrain, street) for the pydeck map.

pydeck's TileLayer only fetches tiles and needs a JavaScript
renderSubLayers callback to draw them, which pydeck does not expose. XYZ
raster tiles are therefore given to deck.gl as a Mapbox GL style dict
(version 8, one raster source, one raster layer), which requires
map_provider="mapbox" in pdk.Deck but no API key.
"""

import logging

from fieldmapper.constants import BasemapConfig

logger = logging.getLogger(__name__)

TILE_SIZE_PX = 256


def basemap_style(name: str) -> dict[str, object]:
    """Mapbox GL style dict for one of BasemapConfig.NAMES.

    Raises:
        ValueError: If the basemap is unknown.
    """
    layer = BasemapConfig.LAYERS.get(name)
    if layer is None:
        raise ValueError(f"Unknown basemap '{name}'. Available: {BasemapConfig.NAMES}")

    return {
        "version": 8,
        "sources": {
            name: {
                "type": "raster",
                "tiles": layer["tiles"],
                "tileSize": TILE_SIZE_PX,
                "attribution": layer["attribution"],
            }
        },
        "layers": [
            {
                "id": name,
                "type": "raster",
                "source": name,
                "minzoom": 0,
                "maxzoom": layer["max_zoom"],
            }
        ],
    }
