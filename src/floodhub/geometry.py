"""Reduce WFS GeoJSON geometries to a single plottable (lat, lng) pair."""
from __future__ import annotations

import math
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from pyproj import Transformer
from pyproj.exceptions import ProjError

# Approximate bounding box of Gyeonggi-do in WGS84 degrees.
LAT_RANGE = (36.0, 39.0)
LNG_RANGE = (125.0, 130.0)

# Both raw values above this look like metres in a projected CRS.
PROJECTED_THRESHOLD = 100_000
# Korea 2000 / Central Belt 2010, the projection the climate platform stores.
PROJECTED_CRS = 'EPSG:5186'

LatLng = Tuple[float, float]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _first_vertex(geometry: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    geom_type = geometry.get('type')
    coords = geometry.get('coordinates')
    try:
        if geom_type == 'Point':
            vertex = coords
        elif geom_type == 'Polygon':
            vertex = coords[0][0]
        elif geom_type == 'MultiPolygon':
            vertex = coords[0][0][0]
        else:
            return None
        x, y = vertex[0], vertex[1]
    except (IndexError, KeyError, TypeError):
        return None
    if not (_is_number(x) and _is_number(y)):
        return None
    return float(x), float(y)


def in_bounds(lat: float, lng: float) -> bool:
    return LAT_RANGE[0] <= lat <= LAT_RANGE[1] and LNG_RANGE[0] <= lng <= LNG_RANGE[1]


def approximate_projected_to_wgs84(x: float, y: float) -> LatLng:
    # Linear fit around the central origin; accurate to a few hundred metres at best.
    lat = 38.0 + (y - 2_000_000) / 110_000
    lng = 127.0 + (x - 1_000_000) / 90_000
    return lat, lng


@lru_cache(maxsize=1)
def _transformer() -> Transformer:
    return Transformer.from_crs(PROJECTED_CRS, 'EPSG:4326', always_xy=True)


def projected_to_wgs84(x: float, y: float) -> LatLng:
    lng, lat = _transformer().transform(x, y)
    return float(lat), float(lng)


def extract_position(geometry: Any, precise: bool = False) -> Optional[LatLng]:
    """Return the representative (lat, lng) of a Point/Polygon/MultiPolygon.

    The first vertex of the first ring is used, not the centroid. Source data
    is (lng, lat). Values outside the Gyeonggi bounding box are rejected unless
    they look projected, in which case they are converted (linearly by
    default, through pyproj when ``precise`` is set) and checked again.
    ``None`` means "not plottable"; this function never raises.
    """
    if not isinstance(geometry, dict):
        return None
    vertex = _first_vertex(geometry)
    if vertex is None:
        return None
    lng, lat = vertex
    if in_bounds(lat, lng):
        return lat, lng
    if lng > PROJECTED_THRESHOLD and lat > PROJECTED_THRESHOLD:
        try:
            if precise:
                converted = projected_to_wgs84(lng, lat)
            else:
                converted = approximate_projected_to_wgs84(lng, lat)
        except ProjError:
            return None
        if all(_is_number(v) for v in converted) and in_bounds(*converted):
            return converted
    return None


def format_coordinates(geometry: Any) -> str:
    """Display string for the first vertex, empty when it cannot be read."""
    if not isinstance(geometry, dict):
        return ''
    vertex = _first_vertex(geometry)
    if vertex is None:
        return ''
    lng, lat = vertex
    text = f"{lat:.5f}, {lng:.5f}"
    suffix = {'Polygon': ' (polygon)', 'MultiPolygon': ' (multipolygon)'}.get(geometry.get('type'), '')
    return text + suffix
