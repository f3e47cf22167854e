"""Thin client for the Gyeonggi climate platform GeoServer (WFS queries, WMS layers)."""
from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

WMS_BASE_URL = os.environ.get('GG_WMS_BASE_URL', 'https://climate.gg.go.kr/ols/api/geoserver/wms')
WFS_BASE_URL = os.environ.get('GG_WFS_BASE_URL', WMS_BASE_URL.replace('/wms', '/wfs'))
API_KEY = os.environ.get('GG_API_KEY', '')
WFS_TIMEOUT = float(os.environ.get('GG_WFS_TIMEOUT', 10))

DANGER_RANK_TYPE = 'spggcee:tm_sigun_flod_dngr_evl_rnk'
FLOOD_TRACE_TYPE = 'spggcee:tm_fldn_trce'
WEAK_FACILITY_TYPE = 'spggcee:flod_weak_fclt'

# Flood-zone membership flags on the weak-facility layer, in evaluation order.
NATIONAL_RIVER_FLAG = 'ntn_rvr_yr200_freq_rnfl_fldn_yn'
LOCAL_RIVER_FLAG = 'lcl_rvr_yr100_freq_rnfl_fldn_yn'
URBAN_FLOOD_FLAG = 'cty_fldn_yr100_freq_rnfl_fldn_yn'
FLOOD_ZONE_FLAGS = (NATIONAL_RIVER_FLAG, LOCAL_RIVER_FLAG, URBAN_FLOOD_FLAG)

WEAK_FACILITY_MIN_GRADE = 3
DETAIL_MAX_FEATURES = 500

WMS_LAYERS: List[Dict[str, str]] = [
    {'id': 'flood-trace', 'name': 'Flood traces', 'layer': FLOOD_TRACE_TYPE},
    {'id': 'weak-facility', 'name': 'Flood-vulnerable facilities', 'layer': WEAK_FACILITY_TYPE},
    {'id': 'risk-rank', 'name': 'Flood risk ranking', 'layer': DANGER_RANK_TYPE},
]


def region_prefix(code: str) -> str:
    return code[:5]


def cql_quote(value: str) -> str:
    return value.replace("'", "''")


def weak_facility_filter(prefix: str) -> str:
    zone_clause = ' OR '.join(f"{flag} = 'Y'" for flag in FLOOD_ZONE_FLAGS)
    return (
        f"sigun_cd LIKE '{cql_quote(prefix)}%'"
        f" AND flod_dngr_grd >= {WEAK_FACILITY_MIN_GRADE}"
        f" AND ({zone_clause})"
    )


def wfs_get_feature(
    type_name: str,
    property_name: Optional[str] = None,
    cql_filter: Optional[str] = None,
    max_features: Optional[int] = None,
    srs_name: str = 'EPSG:4326',
) -> Dict:
    params = {
        'apiKey': API_KEY,
        'service': 'WFS',
        'request': 'GetFeature',
        'typeName': type_name,
        'outputFormat': 'application/json',
        'srsName': srs_name,
    }
    if property_name:
        params['propertyName'] = property_name
    if cql_filter:
        params['CQL_FILTER'] = cql_filter
    if max_features:
        params['maxFeatures'] = str(max_features)
    logger.debug(f"WFS GetFeature {type_name} filter={cql_filter}")
    response = requests.get(WFS_BASE_URL, params=params, timeout=WFS_TIMEOUT)
    response.raise_for_status()
    return response.json()


def find_wms_layer(layer_id: str) -> Dict[str, str]:
    """Return the layer with ``layer_id``, falling back to the first one."""
    return next((layer for layer in WMS_LAYERS if layer['id'] == layer_id), WMS_LAYERS[0])


def wms_tile_params(layer_id: str) -> Dict[str, str]:
    layer = find_wms_layer(layer_id)
    return {
        'url': WMS_BASE_URL,
        'apiKey': API_KEY,
        'layers': layer['layer'],
        'format': 'image/png',
        'transparent': 'true',
    }
