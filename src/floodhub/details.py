"""Per-region detail lists: flood traces and flood-vulnerable facilities."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from floodhub import climate_api
from floodhub.geometry import LatLng, extract_position, format_coordinates

logger = logging.getLogger(__name__)

RISK_GRADE_LABELS = {
    0: 'Safe',
    1: 'Low',
    2: 'Moderate',
    3: 'Caution',
    4: 'Warning',
    5: 'Danger',
}
MAX_RISK_GRADE = 5

UNCLASSIFIED = 'unclassified'
ADDRESS_NOT_PROVIDED = 'not provided'

# (flag, zone info label, reason label) in the order the reasons are evaluated.
FLOOD_ZONE_REASONS = (
    (climate_api.NATIONAL_RIVER_FLAG, 'National river flood', 'National river flood zone'),
    (climate_api.LOCAL_RIVER_FLAG, 'Local river flood', 'Local river flood zone'),
    (climate_api.URBAN_FLOOD_FLAG, 'Urban flood', 'Urban flood zone'),
)


@dataclass(frozen=True)
class FloodTraceDetail:
    id: str
    region_code: str
    district_name: Optional[str]
    cause_detail: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    flood_depth: Optional[float]  # cm
    flood_area: Optional[float]  # m²
    geometry_type: str
    coordinates: str
    geometry: Optional[Dict[str, Any]]
    position: Optional[LatLng]
    has_detail_info: bool
    properties: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class WeakFacilityDetail:
    id: str
    facility_name: str
    facility_type: str
    address: str
    coordinates: str
    geometry: Optional[Dict[str, Any]]
    position: Optional[LatLng]
    risk_grade: Optional[int]
    risk_level: Optional[str]
    risk_criteria_year: Optional[str]
    vulnerability_reasons: Tuple[str, ...]
    flood_zone_info: Tuple[str, ...]
    has_basement: bool
    is_old_building: bool
    has_earthquake_design: bool
    properties: Dict[str, Any] = field(default_factory=dict, repr=False)


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if math.isfinite(number) else None


def _parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def risk_grade_label(grade: Any) -> Optional[str]:
    number = parse_int(grade)
    if number is None:
        return None
    return RISK_GRADE_LABELS.get(number, f"Grade {number}")


def _facility_name(props: Dict[str, Any], idx: int) -> str:
    building = props.get('bldg_nm') or ''
    detail = props.get('bldg_dtl_nm') or ''
    usage = props.get('main_usg_nm') or ''
    if building and detail and building != detail:
        return f"{building} ({detail})"
    return building or detail or usage or f"Facility {idx + 1}"


def _address_summary(props: Dict[str, Any]) -> str:
    ground = parse_int(props.get('grnd_nofl'))
    basement = parse_int(props.get('udgd_nofl'))
    approval_date = props.get('use_aprv_ymd')
    parts = []
    if ground:
        parts.append(f"ground {ground} floors")
    if basement:
        parts.append(f"basement {basement} floors")
    summary = ', '.join(parts)
    if approval_date:
        summary = f"{summary} (approved: {approval_date})" if summary else f"approved: {approval_date}"
    return summary or ADDRESS_NOT_PROVIDED


def vulnerability_reasons(props: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """Return (reasons, flood zone labels) for a weak-facility record.

    Every true flood-zone flag yields one reason. The basement floor count is
    folded into the reason of the first true flag only; a basement with no
    flood-zone flag is not a reason on its own.
    """
    basement = parse_int(props.get('udgd_nofl'))
    has_basement = basement is not None and basement >= 1
    reasons: List[str] = []
    zones: List[str] = []
    basement_noted = False
    for flag, zone_label, reason_label in FLOOD_ZONE_REASONS:
        if props.get(flag) != 'Y':
            continue
        zones.append(zone_label)
        if has_basement and not basement_noted:
            reasons.append(f"{reason_label} (basement {basement} floors)")
            basement_noted = True
        else:
            reasons.append(reason_label)
    return reasons, zones


def _properties(feature: Dict[str, Any]) -> Dict[str, Any]:
    props = feature.get('properties')
    return props if isinstance(props, dict) else {}


def build_facility_detail(feature: Dict[str, Any], idx: int) -> WeakFacilityDetail:
    props = _properties(feature)
    geometry = feature.get('geometry') or None
    grade = parse_int(props.get('flod_dngr_grd'))
    basement = parse_int(props.get('udgd_nofl'))
    reasons, zones = vulnerability_reasons(props)
    return WeakFacilityDetail(
        id=feature.get('id') or f"facility-{idx}",
        facility_name=_facility_name(props, idx),
        facility_type=props.get('bdrg_knd_nm') or props.get('main_usg_nm') or UNCLASSIFIED,
        address=_address_summary(props),
        coordinates=format_coordinates(geometry),
        geometry=geometry,
        position=extract_position(geometry),
        risk_grade=grade if grade is not None and 0 <= grade <= MAX_RISK_GRADE else None,
        risk_level=risk_grade_label(grade),
        risk_criteria_year=props.get('flod_dngr_crtr_yr') or None,
        vulnerability_reasons=tuple(reasons),
        flood_zone_info=tuple(zones),
        has_basement=basement is not None and basement >= 1,
        is_old_building=props.get('use_aprv_day_20yr_ovr_yn') == 'Y',
        has_earthquake_design=props.get('etrs_design_yn') == 'Y',
        properties=props,
    )


def build_trace_detail(feature: Dict[str, Any], idx: int) -> FloodTraceDetail:
    props = _properties(feature)
    geometry = feature.get('geometry') or None
    district = props.get('fldn_dstr_nm') or None
    cause = props.get('fldn_cs_dtl_expln') or None
    start = props.get('fldn_bgng_ymd') or None
    end = props.get('fldn_end_ymd') or None
    depth = _parse_float(props.get('fldn_dowa'))
    area = _parse_float(props.get('fldn_area'))
    return FloodTraceDetail(
        id=feature.get('id') or f"trace-{idx}",
        region_code=props.get('stdg_sgg_cd') or '',
        district_name=district,
        cause_detail=cause,
        start_date=start,
        end_date=end,
        flood_depth=depth,
        flood_area=area,
        geometry_type=geometry.get('type', '') if isinstance(geometry, dict) else '',
        coordinates=format_coordinates(geometry),
        geometry=geometry,
        position=extract_position(geometry),
        has_detail_info=bool(district or cause or start or depth),
        properties=props,
    )


def _log_sample(label: str, features: List[Dict[str, Any]]) -> None:
    if features and logger.isEnabledFor(logging.DEBUG):
        sample = features[0]
        logger.debug(f"{label} attributes: {sorted(_properties(sample).keys())}")
        logger.debug(f"{label} geometry: {sample.get('geometry')}")


def fetch_trace_details(sigun_code: str) -> List[FloodTraceDetail]:
    try:
        prefix = climate_api.cql_quote(climate_api.region_prefix(sigun_code))
        data = climate_api.wfs_get_feature(
            climate_api.FLOOD_TRACE_TYPE,
            cql_filter=f"stdg_sgg_cd LIKE '{prefix}%'",
            max_features=climate_api.DETAIL_MAX_FEATURES,
        )
        features = data.get('features') or []
        _log_sample('Flood trace', features)
        return [build_trace_detail(feature, idx) for idx, feature in enumerate(features)]
    except Exception as exc:
        logger.error(f"Flood trace detail lookup failed for {sigun_code}: {exc}")
        return []


def fetch_facility_details(sigun_code: str) -> List[WeakFacilityDetail]:
    try:
        data = climate_api.wfs_get_feature(
            climate_api.WEAK_FACILITY_TYPE,
            cql_filter=climate_api.weak_facility_filter(climate_api.region_prefix(sigun_code)),
            max_features=climate_api.DETAIL_MAX_FEATURES,
        )
        features = data.get('features') or []
        _log_sample('Weak facility', features)
        return [build_facility_detail(feature, idx) for idx, feature in enumerate(features)]
    except Exception as exc:
        logger.error(f"Weak facility detail lookup failed for {sigun_code}: {exc}")
        return []
