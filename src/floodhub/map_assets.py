"""Build the marker payload fed to the map viewer, and tabular exports of detail lists."""
from __future__ import annotations

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from floodhub import climate_api
from floodhub.details import FloodTraceDetail, WeakFacilityDetail
from floodhub.recommend import rank_solutions
from floodhub.region_stats import RegionStats
from floodhub.regions import CITY_ZOOM, Region

PAYLOAD_FILENAME = 'flood_data.json'

GRADE_COLORS = {
    3: {'color': '#ea580c', 'fillColor': '#fb923c'},  # caution, orange
    4: {'color': '#b45309', 'fillColor': '#f59e0b'},  # warning, amber
    5: {'color': '#dc2626', 'fillColor': '#ef4444'},  # danger, red
}
DEFAULT_GRADE_COLOR = {'color': '#6b7280', 'fillColor': '#9ca3af'}
TRACE_COLOR = {'color': '#dc2626', 'fillColor': '#ef4444'}

# Columns left out of tabular exports.
_RAW_COLUMNS = {'geometry', 'properties'}


def risk_grade_color(grade: Optional[int]) -> Dict[str, str]:
    return dict(GRADE_COLORS.get(grade, DEFAULT_GRADE_COLOR))


def build_trace_markers(traces: Sequence[FloodTraceDetail]) -> List[Dict]:
    return [
        {
            'id': trace.id,
            'index': idx,
            'lat': trace.position[0],
            'lng': trace.position[1],
            'districtName': trace.district_name,
            'causeDetail': trace.cause_detail,
            'startDate': trace.start_date,
            'endDate': trace.end_date,
            'floodDepth': trace.flood_depth,
            'floodArea': trace.flood_area,
            **TRACE_COLOR,
        }
        for idx, trace in enumerate(traces)
        if trace.position is not None
    ]


def build_facility_markers(facilities: Sequence[WeakFacilityDetail]) -> List[Dict]:
    return [
        {
            'id': facility.id,
            'index': idx,
            'lat': facility.position[0],
            'lng': facility.position[1],
            'name': facility.facility_name,
            'type': facility.facility_type,
            'address': facility.address,
            'riskGrade': facility.risk_grade,
            'riskLevel': facility.risk_level,
            'reasons': list(facility.vulnerability_reasons),
            **risk_grade_color(facility.risk_grade),
        }
        for idx, facility in enumerate(facilities)
        if facility.position is not None
    ]


def build_map_payload(
    region: Region,
    stats: RegionStats,
    traces: Sequence[FloodTraceDetail],
    facilities: Sequence[WeakFacilityDetail],
    layer_id: str = 'flood-trace',
) -> Dict:
    level = stats.danger_level
    trace_markers = build_trace_markers(traces)
    facility_markers = build_facility_markers(facilities)
    return {
        'region': {
            'id': region.id,
            'name': region.name,
            'code': region.code,
            'center': list(region.center),
            'zoom': CITY_ZOOM,
        },
        'stats': {
            'floodDangerIdx': stats.flood_danger_idx,
            'floodDangerRank': stats.flood_danger_rank,
            'floodTraceCount': stats.flood_trace_count,
            'weakFacilityCount': stats.weak_facility_count,
            'error': stats.error,
        },
        'dangerLevel': {'label': level.label, 'styleTag': level.style_tag},
        'recommendations': [asdict(rec) for rec in rank_solutions(stats)],
        'wms': climate_api.wms_tile_params(layer_id),
        'layers': climate_api.WMS_LAYERS,
        'traceMarkers': trace_markers,
        'facilityMarkers': facility_markers,
        'summary': {
            'traces': len(traces),
            'plottableTraces': len(trace_markers),
            'facilities': len(facilities),
            'plottableFacilities': len(facility_markers),
        },
    }


def _display_path(path: Path) -> Path:
    try:
        return path.relative_to(Path.cwd())
    except ValueError:
        return path


def write_map_payload(payload: Dict, output_dir: Union[str, Path]) -> Path:
    path = Path(output_dir) / PAYLOAD_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
    print(f"✔️  Wrote {_display_path(path)}")
    return path


def details_frame(details: Sequence[Union[FloodTraceDetail, WeakFacilityDetail]]) -> pd.DataFrame:
    if not details:
        return pd.DataFrame()
    rows = []
    for detail in details:
        row = {f.name: getattr(detail, f.name) for f in fields(detail) if f.name not in _RAW_COLUMNS}
        position = row.pop('position', None)
        row['latitude'] = position[0] if position else None
        row['longitude'] = position[1] if position else None
        for key, value in row.items():
            if isinstance(value, tuple):
                row[key] = '; '.join(value)
        rows.append(row)
    return pd.DataFrame(rows)


def write_details_csv(details: Sequence[Union[FloodTraceDetail, WeakFacilityDetail]], path: Union[str, Path]) -> pd.DataFrame:
    path = Path(path)
    df = details_frame(details)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    print(f"✔️  Wrote {_display_path(path)}")
    return df
