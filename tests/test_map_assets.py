import json

import pandas as pd

from floodhub import details, map_assets
from floodhub.region_stats import RegionStats
from floodhub.regions import find_region


def _trace(idx, coordinates):
    return details.build_trace_detail(
        {
            'id': f'trace.{idx}',
            'properties': {'stdg_sgg_cd': '4111012345', 'fldn_dstr_nm': 'Ingye-dong', 'fldn_dowa': 30},
            'geometry': {'type': 'Point', 'coordinates': coordinates},
        },
        idx,
    )


def _facility(idx, grade, coordinates=(127.02, 37.27)):
    return details.build_facility_detail(
        {
            'id': f'facility.{idx}',
            'properties': {
                'bldg_nm': f'Building {idx}',
                'flod_dngr_grd': grade,
                'ntn_rvr_yr200_freq_rnfl_fldn_yn': 'Y',
                'udgd_nofl': 1,
            },
            'geometry': {'type': 'Point', 'coordinates': list(coordinates)},
        },
        idx,
    )


def test_risk_grade_color():
    assert map_assets.risk_grade_color(5)['color'] == '#dc2626'
    assert map_assets.risk_grade_color(4)['fillColor'] == '#f59e0b'
    assert map_assets.risk_grade_color(None) == map_assets.DEFAULT_GRADE_COLOR
    assert map_assets.risk_grade_color(1) == map_assets.DEFAULT_GRADE_COLOR


def test_markers_skip_unplottable_records():
    traces = [_trace(0, [127.03, 37.26]), _trace(1, [0.0, 0.0])]
    markers = map_assets.build_trace_markers(traces)
    assert len(markers) == 1
    assert markers[0]['lat'] == 37.26
    assert markers[0]['lng'] == 127.03
    assert markers[0]['floodDepth'] == 30.0


def test_facility_markers_carry_grade_colors():
    markers = map_assets.build_facility_markers([_facility(0, 5), _facility(1, 3)])
    assert [m['riskGrade'] for m in markers] == [5, 3]
    assert markers[0]['color'] == '#dc2626'
    assert markers[1]['color'] == '#ea580c'
    assert markers[0]['reasons'] == ['National river flood zone (basement 1 floors)']


def test_build_and_write_map_payload(tmp_path, capsys):
    region = find_region('수원시')
    stats = RegionStats(flood_danger_idx=0.9, flood_danger_rank=1, flood_trace_count=2, weak_facility_count=1)
    traces = [_trace(0, [127.03, 37.26]), _trace(1, [0.0, 0.0])]
    payload = map_assets.build_map_payload(region, stats, traces, [_facility(0, 4)], layer_id='risk-rank')

    assert payload['region']['code'] == '41110'
    assert payload['dangerLevel'] == {'label': 'High', 'styleTag': 'risk-high'}
    assert payload['recommendations'][0]['id'] == 'building'
    assert payload['recommendations'][0]['is_priority'] is True
    assert payload['wms']['layers'] == 'spggcee:tm_sigun_flod_dngr_evl_rnk'
    assert payload['summary'] == {'traces': 2, 'plottableTraces': 1, 'facilities': 1, 'plottableFacilities': 1}

    path = map_assets.write_map_payload(payload, tmp_path / 'out')
    assert path.name == 'flood_data.json'
    saved = json.loads(path.read_text(encoding='utf-8'))
    assert saved['region']['name'] == '수원시'
    assert 'Wrote' in capsys.readouterr().out


def test_details_frame_flattens_records():
    df = map_assets.details_frame([_facility(0, 4), _facility(1, 5, coordinates=(0.0, 0.0))])
    assert 'geometry' not in df.columns
    assert 'properties' not in df.columns
    assert 'position' not in df.columns
    assert df.loc[0, 'latitude'] == 37.27
    assert pd.isna(df.loc[1, 'latitude'])
    assert df.loc[0, 'vulnerability_reasons'] == 'National river flood zone (basement 1 floors)'


def test_details_frame_empty():
    assert map_assets.details_frame([]).empty


def test_write_details_csv(tmp_path):
    path = tmp_path / 'exports' / 'traces.csv'
    map_assets.write_details_csv([_trace(0, [127.03, 37.26])], path)
    df = pd.read_csv(path)
    assert list(df['id']) == ['trace.0']
    assert df.loc[0, 'district_name'] == 'Ingye-dong'
