import pytest

from floodhub import geometry


def test_point_swaps_to_lat_lng():
    pos = geometry.extract_position({'type': 'Point', 'coordinates': [127.0286, 37.2636]})
    assert pos == (37.2636, 127.0286)


def test_polygon_and_multipolygon_use_first_vertex():
    polygon = {
        'type': 'Polygon',
        'coordinates': [[[126.95, 37.40], [126.96, 37.41], [126.97, 37.40], [126.95, 37.40]]],
    }
    multi = {
        'type': 'MultiPolygon',
        'coordinates': [
            [[[127.10, 37.30], [127.11, 37.31], [127.10, 37.30]]],
            [[[127.50, 37.90], [127.51, 37.91], [127.50, 37.90]]],
        ],
    }
    assert geometry.extract_position(polygon) == (37.40, 126.95)
    assert geometry.extract_position(multi) == (37.30, 127.10)


@pytest.mark.parametrize(
    'geom',
    [
        None,
        {},
        'POINT(127 37)',
        {'type': 'Point'},
        {'type': 'Point', 'coordinates': []},
        {'type': 'Point', 'coordinates': ['127.0', '37.2']},
        {'type': 'Polygon', 'coordinates': []},
        {'type': 'MultiPolygon', 'coordinates': [[]]},
        {'type': 'LineString', 'coordinates': [[127.0, 37.2], [127.1, 37.3]]},
    ],
)
def test_malformed_geometry_is_not_plottable(geom):
    assert geometry.extract_position(geom) is None


def test_out_of_range_degrees_rejected():
    # Tokyo: valid WGS84, outside the Gyeonggi box, too small to be projected.
    assert geometry.extract_position({'type': 'Point', 'coordinates': [139.69, 35.68]}) is None


def test_projected_coordinates_use_linear_approximation():
    pos = geometry.extract_position({'type': 'Point', 'coordinates': [1_045_000, 1_945_000]})
    assert pos is not None
    lat, lng = pos
    assert lat == pytest.approx(38.0 - 55_000 / 110_000)
    assert lng == pytest.approx(127.0 + 45_000 / 90_000)


def test_projected_coordinates_outside_box_after_transform():
    assert geometry.extract_position({'type': 'Point', 'coordinates': [5_000_000, 5_000_000]}) is None


def test_precise_mode_reprojects_with_pyproj():
    # False origin of EPSG:5186 sits at 38N 127E.
    geom = {'type': 'Point', 'coordinates': [200_000, 600_000]}
    assert geometry.extract_position(geom) is None
    lat, lng = geometry.extract_position(geom, precise=True)
    assert lat == pytest.approx(38.0, abs=1e-6)
    assert lng == pytest.approx(127.0, abs=1e-6)


def test_format_coordinates():
    assert geometry.format_coordinates({'type': 'Point', 'coordinates': [127.0286, 37.2636]}) == '37.26360, 127.02860'
    polygon = {'type': 'Polygon', 'coordinates': [[[126.9, 37.4], [127.0, 37.5]]]}
    assert geometry.format_coordinates(polygon) == '37.40000, 126.90000 (polygon)'
    assert geometry.format_coordinates({'type': 'Point'}) == ''
    assert geometry.format_coordinates(None) == ''
