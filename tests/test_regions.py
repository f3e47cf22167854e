import pytest

from floodhub import regions


def test_thirty_one_unique_regions():
    assert len(regions.GYEONGGI_CITIES) == 31
    assert len({r.id for r in regions.GYEONGGI_CITIES}) == 31
    assert len({r.code for r in regions.GYEONGGI_CITIES}) == 31
    assert all(r.code.startswith('41') and len(r.code) == 5 for r in regions.GYEONGGI_CITIES)
    assert sum(r.name.endswith('군') for r in regions.GYEONGGI_CITIES) == 3


def test_default_region_is_suwon():
    assert regions.DEFAULT_REGION.name == '수원시'
    assert regions.region_names()[0] == '수원시'


def test_find_region_by_name_code_or_id():
    assert regions.find_region('성남시').id == 'seongnam'
    assert regions.find_region('41280').name == '고양시'
    assert regions.find_region('yeoncheon').code == '41800'
    assert regions.find_region('성남') is None


def test_search_region_matches_city_then_district():
    region, district = regions.search_region('수원')
    assert region.id == 'suwon'
    assert district is None

    region, district = regions.search_region(' 분당 ')
    assert region.id == 'seongnam'
    assert district.name == '분당구'
    assert district.center == (37.3825, 127.1194)


def test_search_region_misses_and_blank():
    assert regions.search_region('서울') is None
    with pytest.raises(ValueError):
        regions.search_region('   ')
