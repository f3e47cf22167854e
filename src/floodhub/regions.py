"""Static reference list of the 31 Gyeonggi-do cities and counties."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

SIDO = '경기도'

GYEONGGI_CENTER = (37.4138, 127.0183)
DEFAULT_ZOOM = 10
CITY_ZOOM = 12
DISTRICT_ZOOM = 14


@dataclass(frozen=True)
class District:
    id: str
    name: str
    center: Tuple[float, float]


@dataclass(frozen=True)
class Region:
    id: str
    name: str
    code: str  # administrative (sigun) code used by the WFS filters
    center: Tuple[float, float]
    districts: Tuple[District, ...] = field(default_factory=tuple)


def _region(id: str, name: str, code: str, lat: float, lng: float, *districts: Tuple[str, str, float, float]) -> Region:
    return Region(
        id=id,
        name=name,
        code=code,
        center=(lat, lng),
        districts=tuple(District(d_id, d_name, (d_lat, d_lng)) for d_id, d_name, d_lat, d_lng in districts),
    )


GYEONGGI_CITIES: Tuple[Region, ...] = (
    # cities (28)
    _region(
        'suwon', '수원시', '41110', 37.2636, 127.0286,
        ('jangan', '장안구', 37.3030, 127.0107),
        ('gwonseon', '권선구', 37.2578, 126.9717),
        ('paldal', '팔달구', 37.2822, 127.0195),
        ('yeongtong', '영통구', 37.2596, 127.0465),
    ),
    _region(
        'seongnam', '성남시', '41130', 37.4200, 127.1265,
        ('sujeong', '수정구', 37.4503, 127.1457),
        ('jungwon', '중원구', 37.4318, 127.1370),
        ('bundang', '분당구', 37.3825, 127.1194),
    ),
    _region(
        'goyang', '고양시', '41280', 37.6584, 126.8320,
        ('deogyang', '덕양구', 37.6376, 126.8320),
        ('ilsandong', '일산동구', 37.6586, 126.7742),
        ('ilsanseo', '일산서구', 37.6753, 126.7508),
    ),
    _region(
        'yongin', '용인시', '41460', 37.2411, 127.1776,
        ('cheoin', '처인구', 37.2342, 127.2003),
        ('giheung', '기흥구', 37.2802, 127.1152),
        ('suji', '수지구', 37.3219, 127.0987),
    ),
    _region(
        'bucheon', '부천시', '41190', 37.5034, 126.7660,
        ('sosa', '소사구', 37.4827, 126.7953),
        ('wonmi', '원미구', 37.5050, 126.7830),
        ('ojeong', '오정구', 37.5234, 126.7780),
    ),
    _region(
        'ansan', '안산시', '41270', 37.3219, 126.8309,
        ('sangnok', '상록구', 37.3048, 126.8468),
        ('danwon', '단원구', 37.3189, 126.7983),
    ),
    _region(
        'anyang', '안양시', '41170', 37.3943, 126.9568,
        ('manan', '만안구', 37.3866, 126.9322),
        ('dongan', '동안구', 37.3943, 126.9568),
    ),
    _region('namyangju', '남양주시', '41360', 37.6360, 127.2165),
    _region('hwaseong', '화성시', '41590', 37.1996, 126.8312),
    _region('pyeongtaek', '평택시', '41220', 36.9921, 127.1127),
    _region('uijeongbu', '의정부시', '41150', 37.7381, 127.0337),
    _region('siheung', '시흥시', '41390', 37.3800, 126.8028),
    _region('paju', '파주시', '41480', 37.7126, 126.7610),
    _region('gimpo', '김포시', '41570', 37.6153, 126.7156),
    _region('gwangmyeong', '광명시', '41210', 37.4786, 126.8644),
    _region('gwangju', '광주시', '41610', 37.4095, 127.2550),
    _region('gunpo', '군포시', '41410', 37.3616, 126.9352),
    _region('hanam', '하남시', '41450', 37.5393, 127.2148),
    _region('osan', '오산시', '41370', 37.1498, 127.0697),
    _region('icheon', '이천시', '41500', 37.2720, 127.4350),
    _region('anseong', '안성시', '41550', 37.0080, 127.2797),
    _region('uiwang', '의왕시', '41430', 37.3448, 126.9683),
    _region('yangju', '양주시', '41630', 37.7853, 127.0458),
    _region('guri', '구리시', '41310', 37.5943, 127.1295),
    _region('pocheon', '포천시', '41650', 37.8949, 127.2003),
    _region('dongducheon', '동두천시', '41250', 37.9035, 127.0606),
    _region('gwacheon', '과천시', '41290', 37.4292, 126.9876),
    _region('yeoju', '여주시', '41670', 37.2983, 127.6375),
    # counties (3)
    _region('yangpyeong', '양평군', '41830', 37.4917, 127.4875),
    _region('gapyeong', '가평군', '41820', 37.8315, 127.5095),
    _region('yeoncheon', '연천군', '41800', 38.0965, 127.0750),
)

DEFAULT_REGION = GYEONGGI_CITIES[0]


def find_region(key: str) -> Optional[Region]:
    """Look a region up by exact name, administrative code or id."""
    for region in GYEONGGI_CITIES:
        if key in (region.name, region.code, region.id):
            return region
    return None


def search_region(keyword: str) -> Optional[Tuple[Region, Optional[District]]]:
    """Resolve a free-text search the way the map search box does.

    The first city whose name contains the keyword, or which has a district
    whose name contains it, wins. The matching district is returned alongside
    when there is one.
    """
    query = keyword.strip()
    if not query:
        raise ValueError('Search keyword is empty')
    for region in GYEONGGI_CITIES:
        district = next((d for d in region.districts if query in d.name), None)
        if query in region.name or district is not None:
            return region, district
    return None


def region_names() -> List[str]:
    return [region.name for region in GYEONGGI_CITIES]
