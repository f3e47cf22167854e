"""Region statistics: danger index/rank, flood-trace count and weak-facility count."""
from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

from floodhub import climate_api
from floodhub.regions import Region

logger = logging.getLogger(__name__)

HIGH_DANGER_THRESHOLD = 0.8
MEDIUM_DANGER_THRESHOLD = 0.5


class DangerLevel(NamedTuple):
    label: str
    style_tag: str


NO_DATA = DangerLevel('—', 'no-data')
HIGH = DangerLevel('High', 'risk-high')
MEDIUM = DangerLevel('Medium', 'risk-mid')
LOW = DangerLevel('Low', 'risk-low')


def classify_danger(idx: Optional[float]) -> DangerLevel:
    if idx is None:
        return NO_DATA
    if idx >= HIGH_DANGER_THRESHOLD:
        return HIGH
    if idx >= MEDIUM_DANGER_THRESHOLD:
        return MEDIUM
    return LOW


@dataclass(frozen=True)
class FloodDanger:
    sigun_name: str
    sigun_code: str
    # Index (0..1, higher is worse) and rank (1 is worst) come from separate
    # evaluations; never derive one from the other.
    danger_idx: Optional[float]
    danger_rank: Optional[int]


@dataclass(frozen=True)
class RegionStats:
    flood_danger_idx: Optional[float] = None
    flood_danger_rank: Optional[int] = None
    flood_trace_count: Optional[int] = None
    weak_facility_count: Optional[int] = None
    loading: bool = False
    error: Optional[str] = None

    @classmethod
    def empty(cls, error: Optional[str] = None, loading: bool = False) -> 'RegionStats':
        return cls(loading=loading, error=error)

    @property
    def danger_level(self) -> DangerLevel:
        return classify_danger(self.flood_danger_idx)


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _name_keyword(name: str) -> str:
    # The rank table spells some names without the 시/군 suffix.
    return name.replace('시', '', 1).replace('군', '', 1)


def fetch_flood_danger(sigun_name: str) -> Optional[FloodDanger]:
    try:
        keyword = climate_api.cql_quote(_name_keyword(sigun_name))
        data = climate_api.wfs_get_feature(
            climate_api.DANGER_RANK_TYPE,
            property_name='sigun_nm,sigun_cd,flod_dngr_idx,flod_dng_rnk',
            cql_filter=f"sigun_nm LIKE '%{keyword}%'",
            max_features=1,
        )
        features = data.get('features') or []
        if not features:
            return None
        props = features[0].get('properties') or {}
        return FloodDanger(
            sigun_name=props.get('sigun_nm', ''),
            sigun_code=props.get('sigun_cd', ''),
            danger_idx=_optional_float(props.get('flod_dngr_idx')),
            danger_rank=_optional_int(props.get('flod_dng_rnk')),
        )
    except Exception as exc:
        logger.error(f"Flood danger lookup failed for {sigun_name}: {exc}")
        return None


def fetch_flood_trace_count(sigun_code: str) -> Optional[int]:
    try:
        prefix = climate_api.cql_quote(climate_api.region_prefix(sigun_code))
        data = climate_api.wfs_get_feature(
            climate_api.FLOOD_TRACE_TYPE,
            property_name='stdg_sgg_cd',
            cql_filter=f"stdg_sgg_cd LIKE '{prefix}%'",
        )
        features = data.get('features')
        if features is not None:
            return len(features)
        return 0
    except Exception as exc:
        logger.error(f"Flood trace count failed for {sigun_code}: {exc}")
        return None


def fetch_weak_facility_count(sigun_code: str) -> Optional[int]:
    try:
        data = climate_api.wfs_get_feature(
            climate_api.WEAK_FACILITY_TYPE,
            property_name='sigun_cd',
            cql_filter=climate_api.weak_facility_filter(climate_api.region_prefix(sigun_code)),
            # Only totalFeatures is needed.
            max_features=1,
        )
        if data.get('totalFeatures') is not None:
            return int(data['totalFeatures'])
        features = data.get('features')
        if features is not None:
            return len(features)
        return 0
    except Exception as exc:
        logger.error(f"Weak facility count failed for {sigun_code}: {exc}")
        return None


def fetch_region_stats(sigun_name: str, sigun_code: str) -> RegionStats:
    """Fan out the three region queries and merge whatever comes back.

    Each query degrades to ``None`` on its own; only a failure before the
    fan-out produces a record carrying ``error``. Nothing is cached.
    """
    try:
        if not sigun_name or not sigun_code:
            raise ValueError('Region name and code are required')
        with ThreadPoolExecutor(max_workers=3) as executor:
            danger_future = executor.submit(fetch_flood_danger, sigun_name)
            trace_future = executor.submit(fetch_flood_trace_count, sigun_code)
            facility_future = executor.submit(fetch_weak_facility_count, sigun_code)
            danger = danger_future.result()
            trace_count = trace_future.result()
            facility_count = facility_future.result()
    except Exception as exc:
        return RegionStats.empty(error=str(exc) or 'Unknown error')
    return RegionStats(
        flood_danger_idx=danger.danger_idx if danger else None,
        flood_danger_rank=danger.danger_rank if danger else None,
        flood_trace_count=trace_count,
        weak_facility_count=facility_count,
    )


class RegionStatsView:
    """Holds the stats of the currently selected region.

    Every load takes a token from a monotonic sequence; a response is applied
    only if its token is still the latest, so a slow response for a region the
    user already left cannot overwrite the newer one.
    """

    def __init__(self) -> None:
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()
        self._latest = 0
        self.stats = RegionStats.empty()

    def begin(self) -> int:
        with self._lock:
            token = next(self._sequence)
            self._latest = token
            self.stats = replace(self.stats, loading=True, error=None)
        return token

    def commit(self, token: int, stats: RegionStats) -> bool:
        with self._lock:
            if token != self._latest:
                logger.debug(f"Discarding stale region stats (token {token}, latest {self._latest})")
                return False
            self.stats = stats
            return True

    def load(self, region: Region) -> RegionStats:
        token = self.begin()
        self.commit(token, fetch_region_stats(region.name, region.code))
        return self.stats
