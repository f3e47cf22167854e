"""Client-side persistent state: region selection, reports, points and rewards.

State is an immutable snapshot. Every transition goes through ``reduce``, a
pure function; ``AppStore`` commits the new snapshot and only then mirrors it
to local storage. A second, independent slice (``ReportCache``) keeps the
legacy citizen report list.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from floodhub.regions import DEFAULT_REGION, SIDO
from floodhub.storage import LocalStorage

logger = logging.getLogger(__name__)

STORAGE_KEY = 'climate-safety-hub-mvp'
REPORTS_STORAGE_KEY = 'climate-safety-hub-reports'
REPORT_POINTS = 10


@dataclass(frozen=True)
class SelectedRegion:
    sido: str
    sigungu: str
    eupmyeondong: Optional[str] = None


@dataclass(frozen=True)
class Report:
    id: str
    region: SelectedRegion
    location_text: str
    description: str
    created_at: str
    points: int


@dataclass(frozen=True)
class Reward:
    id: str
    title: str
    cost: int


DEFAULT_REWARDS = (
    Reward(id='gs25', title='GS25 mobile voucher', cost=800),
    Reward(id='cafe', title='Neighbourhood cafe discount', cost=1500),
)


@dataclass(frozen=True)
class AppState:
    region: SelectedRegion = SelectedRegion(sido=SIDO, sigungu=DEFAULT_REGION.name)
    reports: Tuple[Report, ...] = ()
    points: int = 0
    rewards: Tuple[Reward, ...] = DEFAULT_REWARDS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppState':
        return cls(
            region=SelectedRegion(**data['region']),
            reports=tuple(
                Report(**{**report, 'region': SelectedRegion(**report['region'])})
                for report in data.get('reports', [])
            ),
            points=int(data.get('points', 0)),
            rewards=tuple(Reward(**reward) for reward in data.get('rewards', [])) or DEFAULT_REWARDS,
        )


# -----------------------------------------------------------------------------------------------
# Actions


@dataclass(frozen=True)
class LoadState:
    state: AppState


@dataclass(frozen=True)
class SetRegion:
    region: SelectedRegion


@dataclass(frozen=True)
class AddReport:
    location_text: str
    description: str
    report_id: str
    created_at: str


@dataclass(frozen=True)
class RedeemReward:
    reward_id: str


Action = Union[LoadState, SetRegion, AddReport, RedeemReward]


def reduce(state: AppState, action: Action) -> AppState:
    if isinstance(action, LoadState):
        return action.state
    if isinstance(action, SetRegion):
        return replace(state, region=action.region)
    if isinstance(action, AddReport):
        report = Report(
            id=action.report_id,
            region=state.region,
            location_text=action.location_text,
            description=action.description,
            created_at=action.created_at,
            points=REPORT_POINTS,
        )
        return replace(state, reports=(report, *state.reports), points=state.points + REPORT_POINTS)
    if isinstance(action, RedeemReward):
        reward = next((r for r in state.rewards if r.id == action.reward_id), None)
        if reward is None or state.points < reward.cost:
            return state
        # Not deduplicated: redeeming twice deducts twice.
        return replace(state, points=state.points - reward.cost)
    return state


class AppStore:
    def __init__(self, storage: Optional[LocalStorage] = None):
        self.storage = storage or LocalStorage()
        self.state = AppState()
        self._listeners: List[Callable[[AppState], None]] = []
        self._load()

    def _load(self) -> None:
        saved = self.storage.get(STORAGE_KEY)
        if not saved:
            self._persist()
            return
        try:
            loaded = AppState.from_dict(saved)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(f"Ignoring unreadable saved state: {exc}")
            self._persist()
            return
        self.dispatch(LoadState(loaded))

    def _persist(self) -> None:
        self.storage.set(STORAGE_KEY, self.state.to_dict())

    def dispatch(self, action: Action) -> AppState:
        next_state = reduce(self.state, action)
        if next_state is self.state:
            return self.state
        self.state = next_state
        self._persist()
        for listener in list(self._listeners):
            listener(next_state)
        return next_state

    def subscribe(self, listener: Callable[[AppState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_region(self, region: SelectedRegion) -> AppState:
        return self.dispatch(SetRegion(region))

    def add_report(self, location_text: str, description: str) -> AppState:
        return self.dispatch(
            AddReport(
                location_text=location_text,
                description=description,
                report_id=uuid.uuid4().hex[:7],
                created_at=datetime.now().isoformat(),
            )
        )

    def redeem_reward(self, reward_id: str) -> AppState:
        return self.dispatch(RedeemReward(reward_id))


# -----------------------------------------------------------------------------------------------
# Legacy citizen report cache

REPORT_TYPE_LABELS = {
    'flood': 'Flooding',
    'drainage': 'Drainage problem',
    'other': 'Other',
}


@dataclass(frozen=True)
class CitizenReport:
    id: str
    lat: float
    lng: float
    address: str
    type: str
    description: str
    created_at: str
    status: str = 'pending'


SAMPLE_REPORTS = (
    CitizenReport('report-001', 37.2636, 127.0286, '수원시 팔달구 인계동', 'flood',
                  'Water pools on the road whenever it rains.', '2024-07-15T14:30:00', 'confirmed'),
    CitizenReport('report-002', 37.4200, 127.1265, '성남시 수정구 신흥동', 'drainage',
                  'The storm drain keeps clogging and smells.', '2024-07-20T09:15:00', 'pending'),
    CitizenReport('report-003', 37.6584, 126.8320, '고양시 일산서구 대화동', 'flood',
                  'Underpass at risk of flooding.', '2024-08-01T16:45:00', 'confirmed'),
    CitizenReport('report-004', 37.5034, 126.7660, '부천시 원미구 중동', 'other',
                  'Drain cover on the gutter is broken.', '2024-08-05T11:20:00', 'resolved'),
    CitizenReport('report-005', 37.7381, 127.0337, '의정부시 의정부동', 'flood',
                  'Floods repeatedly during heavy rain.', '2024-08-10T08:00:00', 'confirmed'),
)


class ReportCache:
    def __init__(self, storage: Optional[LocalStorage] = None):
        self.storage = storage or LocalStorage()
        saved = self.storage.get(REPORTS_STORAGE_KEY)
        try:
            self.reports: List[CitizenReport] = (
                [CitizenReport(**item) for item in saved] if saved is not None else list(SAMPLE_REPORTS)
            )
        except TypeError as exc:
            logger.error(f"Ignoring unreadable report cache: {exc}")
            self.reports = list(SAMPLE_REPORTS)

    def add(self, lat: float, lng: float, address: str, type: str, description: str) -> CitizenReport:
        if type not in REPORT_TYPE_LABELS:
            raise ValueError(f"Unknown report type: {type}")
        report = CitizenReport(
            id=f"report-{int(time.time() * 1000)}",
            lat=lat,
            lng=lng,
            address=address,
            type=type,
            description=description,
            created_at=datetime.now().isoformat(),
        )
        self.reports = [*self.reports, report]
        self.storage.set(REPORTS_STORAGE_KEY, [asdict(r) for r in self.reports])
        return report

    def get(self, report_id: str) -> Optional[CitizenReport]:
        return next((r for r in self.reports if r.id == report_id), None)

    def by_type(self, type: str) -> List[CitizenReport]:
        return [r for r in self.reports if r.type == type]

    def by_status(self, status: str) -> List[CitizenReport]:
        return [r for r in self.reports if r.status == status]
