"""Signed-in user session on top of an identity provider and a document store.

Both collaborators are external managed services; this module only defines
the interfaces it needs from them. Auth state arrives as a stream of events
through a single subscription. Profile and report loads that follow an event
are time-boxed, and a timeout falls back to defaults instead of blocking.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

LOAD_TIMEOUT_S = 3.0
REPORT_POINTS = 10
DEFAULT_DISPLAY_NAME = 'User'

USERS = 'users'
REPORTS = 'reports'

_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix='floodhub-auth')


@dataclass(frozen=True)
class AuthUser:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    uid: str
    email: str
    display_name: str
    user_type: Optional[str]  # 'citizen' | 'business'
    points: int
    level: str
    report_count: int
    created_at: datetime


@dataclass(frozen=True)
class ReportRecord:
    id: str
    user_id: str
    type: str  # 'flood' | 'drain' | 'etc'
    address: str
    address_detail: str
    coordinates: str
    description: str
    contact: str
    status: str
    points: int
    created_at: datetime


AuthCallback = Callable[[Optional[AuthUser]], None]


class IdentityProvider(ABC):
    @abstractmethod
    def on_auth_state_changed(self, callback: AuthCallback) -> Callable[[], None]:
        """Register ``callback`` for auth events and return an unsubscribe function."""


class DocumentStore(ABC):
    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None: ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    @abstractmethod
    def query(self, collection: str, field: str, value: Any) -> List[Tuple[str, Dict[str, Any]]]: ...


def calculate_level(points: int) -> str:
    if points >= 500:
        return 'gold'
    if points >= 200:
        return 'silver'
    return 'bronze'


def with_timeout(fn: Callable[..., Any], *args: Any, timeout: float = LOAD_TIMEOUT_S) -> Any:
    # The call keeps running in its worker after a timeout; only the wait is abandoned.
    return _EXECUTOR.submit(fn, *args).result(timeout=timeout)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return datetime.now()


def default_profile(user: AuthUser) -> UserProfile:
    return UserProfile(
        uid=user.uid,
        email=user.email or '',
        display_name=user.display_name or DEFAULT_DISPLAY_NAME,
        user_type=None,
        points=0,
        level=calculate_level(0),
        report_count=0,
        created_at=datetime.now(),
    )


Listener = Callable[[Optional[AuthUser], Optional[UserProfile]], None]


class AuthSession:
    def __init__(self, provider: IdentityProvider, documents: DocumentStore, load_timeout: float = LOAD_TIMEOUT_S):
        self.provider = provider
        self.documents = documents
        self.load_timeout = load_timeout
        self.user: Optional[AuthUser] = None
        self.profile: Optional[UserProfile] = None
        self.reports: List[ReportRecord] = []
        self.loading = True
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: List[Listener] = []

    # ---------------- subscription ----------------
    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_auth_state_changed(self._on_auth_state)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.user, self.profile)

    def _on_auth_state(self, user: Optional[AuthUser]) -> None:
        try:
            self.user = user
            if user is None:
                self.profile = None
                self.reports = []
                return
            # A new user never keeps the previous user's profile or reports.
            self.profile = default_profile(user)
            self.reports = []
            try:
                self.profile = with_timeout(self._load_profile, user, timeout=self.load_timeout)
            except FuturesTimeout:
                logger.warning('Profile load timed out, using default profile')
            except Exception as exc:
                logger.warning(f"Profile load failed, using default profile: {exc}")
            try:
                self.reports = with_timeout(self._load_reports, user.uid, timeout=self.load_timeout)
            except FuturesTimeout:
                logger.warning('Report load timed out')
            except Exception as exc:
                logger.warning(f"Report load failed: {exc}")
        finally:
            self.loading = False
            self._notify()

    # ---------------- loaders ----------------
    def _load_profile(self, user: AuthUser) -> UserProfile:
        try:
            data = self.documents.get(USERS, user.uid)
            if not data:
                return default_profile(user)
            points = int(data.get('points') or 0)
            return UserProfile(
                uid=user.uid,
                email=data.get('email') or '',
                display_name=data.get('displayName') or DEFAULT_DISPLAY_NAME,
                user_type=data.get('userType'),
                points=points,
                level=calculate_level(points),
                report_count=int(data.get('reportCount') or 0),
                created_at=_to_datetime(data.get('createdAt')),
            )
        except Exception as exc:
            logger.warning(f"Failed to load profile: {exc}")
            return default_profile(user)

    def _load_reports(self, uid: str) -> List[ReportRecord]:
        try:
            rows = self.documents.query(REPORTS, 'userId', uid)
            reports = [
                ReportRecord(
                    id=doc_id,
                    user_id=data.get('userId', uid),
                    type=data.get('type', 'etc'),
                    address=data.get('address', ''),
                    address_detail=data.get('addressDetail', ''),
                    coordinates=data.get('coordinates', ''),
                    description=data.get('description', ''),
                    contact=data.get('contact', ''),
                    status=data.get('status', 'pending'),
                    points=int(data.get('points') or 0),
                    created_at=_to_datetime(data.get('createdAt')),
                )
                for doc_id, data in rows
            ]
            reports.sort(key=lambda r: r.created_at, reverse=True)
        except Exception as exc:
            logger.warning(f"Failed to load reports: {exc}")
            return []
        return reports

    def refresh_reports(self) -> None:
        if self.user is not None:
            self.reports = self._load_reports(self.user.uid)

    # ---------------- mutations ----------------
    def create_profile_document(self, user: AuthUser) -> None:
        """Create the user document unless it already exists."""
        if self.documents.get(USERS, user.uid):
            return
        self.documents.set(USERS, user.uid, {
            'email': user.email,
            'displayName': user.display_name or DEFAULT_DISPLAY_NAME,
            'userType': None,
            'points': 0,
            'reportCount': 0,
            'createdAt': datetime.now().isoformat(),
        })

    def update_user_type(self, user_type: str) -> None:
        if self.user is None:
            return
        self.documents.update(USERS, self.user.uid, {'userType': user_type})
        if self.profile is not None:
            self.profile = replace(self.profile, user_type=user_type)
            self._notify()

    def add_report(
        self,
        type: str,
        address: str,
        address_detail: str,
        coordinates: str,
        description: str,
        contact: str,
    ) -> bool:
        """Record a report for the signed-in user.

        Returns whether the document store accepted it. The local profile is
        credited either way.
        """
        if self.user is None or self.profile is None:
            return False
        uid = self.user.uid
        new_points = self.profile.points + REPORT_POINTS
        new_count = self.profile.report_count + 1
        saved = True
        try:
            with_timeout(self.documents.add, REPORTS, {
                'userId': uid,
                'type': type,
                'address': address,
                'addressDetail': address_detail,
                'coordinates': coordinates,
                'description': description,
                'contact': contact,
                'status': 'pending',
                'points': REPORT_POINTS,
                'createdAt': datetime.now().isoformat(),
            }, timeout=self.load_timeout)
            with_timeout(self.documents.update, USERS, uid, {
                'points': new_points,
                'reportCount': new_count,
            }, timeout=self.load_timeout)
        except FuturesTimeout:
            logger.warning('Saving the report to the document store timed out')
            saved = False
        except Exception as exc:
            logger.error(f"Failed to save report to the document store: {exc}")
            saved = False
        self.profile = replace(
            self.profile,
            points=new_points,
            report_count=new_count,
            level=calculate_level(new_points),
        )
        if saved:
            try:
                self.reports = with_timeout(self._load_reports, uid, timeout=self.load_timeout)
            except FuturesTimeout:
                logger.warning('Report reload timed out')
        self._notify()
        return saved
