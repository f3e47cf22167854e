import json

import pytest

from floodhub import store
from floodhub.storage import LocalStorage


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / 'state')


def _add(state, report_id='abc1234'):
    return store.reduce(
        state,
        store.AddReport(
            location_text='Ingye-dong crossing',
            description='Road flooded',
            report_id=report_id,
            created_at='2024-07-15T14:30:00',
        ),
    )


def test_add_report_prepends_and_credits_points():
    state = store.AppState()
    first = _add(state, 'aaaaaaa')
    second = _add(first, 'bbbbbbb')

    assert [r.id for r in second.reports] == ['bbbbbbb', 'aaaaaaa']
    assert second.points == 20
    assert second.reports[0].points == store.REPORT_POINTS
    assert second.reports[0].region == state.region
    assert state.points == 0
    assert state.reports == ()


def test_redeem_rejections_return_same_state():
    state = store.AppState(points=500)
    assert store.reduce(state, store.RedeemReward('gs25')) is state
    assert store.reduce(state, store.RedeemReward('unknown')) is state


def test_redeem_twice_deducts_twice():
    state = store.AppState(points=2000)
    once = store.reduce(state, store.RedeemReward('gs25'))
    twice = store.reduce(once, store.RedeemReward('gs25'))
    assert once.points == 1200
    assert twice.points == 400
    assert store.reduce(twice, store.RedeemReward('gs25')) is twice


def test_set_region():
    region = store.SelectedRegion(sido='경기도', sigungu='성남시', eupmyeondong='분당구')
    assert store.reduce(store.AppState(), store.SetRegion(region)).region == region


def test_store_persists_defaults_on_first_load(storage):
    app = store.AppStore(storage)
    assert app.state == store.AppState()
    saved = storage.get(store.STORAGE_KEY)
    assert saved['points'] == 0
    assert [r['id'] for r in saved['rewards']] == ['gs25', 'cafe']


def test_store_round_trips_through_storage(storage):
    app = store.AppStore(storage)
    app.set_region(store.SelectedRegion(sido='경기도', sigungu='고양시'))
    app.add_report('Underpass', 'Water up to the kerb')

    reloaded = store.AppStore(storage)
    assert reloaded.state == app.state
    assert reloaded.state.points == 10
    assert reloaded.state.reports[0].region.sigungu == '고양시'
    assert len(reloaded.state.reports[0].id) == 7


def test_rejected_action_does_not_notify(storage):
    app = store.AppStore(storage)
    seen = []
    unsubscribe = app.subscribe(seen.append)

    app.redeem_reward('cafe')
    assert seen == []

    app.add_report('Gutter', 'Blocked')
    assert len(seen) == 1 and seen[0].points == 10

    unsubscribe()
    app.add_report('Gutter', 'Still blocked')
    assert len(seen) == 1


def test_unreadable_saved_state_falls_back_to_defaults(storage, tmp_path):
    path = tmp_path / 'state' / f"{store.STORAGE_KEY}.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({'points': 5}), encoding='utf-8')

    app = store.AppStore(storage)
    assert app.state == store.AppState()


def test_corrupt_json_reads_as_missing(storage, tmp_path):
    path = tmp_path / 'state' / 'broken.json'
    path.parent.mkdir(parents=True)
    path.write_text('{not json', encoding='utf-8')
    assert storage.get('broken', fallback=[]) == []


def test_report_cache_seeds_samples_and_persists(storage):
    cache = store.ReportCache(storage)
    assert len(cache.reports) == 5
    assert [r.id for r in cache.by_status('confirmed')] == ['report-001', 'report-003', 'report-005']
    assert [r.id for r in cache.by_type('drainage')] == ['report-002']

    added = cache.add(37.3, 127.0, '수원시 장안구', 'flood', 'Flooded parking lot')
    assert added.status == 'pending'
    assert added.id.startswith('report-')
    assert cache.get(added.id) == added

    reloaded = store.ReportCache(storage)
    assert len(reloaded.reports) == 6
    assert reloaded.get(added.id) == added


def test_report_cache_rejects_unknown_type(storage):
    cache = store.ReportCache(storage)
    with pytest.raises(ValueError):
        cache.add(37.3, 127.0, 'somewhere', 'fire', 'Smoke')
    assert len(cache.reports) == 5
