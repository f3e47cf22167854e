"""Rank flood-mitigation solution categories for a region and match partners."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from floodhub.region_stats import HIGH, RegionStats

TRACE_COUNT_THRESHOLD = 5
FACILITY_COUNT_THRESHOLD = 10


@dataclass(frozen=True)
class Recommendation:
    id: str
    title: str
    description: str
    reason: str
    tags: Tuple[str, ...]
    score: int = 0
    is_priority: bool = False


# Declared order doubles as the tie-break order.
SOLUTION_RECOMMENDATIONS: Tuple[Recommendation, ...] = (
    Recommendation(
        id='infiltration',
        title='Infiltration',
        description='Lets rainwater soak into the ground to cut surface runoff.',
        reason='Many recorded flood traces and a high share of sealed surfaces.',
        tags=('permeable blocks', 'infiltration trench', 'infiltration gutter'),
    ),
    Recommendation(
        id='storage',
        title='Storage',
        description='Holds rainwater temporarily to flatten peak runoff.',
        reason='Storm drains risk overflowing during intense rainfall.',
        tags=('detention tank', 'rain barrel', 'underground storage'),
    ),
    Recommendation(
        id='building',
        title='Building hardening',
        description='Reinforces buildings and basements against flooding.',
        reason='Many vulnerable facilities at grade 3 or above.',
        tags=('flood barrier', 'backflow valve', 'drainage pump'),
    ),
    Recommendation(
        id='smart',
        title='Smart monitoring',
        description='Watches water levels in real time with IoT sensors.',
        reason='Close to rivers; needs forecast-linked alerts.',
        tags=('water level sensor', 'CCTV', 'AI forecasting'),
    ),
)


def score_solutions(stats: RegionStats) -> Dict[str, int]:
    scores = {rec.id: 0 for rec in SOLUTION_RECOMMENDATIONS}
    if stats.danger_level == HIGH:
        scores['building'] += 3
        scores['storage'] += 2
    if (stats.flood_trace_count or 0) >= TRACE_COUNT_THRESHOLD:
        scores['storage'] += 3
        scores['infiltration'] += 2
    if (stats.weak_facility_count or 0) >= FACILITY_COUNT_THRESHOLD:
        scores['smart'] += 3
        scores['building'] += 1
    # infiltration is the default pick
    scores['infiltration'] += 1
    return scores


def rank_solutions(stats: RegionStats) -> List[Recommendation]:
    """Order the four categories by score; exactly the first one is the priority.

    The sort is stable, so equal scores keep the declared order.
    """
    scores = score_solutions(stats)
    ranked = sorted(SOLUTION_RECOMMENDATIONS, key=lambda rec: scores[rec.id], reverse=True)
    return [
        replace(rec, score=scores[rec.id], is_priority=(idx == 0))
        for idx, rec in enumerate(ranked)
    ]


def top_recommendations(stats: RegionStats, k: int = 3) -> List[Recommendation]:
    return rank_solutions(stats)[:k]


# -----------------------------------------------------------------------------------------------
# Partner matching

SOLUTION_CATEGORIES: Tuple[Dict[str, str], ...] = (
    {'id': 'infiltration', 'name': 'permeable'},
    {'id': 'storage', 'name': 'storage'},
    {'id': 'disaster', 'name': 'flood barrier'},
    {'id': 'smart', 'name': 'sensor'},
    {'id': 'construction', 'name': 'construction'},
    {'id': 'maintenance', 'name': 'maintenance'},
)


@dataclass(frozen=True)
class Partner:
    id: str
    name: str
    summary: str
    categories: Tuple[str, ...]
    case_study: str
    badges: Tuple[str, ...]
    website: Optional[str] = None


SAMPLE_PARTNERS: Tuple[Partner, ...] = (
    Partner(
        id='1',
        name='Westec Global',
        summary='Interlocking permeable blocks and retaining wall blocks',
        categories=('permeable blocks', 'retaining wall blocks'),
        case_study='Supplies infiltration solutions',
        badges=('poc', 'construction'),
        website='https://westec-g.com:53538/main/main.php',
    ),
    Partner(
        id='2',
        name='Green Infra',
        summary='Permeable paving and infiltration facilities',
        categories=('permeable blocks', 'infiltration trench'),
        case_study='PoC completed in Yeongtong-gu, Suwon',
        badges=('poc', 'construction'),
    ),
    Partner(
        id='3',
        name='Smart Water Tech',
        summary='IoT stormwater management',
        categories=('water level sensor', 'CCTV'),
        case_study='Pilot running in Bundang-gu, Seongnam',
        badges=('poc', 'dataLink'),
    ),
    Partner(
        id='4',
        name='Korea Flood Defense Solutions',
        summary='Building flood protection equipment',
        categories=('flood barrier', 'backflow valve'),
        case_study='Five installations in Anyang',
        badges=('construction',),
    ),
)


def _category_name(category_id: str) -> Optional[str]:
    return next((c['name'] for c in SOLUTION_CATEGORIES if c['id'] == category_id), None)


def filter_partners(category_id: Optional[str] = None, keyword: str = '') -> List[Partner]:
    """Partners matching the selected category and the free-text keyword.

    A category matches a partner tag that equals or contains the category
    name. The keyword is matched case-insensitively against name, summary and
    tags.
    """
    category_name = _category_name(category_id) if category_id else None
    needle = keyword.strip().lower()
    matches = []
    for partner in SAMPLE_PARTNERS:
        # an unknown category id filters nothing
        if category_name and not any(category_name in tag for tag in partner.categories):
            continue
        if needle:
            haystack = [partner.name, partner.summary, *partner.categories]
            if not any(needle in text.lower() for text in haystack):
                continue
        matches.append(partner)
    return matches
