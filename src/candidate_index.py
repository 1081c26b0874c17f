"""
Keyword and brand posting lists over the catalog.

Built once per catalog, read-only afterwards: posting lists are tuples of
catalog positions wrapped in MappingProxyType, so one index can be shared by
every batch of a run.

Retrieval is a weighted vote. A shared brand keyword is worth far more than
a shared bare number, so "华为 Mate 60" pulls Huawei records ahead of every
record that merely mentions a 60.
"""

import heapq
import logging
import time
from collections import defaultdict
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from catalog import CatalogRecord, record_fields
from extractors import BRAND_MAPPING, extract_attributes, normalize_brand

logger = logging.getLogger(__name__)

TOP_N_CANDIDATES = 100

BRAND_KEYWORD_WEIGHT = 10
SERIES_KEYWORD_WEIGHT = 8
SPEC_KEYWORD_WEIGHT = 5
DEFAULT_KEYWORD_WEIGHT = 1

BRAND_KEYWORDS = frozenset(BRAND_MAPPING)
SERIES_VOTE_KEYWORDS = frozenset([
    'iphone', 'ipad', 'macbook', 'mate', 'nova', 'pura', 'galaxy', 'reno',
    'find', 'ace', 'neo', 'watch', 'matebook', 'matepad', 'magic',
])
SPEC_VOTE_KEYWORDS = frozenset(['pro', 'max', 'plus', 'ultra', 'air', 'mini', 'turbo', 'se'])


class CandidateIndex(NamedTuple):
    records: Tuple[CatalogRecord, ...]
    keyword_postings: Mapping[str, Tuple[int, ...]]
    brand_postings: Mapping[str, Tuple[int, ...]]


def keyword_weight(keyword: str) -> int:
    if keyword in BRAND_KEYWORDS:
        return BRAND_KEYWORD_WEIGHT
    if keyword in SERIES_VOTE_KEYWORDS:
        return SERIES_KEYWORD_WEIGHT
    if keyword in SPEC_VOTE_KEYWORDS:
        return SPEC_KEYWORD_WEIGHT
    return DEFAULT_KEYWORD_WEIGHT


def _record_brand(record: CatalogRecord) -> Optional[str]:
    """First brand found in name, then secondary name, then the brand field."""
    for text in (record.name, record.secondary_name):
        if text:
            brand = extract_attributes(text).brand
            if brand:
                return brand
    return normalize_brand(record.brand) or None


def _freeze(postings: Dict[str, List[int]]) -> Mapping[str, Tuple[int, ...]]:
    return MappingProxyType({key: tuple(positions) for key, positions in postings.items()})


def build_candidate_index(records: Iterable[CatalogRecord]) -> CandidateIndex:
    """
    Index every record's keywords (name, secondary name, secondary+spec)
    and its brand.

    A record appears at most once per posting list. Positions are indices
    into the returned index's records tuple.
    """
    start = time.time()
    records = tuple(records)
    keyword_postings: Dict[str, List[int]] = defaultdict(list)
    brand_postings: Dict[str, List[int]] = defaultdict(list)

    for position, record in enumerate(records):
        keywords = set()
        for _, text in record_fields(record):
            keywords.update(extract_attributes(text).keywords)
        for keyword in keywords:
            keyword_postings[keyword].append(position)

        brand = _record_brand(record)
        if brand:
            brand_postings[brand].append(position)

    logger.info(
        "Candidate index built: %d records, %d keywords, %d brands in %.2fs",
        len(records), len(keyword_postings), len(brand_postings), time.time() - start,
    )
    return CandidateIndex(records, _freeze(keyword_postings), _freeze(brand_postings))


def query_candidates(index: CandidateIndex, text: str, top_n: int = TOP_N_CANDIDATES) -> List[CatalogRecord]:
    """
    Top-N records by weighted keyword vote, ties by catalog position.

    Records sharing no keyword with the text are never returned.
    """
    votes: Dict[int, int] = defaultdict(int)
    for keyword in extract_attributes(text).keywords:
        weight = keyword_weight(keyword)
        for position in index.keyword_postings.get(keyword, ()):
            votes[position] += weight

    ranked = heapq.nsmallest(top_n, votes.items(), key=lambda item: (-item[1], item[0]))
    return [index.records[position] for position, _ in ranked]


def candidates_for_brand(index: CandidateIndex, brand: str) -> List[CatalogRecord]:
    """All records of one brand id, in catalog order ([] for unknown brands)."""
    return [index.records[position] for position in index.brand_postings.get(brand, ())]
