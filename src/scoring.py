"""
Composite scoring between a row and catalog candidates.

    base  = 0.6 * edit-distance similarity (compact forms)
          + 0.4 * keyword Jaccard
    score = max(0, base - sum(penalties))

Penalties are vetoes: each fires only when an attribute is present on both
sides and disagrees. The two exceptions are version and capacity, where
naming it on one side only is itself suspicious ("X200 Pro" vs
"X200 Pro 活力版").

Wearables skip all of this when both sides are watches and
compare_watch_attributes() says they are the same product.
"""

import logging
import operator
from enum import Enum
from functools import reduce
from typing import Callable, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from catalog import CatalogRecord, record_fields
from extractors import AttributeSet, extract_attributes, series_base
from model_disambiguator import model_match_score, should_exclude_candidate
from version_extractor import versions_match
from watch_recognizer import compare_watch_attributes

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

SIMILARITY_WEIGHT = 0.6
KEYWORD_WEIGHT = 0.4

SHORT_MODEL_PENALTY = 0.7
FULL_MODEL_PARTIAL_FACTOR = 0.7       # * (1 - model score) for scores in (0, 1)
FULL_MODEL_MISMATCH_PENALTY = 0.8
SERIES_PENALTY = 0.8
PROCESSOR_PENALTY = 0.7
YEAR_PENALTY = 0.6
VERSION_MISMATCH_PENALTY = 0.8
VERSION_ONE_SIDED_PENALTY = 0.5
CAPACITY_MISMATCH_PENALTY = 0.6
CAPACITY_ONE_SIDED_PENALTY = 0.4
COLOR_PENALTY = 0.5
PRODUCT_TYPE_PENALTY = 0.5
SIZE_SMALL_GAP = 0.5                  # below: no penalty
SIZE_LARGE_GAP = 1.0                  # at or above: large penalty
SIZE_MEDIUM_PENALTY = 0.3
SIZE_LARGE_PENALTY = 0.7

WATCH_MATCH_SCORE = 0.95
EARLY_EXIT_SCORE = 0.98
EARLY_EXIT_MAX_REMAINING = 10


class ScoringConfig(NamedTuple):
    similarity_weight: float = SIMILARITY_WEIGHT
    keyword_weight: float = KEYWORD_WEIGHT
    short_model_penalty: float = SHORT_MODEL_PENALTY
    full_model_partial_factor: float = FULL_MODEL_PARTIAL_FACTOR
    full_model_mismatch_penalty: float = FULL_MODEL_MISMATCH_PENALTY
    series_penalty: float = SERIES_PENALTY
    processor_penalty: float = PROCESSOR_PENALTY
    year_penalty: float = YEAR_PENALTY
    version_mismatch_penalty: float = VERSION_MISMATCH_PENALTY
    version_one_sided_penalty: float = VERSION_ONE_SIDED_PENALTY
    capacity_mismatch_penalty: float = CAPACITY_MISMATCH_PENALTY
    capacity_one_sided_penalty: float = CAPACITY_ONE_SIDED_PENALTY
    color_penalty: float = COLOR_PENALTY
    product_type_penalty: float = PRODUCT_TYPE_PENALTY
    size_small_gap: float = SIZE_SMALL_GAP
    size_large_gap: float = SIZE_LARGE_GAP
    size_medium_penalty: float = SIZE_MEDIUM_PENALTY
    size_large_penalty: float = SIZE_LARGE_PENALTY
    watch_match_score: float = WATCH_MATCH_SCORE
    early_exit_score: float = EARLY_EXIT_SCORE
    early_exit_max_remaining: int = EARLY_EXIT_MAX_REMAINING


DEFAULT_CONFIG = ScoringConfig()


class Penalty(NamedTuple):
    signal: str
    amount: float


class MatchCandidate(NamedTuple):
    record: CatalogRecord
    field: str
    score: float
    penalties: Tuple[Penalty, ...] = ()


# ---------------------------------------------------------------------------
# Three-state attribute comparison
# ---------------------------------------------------------------------------

class Comparison(Enum):
    BOTH_ABSENT = 'both_absent'
    ONE_SIDED = 'one_sided'
    AGREE = 'agree'
    DISAGREE = 'disagree'


def compare_attribute(a, b, same: Callable = operator.eq) -> Comparison:
    """Absent (None) on one or both sides is never a disagreement."""
    if a is None and b is None:
        return Comparison.BOTH_ABSENT
    if a is None or b is None:
        return Comparison.ONE_SIDED
    return Comparison.AGREE if same(a, b) else Comparison.DISAGREE


def _same_series(a: str, b: str) -> bool:
    return a == b or series_base(a) == series_base(b)


def _colors_overlap(a, b) -> bool:
    return bool(a & b)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def base_score(a: AttributeSet, b: AttributeSet, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    if a.compact and b.compact:
        similarity = Levenshtein.normalized_similarity(a.compact, b.compact)
    else:
        similarity = 0.0
    union = a.keywords | b.keywords
    jaccard = len(a.keywords & b.keywords) / len(union) if union else 0.0
    return config.similarity_weight * similarity + config.keyword_weight * jaccard


def _size_penalty(a, b, config: ScoringConfig) -> float:
    if a.unit != b.unit:
        return config.size_large_penalty
    gap = abs(a.value - b.value)
    if gap < config.size_small_gap:
        return 0.0
    if gap < config.size_large_gap:
        return config.size_medium_penalty
    return config.size_large_penalty


def collect_penalties(a: AttributeSet, b: AttributeSet, config: ScoringConfig = DEFAULT_CONFIG) -> List[Penalty]:
    """Every veto that fires between two attribute sets, in a fixed order."""
    penalties = []

    def add(signal: str, amount: float):
        if amount > 0:
            penalties.append(Penalty(signal, amount))

    if compare_attribute(a.short_model, b.short_model) is Comparison.DISAGREE:
        add('short_model', config.short_model_penalty)

    if a.full_model and b.full_model:
        model_score = model_match_score(a.full_model, b.full_model)
        if model_score == 0.0:
            add('full_model', config.full_model_mismatch_penalty)
        elif model_score < 1.0:
            add('full_model', config.full_model_partial_factor * (1.0 - model_score))

    if compare_attribute(a.series, b.series, _same_series) is Comparison.DISAGREE:
        add('series', config.series_penalty)

    if compare_attribute(a.processor, b.processor) is Comparison.DISAGREE:
        add('processor', config.processor_penalty)

    if compare_attribute(a.year, b.year) is Comparison.DISAGREE:
        add('year', config.year_penalty)

    version = compare_attribute(a.version, b.version, versions_match)
    if version is Comparison.DISAGREE:
        add('version', config.version_mismatch_penalty)
    elif version is Comparison.ONE_SIDED:
        add('version', config.version_one_sided_penalty)

    capacity = compare_attribute(a.capacity, b.capacity)
    if capacity is Comparison.DISAGREE:
        add('capacity', config.capacity_mismatch_penalty)
    elif capacity is Comparison.ONE_SIDED:
        add('capacity', config.capacity_one_sided_penalty)

    if compare_attribute(a.colors, b.colors, _colors_overlap) is Comparison.DISAGREE:
        add('color', config.color_penalty)

    if compare_attribute(a.product_type, b.product_type) is Comparison.DISAGREE:
        add('product_type', config.product_type_penalty)

    if a.screen_size is not None and b.screen_size is not None:
        add('screen_size', _size_penalty(a.screen_size, b.screen_size, config))

    return penalties


def score_attributes(
    a: AttributeSet,
    b: AttributeSet,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> Tuple[float, List[Penalty]]:
    """
    Composite score in [0, 1] plus the penalties that produced it.

    Steps:
        1. Both watches and equivalent -> watch_match_score, no penalties
        2. Exactly one side a watch    -> 0
        3. base score minus every penalty, floored at 0
    """
    if a.watch is not None and b.watch is not None:
        if compare_watch_attributes(a.watch, b.watch):
            return config.watch_match_score, []
    elif a.watch is not None or b.watch is not None:
        return 0.0, [Penalty('watch_category', 1.0)]

    penalties = collect_penalties(a, b, config)
    score = base_score(a, b, config) - sum(p.amount for p in penalties)
    return min(1.0, max(0.0, score)), penalties


def score_texts(text_a: str, text_b: str, config: Optional[ScoringConfig] = None) -> Tuple[float, List[Penalty]]:
    """score_attributes() on raw text."""
    return score_attributes(extract_attributes(text_a), extract_attributes(text_b), config or DEFAULT_CONFIG)


def score_record(
    row: AttributeSet,
    record: CatalogRecord,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> MatchCandidate:
    """
    Best-scoring field of one catalog record against a row.

    The secondary name alone is skipped when the row names a color and the
    secondary name does not (an SPU name would match every color variant).
    A record whose model extends the row's with a variant suffix is
    excluded outright.
    """
    best = None
    for field, text in record_fields(record):
        attrs = extract_attributes(text)
        if field == 'secondary_name' and row.colors and not attrs.colors:
            continue
        if should_exclude_candidate(row.full_model, attrs.full_model):
            candidate = MatchCandidate(record, field, 0.0, (Penalty('model_variant', 1.0),))
        else:
            score, penalties = score_attributes(row, attrs, config)
            candidate = MatchCandidate(record, field, score, tuple(penalties))
        if best is None or candidate.score > best.score:
            best = candidate
    return best


# ---------------------------------------------------------------------------
# Best-candidate selection
# ---------------------------------------------------------------------------

def _scan_until_confident(candidates: Iterable[MatchCandidate], total: int, config: ScoringConfig) -> Iterator[MatchCandidate]:
    """Yield candidates in ranked order; stop after a near-certain one near the end."""
    for scanned, candidate in enumerate(candidates, 1):
        yield candidate
        if (candidate.score >= config.early_exit_score
                and not candidate.penalties
                and total - scanned <= config.early_exit_max_remaining):
            logger.debug("Early exit after %d/%d candidates (score %.3f)", scanned, total, candidate.score)
            return


def _keep_better(best: Optional[MatchCandidate], candidate: MatchCandidate) -> MatchCandidate:
    # strict '>' keeps the earlier candidate on ties
    if best is None or candidate.score > best.score:
        return candidate
    return best


def select_best(
    candidates: Iterable[MatchCandidate],
    threshold: float,
    total: int,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> Optional[MatchCandidate]:
    """Fold the ranked stream to its best candidate; None below threshold."""
    best = reduce(_keep_better, _scan_until_confident(candidates, total, config), None)
    if best is not None and best.score >= threshold:
        return best
    return None


def find_best_match(
    row: AttributeSet,
    records: List[CatalogRecord],
    threshold: float,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> Optional[MatchCandidate]:
    """Score records lazily in the given order and select the best."""
    scored = (score_record(row, record, config) for record in records)
    return select_best(scored, threshold, len(records), config)
