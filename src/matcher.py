"""
Match orchestrator: spreadsheet rows -> catalog records.

Matching modes:
    - exact:      literal lookup of the selected cell values against catalog names
    - normalized: same lookup on normalize_key() (case / spacing / full-width insensitive)
    - heuristic:  normalization -> attribute extraction -> candidate retrieval ->
                  composite scoring (see scoring.py)

Heuristic search strategy:
    - A brand-bearing column ('brand' / '品牌' in its name) selected together
      with a name-bearing column -> scan that brand's posting list with the name text
    - Otherwise -> join the selected values and scan the weighted-vote top 100

Every row gets exactly one result, in input order. A row that raises is
logged and reported unmatched; it never aborts the run.
"""

import logging
import time
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

import pandas as pd

from candidate_index import (
    CandidateIndex,
    TOP_N_CANDIDATES,
    build_candidate_index,
    candidates_for_brand,
    query_candidates,
)
from catalog import CatalogRecord
from extractors import extract_attributes, normalize_brand
from normalizer import normalize_key
from scoring import DEFAULT_CONFIG, ScoringConfig, find_best_match

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MODE_EXACT = 'exact'
MODE_NORMALIZED = 'normalized'
MODE_HEURISTIC = 'heuristic'
MATCH_MODES = (MODE_EXACT, MODE_NORMALIZED, MODE_HEURISTIC)

MATCH_STATUS_MATCHED = 'matched'
MATCH_STATUS_UNMATCHED = 'unmatched'

DEFAULT_THRESHOLD = 0.65
PROGRESS_EVERY = 50          # rows between progress_callback calls
LOG_PROGRESS_EVERY = 100     # rows between progress log lines
DETAIL_LOG_ROWS = 3          # first rows logged in detail at DEBUG
DIGEST_VALUE_CHARS = 50
EMPTY_ROW_DIGEST = '(empty row)'

BRAND_COLUMN_KEYWORDS = ['brand', '品牌']
NAME_COLUMN_KEYWORDS = ['name', 'product', 'sku', 'model', '名称', '商品', '型号']


class MatchConfigError(ValueError):
    """Caller configuration is unusable; raised before any row is matched."""


class MatchResult(NamedTuple):
    row_index: int
    status: str
    matched_record: Optional[CatalogRecord] = None
    matched_field: Optional[str] = None
    similarity: Optional[float] = None


class MatchProgress(NamedTuple):
    processed: int
    total: int
    matched: int
    digest: str


MatchIndex = Union[CandidateIndex, Dict[str, CatalogRecord]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _cell_text(value) -> str:
    """Cell value as stripped text; NaN / None -> ''."""
    if value is None:
        return ''
    try:
        if pd.isna(value):
            return ''
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def format_row_digest(row: Mapping, columns: Sequence[str]) -> str:
    """
    One-line description of a row for progress reports.

    Examples:
        {'品牌': '华为', '商品名称': 'Mate 60 Pro'} -> '品牌: 华为, 商品名称: Mate 60 Pro'
        {'商品名称': ''} -> '(empty row)'
    """
    parts = []
    for col in columns:
        value = _cell_text(row.get(col))
        if value:
            parts.append(f"{col}: {value[:DIGEST_VALUE_CHARS]}")
    if not parts and columns:
        # Fall back to the first column of the row itself
        first_key = next(iter(row), None)
        value = _cell_text(row.get(first_key)) if first_key is not None else ''
        if value:
            parts.append(f"{first_key}: {value[:DIGEST_VALUE_CHARS]}")
    return ', '.join(parts) if parts else EMPTY_ROW_DIGEST


def _detect_column(columns: Sequence[str], keywords: Sequence[str]) -> Optional[str]:
    for col in columns:
        col_lower = str(col).lower()
        if any(kw in col_lower for kw in keywords):
            return col
    return None


def detect_brand_strategy(match_columns: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    (brand column, name column) when brand filtering applies, else (None, None).

    Needs at least two selected columns, one brand-bearing and a different
    name-bearing one.
    """
    if len(match_columns) < 2:
        return None, None
    brand_col = _detect_column(match_columns, BRAND_COLUMN_KEYWORDS)
    if brand_col is None:
        return None, None
    others = [c for c in match_columns if c != brand_col]
    name_col = _detect_column(others, NAME_COLUMN_KEYWORDS)
    if name_col is None:
        return None, None
    return brand_col, name_col


def validate_config(
    catalog: Sequence[CatalogRecord],
    match_columns: Sequence[str],
    mode: str,
    threshold: float,
) -> None:
    if not catalog:
        raise MatchConfigError("Catalog is empty")
    if not match_columns:
        raise MatchConfigError("No match columns selected")
    if mode not in MATCH_MODES:
        raise MatchConfigError(f"Unknown match mode '{mode}' (expected one of {', '.join(MATCH_MODES)})")
    if not 0.0 <= threshold <= 1.0:
        raise MatchConfigError(f"Threshold {threshold} outside [0, 1]")


def build_exact_lookup(catalog: Sequence[CatalogRecord], key_fn: Callable[[str], str]) -> Dict[str, CatalogRecord]:
    """key_fn(name) -> record; the first record wins on key collisions."""
    lookup: Dict[str, CatalogRecord] = {}
    for record in catalog:
        key = key_fn(record.name)
        if key and key not in lookup:
            lookup[key] = record
    return lookup


def _literal_key(text: str) -> str:
    return text.strip()


def _key_fn(mode: str) -> Callable[[str], str]:
    return normalize_key if mode == MODE_NORMALIZED else _literal_key


def build_match_index(catalog: Sequence[CatalogRecord], mode: str) -> MatchIndex:
    """Everything a mode needs that depends on the catalog only; build once per run."""
    start = time.time()
    if mode == MODE_HEURISTIC:
        index = build_candidate_index(catalog)
    else:
        index = build_exact_lookup(catalog, _key_fn(mode))
    logger.info("Built %s index over %d catalog records in %.2fs", mode, len(catalog), time.time() - start)
    return index


# ---------------------------------------------------------------------------
# Per-row matching
# ---------------------------------------------------------------------------

def _match_lookup(
    row_index: int,
    row: Mapping,
    match_columns: Sequence[str],
    lookup: Dict[str, CatalogRecord],
    key_fn: Callable[[str], str],
) -> MatchResult:
    for col in match_columns:
        value = _cell_text(row.get(col))
        if not value:
            continue
        record = lookup.get(key_fn(value))
        if record is not None:
            return MatchResult(row_index, MATCH_STATUS_MATCHED, record, col, 1.0)
    return MatchResult(row_index, MATCH_STATUS_UNMATCHED)


def _match_heuristic(
    row_index: int,
    row: Mapping,
    match_columns: Sequence[str],
    index: CandidateIndex,
    threshold: float,
    config: ScoringConfig,
    brand_strategy: Tuple[Optional[str], Optional[str]],
) -> MatchResult:
    brand_col, name_col = brand_strategy
    if brand_col is not None:
        text = _cell_text(row.get(name_col))
        brand = normalize_brand(_cell_text(row.get(brand_col)))
        if not text or not brand:
            return MatchResult(row_index, MATCH_STATUS_UNMATCHED)
        candidates = candidates_for_brand(index, brand)
        field_label = f"{brand_col} + {name_col}"
    else:
        values = [_cell_text(row.get(col)) for col in match_columns]
        text = ' '.join(v for v in values if v)
        if not text:
            return MatchResult(row_index, MATCH_STATUS_UNMATCHED)
        candidates = query_candidates(index, text, TOP_N_CANDIDATES)
        field_label = ' + '.join(col for col, v in zip(match_columns, values) if v)

    if not candidates:
        return MatchResult(row_index, MATCH_STATUS_UNMATCHED)

    best = find_best_match(extract_attributes(text), candidates, threshold, config)
    if best is None:
        return MatchResult(row_index, MATCH_STATUS_UNMATCHED)
    return MatchResult(row_index, MATCH_STATUS_MATCHED, best.record, field_label, best.score)


# ---------------------------------------------------------------------------
# Batch matching
# ---------------------------------------------------------------------------

def match_rows(
    rows: Sequence[Mapping],
    catalog: Sequence[CatalogRecord],
    match_columns: Sequence[str],
    mode: str = MODE_HEURISTIC,
    threshold: float = DEFAULT_THRESHOLD,
    progress_callback: Optional[Callable[[MatchProgress], None]] = None,
    index: Optional[MatchIndex] = None,
    config: Optional[ScoringConfig] = None,
    row_offset: int = 0,
) -> List[MatchResult]:
    """
    Match every row against the catalog.

    Args:
        rows: row mappings (column -> cell value)
        catalog: catalog records
        match_columns: columns whose values are searched, in priority order
        mode: 'exact', 'normalized' or 'heuristic'
        threshold: minimum composite score for a heuristic match
        progress_callback: optional callable(MatchProgress), every 50 rows and at the end
        index: prebuilt build_match_index() result, reused across batches
        config: scoring tunables (defaults to scoring.DEFAULT_CONFIG)
        row_offset: added to row indices when called batch by batch

    Returns:
        One MatchResult per row, in input order.
    """
    validate_config(catalog, match_columns, mode, threshold)
    config = config or DEFAULT_CONFIG
    rows = list(rows)
    total = len(rows)

    if index is None:
        index = build_match_index(catalog, mode)

    brand_strategy: Tuple[Optional[str], Optional[str]] = (None, None)
    if mode == MODE_HEURISTIC:
        brand_strategy = detect_brand_strategy(match_columns)
        if brand_strategy[0]:
            logger.info("Strategy: brand filter on '%s' with name column '%s'", *brand_strategy)
        else:
            logger.info("Strategy: keyword vote over columns %s", list(match_columns))
    key_fn = _key_fn(mode)

    start = time.time()
    results: List[MatchResult] = []
    matched = 0
    for position, row in enumerate(rows):
        row_index = row_offset + position
        try:
            if mode == MODE_HEURISTIC:
                result = _match_heuristic(row_index, row, match_columns, index, threshold, config, brand_strategy)
            else:
                result = _match_lookup(row_index, row, match_columns, index, key_fn)
        except Exception:
            logger.exception("Row %d failed; reported as unmatched", row_index)
            result = MatchResult(row_index, MATCH_STATUS_UNMATCHED)

        results.append(result)
        if result.status == MATCH_STATUS_MATCHED:
            matched += 1

        if position < DETAIL_LOG_ROWS:
            logger.debug(
                "Row %d [%s] -> %s %s (%.3f)",
                row_index, format_row_digest(row, match_columns), result.status,
                result.matched_record.name if result.matched_record else '-',
                result.similarity or 0.0,
            )

        processed = position + 1
        if processed % LOG_PROGRESS_EVERY == 0:
            logger.info("Progress: %d/%d rows, %d matched", processed, total, matched)
        if progress_callback and (processed % PROGRESS_EVERY == 0 or processed == total):
            progress_callback(MatchProgress(processed, total, matched, format_row_digest(row, match_columns)))

    elapsed = time.time() - start
    logger.info(
        "Matched %d/%d rows (%.1f%%) in %.2fs",
        matched, total, matched / total * 100 if total else 0.0, elapsed,
    )
    return results


def compute_match_summary(results: Sequence[MatchResult]) -> Dict[str, float]:
    """
    Coverage numbers for a finished run.

    Returns a dict with:
        total_rows, matched_count, unmatched_count, matched_rate (0-100),
        avg_similarity (over matched rows)
    """
    total = len(results)
    matched = [r for r in results if r.status == MATCH_STATUS_MATCHED]
    if total == 0:
        return {'total_rows': 0, 'matched_count': 0, 'unmatched_count': 0,
                'matched_rate': 0.0, 'avg_similarity': 0.0}
    avg = sum(r.similarity or 0.0 for r in matched) / len(matched) if matched else 0.0
    return {
        'total_rows': total,
        'matched_count': len(matched),
        'unmatched_count': total - len(matched),
        'matched_rate': round(len(matched) / total * 100, 1),
        'avg_similarity': round(avg, 4),
    }


def results_to_frame(df_input: pd.DataFrame, results: Sequence[MatchResult]) -> pd.DataFrame:
    """Copy of df_input with the match columns appended, row for row."""
    df = df_input.copy()
    df['match_status'] = [r.status for r in results]
    df['similarity'] = [round(r.similarity, 4) if r.similarity is not None else None for r in results]
    df['matched_field'] = [r.matched_field for r in results]
    df['matched_name'] = [r.matched_record.name if r.matched_record else None for r in results]
    df['matched_position'] = [r.matched_record.position if r.matched_record else None for r in results]
    return df


def run_matching(
    df_input: pd.DataFrame,
    catalog: Sequence[CatalogRecord],
    match_columns: Sequence[str],
    mode: str = MODE_HEURISTIC,
    threshold: float = DEFAULT_THRESHOLD,
    progress_callback: Optional[Callable[[MatchProgress], None]] = None,
    index: Optional[MatchIndex] = None,
    config: Optional[ScoringConfig] = None,
) -> pd.DataFrame:
    """
    DataFrame front end for match_rows().

    Returns:
        Copy of df_input with added columns:
            match_status, similarity, matched_field, matched_name, matched_position
    """
    df = df_input.copy()
    # Trailing spaces in headers are common in exported sheets
    df.columns = [str(c).strip() for c in df.columns]
    match_columns = [str(c).strip() for c in match_columns]

    missing = [c for c in match_columns if c not in df.columns]
    if missing:
        raise MatchConfigError(f"Match columns not in input: {', '.join(missing)}")

    results = match_rows(
        df.to_dict('records'), catalog, match_columns,
        mode=mode, threshold=threshold, progress_callback=progress_callback,
        index=index, config=config,
    )
    return results_to_frame(df, results)
