"""Tests for the match orchestrator."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pandas as pd
import pytest

import matcher
from catalog import make_catalog
from matcher import (
    EMPTY_ROW_DIGEST,
    MATCH_STATUS_MATCHED,
    MATCH_STATUS_UNMATCHED,
    MODE_EXACT,
    MODE_HEURISTIC,
    MODE_NORMALIZED,
    MatchConfigError,
    MatchResult,
    compute_match_summary,
    detect_brand_strategy,
    format_row_digest,
    match_rows,
    run_matching,
)


@pytest.fixture
def catalog():
    return make_catalog([
        {'name': 'VIVO X200 Pro 12+256 黑色', 'brand': 'VIVO'},
        {'name': 'VIVO X200 Pro Mini 12+256 黑色', 'brand': 'VIVO'},
        {'name': '华为 Mate 60 Pro 12+512 雅川青', 'brand': '华为'},
        {'name': 'Apple iPhone 16 Pro 256GB 黑色钛金属', 'brand': 'Apple'},
    ])


class TestExactModes:
    def test_exact(self, catalog):
        rows = [{'商品名称': 'VIVO X200 Pro 12+256 黑色'}, {'商品名称': 'vivo x200 pro 12+256 黑色'}]
        results = match_rows(rows, catalog, ['商品名称'], mode=MODE_EXACT)
        assert results[0] == MatchResult(0, MATCH_STATUS_MATCHED, catalog[0], '商品名称', 1.0)
        assert results[1].status == MATCH_STATUS_UNMATCHED

    def test_normalized_ignores_case_and_spacing(self, catalog):
        rows = [{'商品名称': 'vivo x200 pro 12+256 黑色'}, {'商品名称': 'VIVOX200Pro 12GB+256GB 黑色'}]
        results = match_rows(rows, catalog, ['商品名称'], mode=MODE_NORMALIZED)
        assert [r.matched_record for r in results] == [catalog[0], catalog[0]]

    def test_columns_tried_in_order(self, catalog):
        rows = [{'型号': 'unknown', '商品名称': '华为 Mate 60 Pro 12+512 雅川青'}]
        result = match_rows(rows, catalog, ['型号', '商品名称'], mode=MODE_EXACT)[0]
        assert result.matched_field == '商品名称'
        assert result.matched_record == catalog[2]


class TestHeuristicMode:
    def test_sloppy_row_matches_exact_variant(self, catalog):
        rows = [{'商品名称': 'vivoX200Pro 12GB+256GB 黑色'}]
        result = match_rows(rows, catalog, ['商品名称'])[0]
        assert result.status == MATCH_STATUS_MATCHED
        assert result.matched_record == catalog[0]
        assert result.similarity == pytest.approx(1.0)

    def test_results_in_input_order(self, catalog):
        rows = [
            {'商品名称': '华为 Mate 60 Pro 12+512 雅川青'},
            {'商品名称': ''},
            {'商品名称': 'VIVO X200 Pro 12+256 黑色'},
        ]
        results = match_rows(rows, catalog, ['商品名称'])
        assert [r.row_index for r in results] == [0, 1, 2]
        assert [r.status for r in results] == [MATCH_STATUS_MATCHED, MATCH_STATUS_UNMATCHED, MATCH_STATUS_MATCHED]
        assert results[0].matched_record == catalog[2]
        assert results[2].matched_record == catalog[0]

    def test_unrelated_row_unmatched(self, catalog):
        result = match_rows([{'商品名称': '三星 Galaxy S24'}], catalog, ['商品名称'])[0]
        assert result == MatchResult(0, MATCH_STATUS_UNMATCHED)

    def test_brand_filter(self, catalog):
        rows = [{'品牌': 'vivo', '商品名称': 'X200 Pro 12+256 黑色'}]
        result = match_rows(rows, catalog, ['品牌', '商品名称'])[0]
        assert result.status == MATCH_STATUS_MATCHED
        assert result.matched_record == catalog[0]
        assert result.matched_field == '品牌 + 商品名称'

    def test_brand_filter_unknown_brand(self, catalog):
        rows = [{'品牌': '诺基亚', '商品名称': 'X200 Pro 12+256 黑色'}]
        result = match_rows(rows, catalog, ['品牌', '商品名称'])[0]
        assert result.status == MATCH_STATUS_UNMATCHED

    def test_failing_row_reported_unmatched(self, catalog, monkeypatch):
        original = matcher._match_heuristic

        def flaky(row_index, row, *args):
            if row['商品名称'] == 'boom':
                raise RuntimeError("bad row")
            return original(row_index, row, *args)

        monkeypatch.setattr(matcher, '_match_heuristic', flaky)
        rows = [{'商品名称': 'boom'}, {'商品名称': 'VIVO X200 Pro 12+256 黑色'}]
        results = match_rows(rows, catalog, ['商品名称'])
        assert results[0] == MatchResult(0, MATCH_STATUS_UNMATCHED)
        assert results[1].status == MATCH_STATUS_MATCHED


class TestConfigErrors:
    @pytest.mark.parametrize("kwargs", [
        {'match_columns': []},
        {'mode': 'fuzzy'},
        {'threshold': 1.5},
        {'threshold': -0.1},
    ])
    def test_rejected(self, catalog, kwargs):
        args = {'rows': [{'商品名称': 'x'}], 'catalog': catalog, 'match_columns': ['商品名称']}
        args.update(kwargs)
        with pytest.raises(MatchConfigError):
            match_rows(**args)

    def test_empty_catalog(self):
        with pytest.raises(ValueError):
            match_rows([{'商品名称': 'x'}], [], ['商品名称'])


class TestProgress:
    def test_callback_every_50_and_at_end(self, catalog):
        reports = []
        rows = [{'商品名称': 'VIVO X200 Pro 12+256 黑色'}] * 120
        match_rows(rows, catalog, ['商品名称'], mode=MODE_EXACT, progress_callback=reports.append)
        assert [p.processed for p in reports] == [50, 100, 120]
        assert all(p.total == 120 for p in reports)
        assert reports[-1].matched == 120
        assert reports[-1].digest == '商品名称: VIVO X200 Pro 12+256 黑色'


class TestBrandStrategy:
    def test_detected(self):
        assert detect_brand_strategy(['品牌', '商品名称']) == ('品牌', '商品名称')
        assert detect_brand_strategy(['Product Name', 'Brand']) == ('Brand', 'Product Name')

    def test_not_detected(self):
        assert detect_brand_strategy(['商品名称']) == (None, None)
        assert detect_brand_strategy(['brand', 'color']) == (None, None)
        assert detect_brand_strategy(['名称', '规格']) == (None, None)


class TestDigest:
    def test_values_truncated(self):
        assert format_row_digest({'a': 'x' * 80}, ['a']) == 'a: ' + 'x' * 50

    def test_selected_columns_only(self):
        row = {'品牌': '华为', '商品名称': 'Mate 60 Pro', '备注': 'ignored'}
        assert format_row_digest(row, ['品牌', '商品名称']) == '品牌: 华为, 商品名称: Mate 60 Pro'

    def test_falls_back_to_first_column(self):
        assert format_row_digest({'编号': 'A-1', '商品名称': None}, ['商品名称']) == '编号: A-1'

    def test_empty_row(self):
        assert format_row_digest({'商品名称': ''}, ['商品名称']) == EMPTY_ROW_DIGEST


class TestSummary:
    def test_summary(self, catalog):
        results = [
            MatchResult(0, MATCH_STATUS_MATCHED, catalog[0], '商品名称', 0.9),
            MatchResult(1, MATCH_STATUS_MATCHED, catalog[1], '商品名称', 0.7),
            MatchResult(2, MATCH_STATUS_UNMATCHED),
            MatchResult(3, MATCH_STATUS_UNMATCHED),
        ]
        assert compute_match_summary(results) == {
            'total_rows': 4,
            'matched_count': 2,
            'unmatched_count': 2,
            'matched_rate': 50.0,
            'avg_similarity': 0.8,
        }

    def test_empty(self):
        assert compute_match_summary([])['matched_rate'] == 0.0


class TestRunMatching:
    def test_adds_result_columns(self, catalog):
        df = pd.DataFrame({' 商品名称 ': ['VIVO X200 Pro 12+256 黑色', '三星 Galaxy S24'], '数量': [1, 2]})
        out = run_matching(df, catalog, ['商品名称'], mode=MODE_HEURISTIC)
        assert list(out.columns) == [
            '商品名称', '数量', 'match_status', 'similarity', 'matched_field', 'matched_name', 'matched_position',
        ]
        assert list(out['match_status']) == [MATCH_STATUS_MATCHED, MATCH_STATUS_UNMATCHED]
        assert out.loc[0, 'matched_name'] == 'VIVO X200 Pro 12+256 黑色'
        assert len(df.columns) == 2

    def test_missing_column(self, catalog):
        df = pd.DataFrame({'商品名称': ['x']})
        with pytest.raises(MatchConfigError, match='型号'):
            run_matching(df, catalog, ['型号'])
