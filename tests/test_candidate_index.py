"""Tests for the keyword / brand candidate index."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from candidate_index import (
    BRAND_KEYWORD_WEIGHT,
    SERIES_KEYWORD_WEIGHT,
    SPEC_KEYWORD_WEIGHT,
    build_candidate_index,
    candidates_for_brand,
    keyword_weight,
    query_candidates,
)
from catalog import make_catalog


@pytest.fixture
def catalog():
    return make_catalog([
        {'name': '华为 Mate 60 Pro 12+512 雅川青', 'brand': '华为'},
        {'name': 'VIVO X200 Pro 活力版', 'brand': 'VIVO'},
        {'name': 'X200 Pro mini 16+512', 'brand': 'vivo'},
        {'name': '荣耀 Magic6 Pro 16+512'},
    ])


@pytest.fixture
def index(catalog):
    return build_candidate_index(catalog)


class TestKeywordWeight:
    def test_weights(self):
        assert keyword_weight('vivo') == BRAND_KEYWORD_WEIGHT
        assert keyword_weight('mate') == SERIES_KEYWORD_WEIGHT
        assert keyword_weight('pro') == SPEC_KEYWORD_WEIGHT
        assert keyword_weight('256') == 1


class TestQueryCandidates:
    def test_best_vote_first(self, index):
        results = query_candidates(index, "X200 Pro 活力版")
        assert results[0].name == 'VIVO X200 Pro 活力版'

    def test_unrelated_query_returns_nothing(self, index):
        assert query_candidates(index, "三星 Galaxy S24") == []

    def test_empty_query(self, index):
        assert query_candidates(index, "") == []

    def test_top_n_cut(self, index):
        assert len(query_candidates(index, "Pro", top_n=2)) == 2

    def test_ties_keep_catalog_order(self):
        index = build_candidate_index(make_catalog([
            {'name': 'Redmi K70 黑色'},
            {'name': 'Redmi K70 白色'},
            {'name': 'Redmi K70 蓝色'},
        ]))
        results = query_candidates(index, "Redmi K70")
        assert [r.position for r in results] == [0, 1, 2]


class TestBrandPostings:
    def test_brand_from_name(self, index):
        names = [r.name for r in candidates_for_brand(index, 'huawei')]
        assert names == ['华为 Mate 60 Pro 12+512 雅川青']

    def test_brand_field_used_when_name_has_none(self, index):
        positions = [r.position for r in candidates_for_brand(index, 'vivo')]
        assert positions == [1, 2]

    def test_unknown_brand(self, index):
        assert candidates_for_brand(index, 'nokia') == []


class TestIndexStructure:
    def test_record_listed_once_per_keyword(self, index):
        for positions in index.keyword_postings.values():
            assert len(positions) == len(set(positions))

    def test_read_only(self, index):
        with pytest.raises(TypeError):
            index.keyword_postings['vivo'] = (0,)
        assert isinstance(index.keyword_postings['pro'], tuple)
