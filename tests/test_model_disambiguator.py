"""Tests for full model extraction and variant disambiguation."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from model_disambiguator import (
    extract_base_model,
    extract_full_model,
    model_match_score,
    should_exclude_candidate,
)


class TestExtractFullModel:
    @pytest.mark.parametrize("text, expected", [
        ("VIVO X200 Pro mini 16+512", 'X200 Pro Mini'),
        ("IQOO Z10 Turbo+", 'Z10 Turbo+'),
        ("华为 Mate 60 Pro", 'Mate60 Pro'),
        ("华为 Mate60 Pro", 'Mate60 Pro'),
        ("iPhone 16 Pro Max 256", 'iPhone16 Pro Max'),
    ])
    def test_models(self, text, expected):
        assert extract_full_model(text) == expected

    def test_skips_processor_and_takes_size_free_number(self):
        assert extract_full_model("MacBook Air M3 13") == '13'

    def test_skips_sizes_and_years(self):
        assert extract_full_model("Watch 46mm") is None
        assert extract_full_model("2024款") is None

    def test_network_generation_is_not_a_model(self):
        assert extract_full_model("5G") is None

    def test_empty(self):
        assert extract_full_model("") is None
        assert extract_full_model(None) is None


class TestBaseModel:
    def test_strips_every_suffix(self):
        assert extract_base_model('X200 Pro Mini') == 'x200'
        assert extract_base_model('Z10 Turbo+') == 'z10'

    def test_plain_model_unchanged(self):
        assert extract_base_model('X200') == 'x200'


class TestModelMatchScore:
    @pytest.mark.parametrize("a, b, expected", [
        ('X200 Pro', 'X200 Pro', 1.0),
        ('Mate 60', 'Mate60', 1.0),
        ('X200 Pro', 'X200 Pro Mini', 0.0),
        ('iPhone 16', 'iPhone 16e', 0.5),
        ('X200 Pro', 'X200 Max', 0.3),
        ('X200', 'Z10', 0.0),
        (None, None, 1.0),
        ('X200', None, 0.0),
    ])
    def test_tiers(self, a, b, expected):
        assert model_match_score(a, b) == expected

    @pytest.mark.parametrize("a, b", [
        ('X200 Pro', 'X200 Pro Mini'),
        ('iPhone 16', 'iPhone 16e'),
        ('X200 Pro', 'X200 Max'),
        ('X200', None),
    ])
    def test_symmetric(self, a, b):
        assert model_match_score(a, b) == model_match_score(b, a)

    def test_range(self):
        for a, b in [('Mate 60', 'Mate 70'), ('Z10 Turbo+', 'Z10'), ('P70', 'P70 Pro')]:
            assert 0.0 <= model_match_score(a, b) <= 1.0


class TestShouldExcludeCandidate:
    def test_candidate_with_extra_suffix_excluded(self):
        assert should_exclude_candidate('X200 Pro', 'X200 Pro Mini') is True

    def test_direction_matters(self):
        assert should_exclude_candidate('X200 Pro Mini', 'X200 Pro') is False

    def test_equal_and_missing(self):
        assert should_exclude_candidate('X200 Pro', 'X200 Pro') is False
        assert should_exclude_candidate(None, 'X200 Pro Mini') is False
        assert should_exclude_candidate('X200 Pro', None) is False
