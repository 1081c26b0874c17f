"""Tests for the text normalization pipeline."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import random

import pytest

from normalizer import (
    canonicalize_capacity,
    clean_noise,
    compact_text,
    correct_typos,
    normalize_key,
    normalize_text,
)

SAMPLES = [
    "IQOOZ10Turbo+",
    "HUAWEI Mate60Pro 12GB+512GB",
    "VIVOX200Pro活力版",
    "vivoX200Pro 12GB+256GB 黑色",
    "华为GT5 46mm",
    "HUAWEI WATCH GT5 (WA2456C) 幻夜黑",
    "Apple iPhone 16 Pro Max 256GB（演示机）",
    "小米14 Ultra+送充电器",
    "OnePlus ACE5 16+1TB",
    "MateBookD16 i7 2024款",
    "MateBookHiIQOOHiHUAWEIWATCH+",
    "GT5ProMax 12GB+256GB（样机）",
    "  ",
]

# Fragments glued together at random; each join point can need one more pass
FRAGMENTS = [
    'MateBook', 'Hi', 'IQOO', 'HUAWEI', 'WATCH', 'GT5', 'Pro', 'Max', 'Turbo',
    '+', '12GB', '256GB', '1TB', '（', '）', '演示机', '送充电器', '活力版',
    'vivo', 'X200', 'ACE', '5', '华为', '黑色', ' ',
]


def _generated_texts(count, seed=20241019):
    rng = random.Random(seed)
    for _ in range(count):
        yield ''.join(rng.choice(FRAGMENTS) for _ in range(rng.randint(1, 10)))


class TestNormalizeText:
    def test_splits_glued_brand_model_and_suffix(self):
        assert normalize_text("IQOOZ10Turbo+") == "IQOO Z10 Turbo+"

    def test_brand_and_capacity_canonicalized(self):
        assert normalize_text("HUAWEI Mate60Pro 12GB+512GB") == "华为 Mate60 Pro 12+512"

    def test_chinese_edition_separated(self):
        assert normalize_text("VIVOX200Pro活力版") == "VIVO X200 Pro 活力版"

    def test_lowercase_brand_canonicalized(self):
        assert normalize_text("vivoX200Pro 12GB+256GB 黑色") == "VIVO X200 Pro 12+256 黑色"

    def test_capacity_pair_keeps_following_token(self):
        assert normalize_text("OPPO Reno 12 Pro 12+256 5G版") == "OPPO Reno 12 Pro 12+256 5G版"
        assert normalize_text("VIVO X200 12GB+256GB 2024") == "VIVO X200 12+256 2024"

    def test_full_width_and_half_width_agree(self):
        assert normalize_text("Mate 60 Pro（演示机）") == normalize_text("Mate 60 Pro(演示机)") == "Mate 60 Pro"

    @pytest.mark.parametrize("full, half", [
        ("iPhone 16［黑色］", "iPhone 16[黑色]"),
        ("Mate 60／256G", "Mate 60/256G"),
        ("X200 Pro｜黑色", "X200 Pro|黑色"),
        ("ＶＩＶＯ Ｘ２００　Ｐｒｏ", "VIVO X200 Pro"),
        ("小米14＆小米手环", "小米14&小米手环"),
    ])
    def test_full_width_block_folded(self, full, half):
        assert normalize_text(full) == normalize_text(half)

    def test_series_word_kept(self):
        assert normalize_text("华为 Mate 系列") == "华为 Mate 系列"

    def test_bundled_accessory_removed(self):
        assert normalize_text("小米14 Ultra+送充电器") == "小米 14 Ultra"

    def test_gift_box_removed(self):
        assert normalize_text("小米14 礼盒装") == "小米 14"

    def test_plain_accessory_product_keeps_its_name(self):
        assert "充电器" in normalize_text("华为 66W 充电器")

    def test_typo_corrected(self):
        assert normalize_text("华为 Mate 60 雾松蓝") == "华为 Mate 60 雾凇蓝"

    def test_watch_abbreviation_expanded_once(self):
        assert normalize_text("华为GT5 46mm") == "华为 Watch GT 5 46mm"
        result = normalize_text("HUAWEI WATCH GT5")
        assert result == "华为 Watch GT 5"
        assert "Watch Watch" not in result

    def test_ace_spacing(self):
        assert normalize_text("OnePlus ACE5") == "一加 Ace 5"

    def test_terabyte_capacity(self):
        assert normalize_text("iPhone 16 1TB") == "iPhone 16 1T"

    @pytest.mark.parametrize("value", [None, "", "   ", 42, float('nan')])
    def test_blank_or_non_string_is_empty(self, value):
        assert normalize_text(value) == ''

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = normalize_text(text)
        assert normalize_text(once) == once

    def test_idempotent_on_generated_text(self):
        unstable = []
        for text in _generated_texts(2000):
            once = normalize_text(text)
            if normalize_text(once) != once:
                unstable.append(text)
        assert unstable == []


class TestStages:
    def test_clean_noise_brackets_become_spaces(self):
        assert clean_noise("Watch 5 (WA2456C)") == "Watch 5 WA2456C"

    def test_clean_noise_strips_trailing_punctuation(self):
        assert clean_noise("iPhone 16，") == "iPhone 16"

    def test_correct_typos_latin_case_insensitive(self):
        assert correct_typos("IPONE 16") == "iPhone 16"

    def test_capacity_forms(self):
        assert canonicalize_capacity("12GB+256GB") == "12+256"
        assert canonicalize_capacity("16g + 1tb") == "16+1T"
        assert canonicalize_capacity("256 GB") == "256"
        assert canonicalize_capacity("1 TB") == "1T"

    def test_capacity_pair_leaves_trailing_space(self):
        assert canonicalize_capacity("12+256 黑色") == "12+256 黑色"
        assert canonicalize_capacity("12GB+256GB 2024") == "12+256 2024"
        assert canonicalize_capacity("16 + 1 TB 5G") == "16+1T 5G"


class TestKeys:
    def test_normalize_key_is_case_insensitive(self):
        assert normalize_key("iphone 16 PRO") == normalize_key("iPhone 16 Pro")

    def test_compact_text(self):
        assert compact_text("IQOO Z10 Turbo+ 12+256") == "iqooz10turboplus12plus256"

    def test_compact_text_ignores_spacing(self):
        assert compact_text("Mate60Pro") == compact_text("Mate 60 Pro")
