"""
Text normalization for free-text product descriptions.

Pipeline (each stage feeds the next):
    1. Noise cleanup: full-width punctuation -> half-width, demo / gift-box /
       bundled-accessory markers removed, brackets turned into spaces
    2. Typo correction (table-driven, case-insensitive)
    3. Abbreviation expansion, skipped when the full form is already present
    4. Brand alias canonicalization, longest alias first
    5. Capacity canonicalization: "12GB+256GB" -> "12+256", "1 TB" -> "1T"
    6. Whitespace canonicalization: "IQOOZ10Turbo+" -> "IQOO Z10 Turbo+"

normalize_text() is idempotent: running it on its own output is a no-op.
Full-width and half-width spellings of the same text normalize identically.

Latin tokens are matched with ASCII-only boundaries. Python's \\b treats CJK
characters as word characters, so "华为Mate60" has no \\b between the two
scripts.
"""

import logging
import re
from functools import lru_cache
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# The whole full-width ASCII block (U+FF01..U+FF5E) sits 0xFEE0 above its
# half-width twin; a few CJK marks outside the block are mapped by hand
FULL_WIDTH_MAP = {code: code - 0xFEE0 for code in range(0xFF01, 0xFF5F)}
FULL_WIDTH_MAP.update(str.maketrans({
    '【': '[', '】': ']', '。': '.',
    '　': ' ',  # ideographic space
}))

# Demo / sample units should match the retail product
DEMO_MARKERS = [
    '演示机', '样机', '展示机', '体验机', '试用机', '测试机',
    '演示', '样品', '展示', '体验', '试用', '测试',
]

GIFT_MARKERS = ['礼盒装', '礼盒', '套装', '礼品装', '礼品', '礼包', '组合', '套餐']

# Only stripped when bundled: "+充电器", "送耳机", "附赠数据线"
ACCESSORY_KEYWORDS = [
    '充电器', '充电线', '数据线', '耳机', '保护壳', '保护套',
    '保护膜', '贴膜', '钢化膜', '支架', '转接头', '适配器', '电源', '配件',
]

TYPO_CORRECTIONS: Dict[str, str] = {
    '雾松蓝': '雾凇蓝',
    '玥金': '曜金',
    '远锋蓝': '远峰蓝',
    '幻影黑': '幻夜黑',
    'ipone': 'iPhone',
    'iphnoe': 'iPhone',
    'huwei': 'HUAWEI',
    'xiomi': 'XIAOMI',
    'samsumg': 'SAMSUNG',
}

ABBREVIATIONS: Dict[str, str] = {
    'GT5': 'Watch GT 5',
    'GT4': 'Watch GT 4',
    'GT3': 'Watch GT 3',
    'FIT4': 'Watch FIT 4',
    'FIT3': 'Watch FIT 3',
    'MBP': 'MacBook Pro',
    'MBA': 'MacBook Air',
    'ProMax': 'Pro Max',
}

# canonical spelling -> aliases (case-insensitive). Canonical spellings are
# listed among their own aliases where only the letter case needs fixing.
BRAND_CANONICAL_FORMS: Dict[str, List[str]] = {
    '华为': ['HUAWEI'],
    '荣耀': ['HONOR'],
    '小米': ['XIAOMI'],
    '苹果': ['APPLE'],
    '三星': ['SAMSUNG'],
    '一加': ['ONEPLUS', 'ONE PLUS'],
    'OPPO': ['OPPO', '欧珀'],
    'VIVO': ['VIVO'],
    'IQOO': ['IQOO'],
}

# Brand tokens that get glued to the model code in sloppy input ("VIVOX200")
LATIN_BRAND_TOKENS = ['IQOO', 'OPPO', 'VIVO', 'HUAWEI', 'HONOR', 'XIAOMI']
CHINESE_BRAND_TOKENS = ['华为', '荣耀', '小米', '红米', '苹果', '三星', '一加', '欧珀']

# Notebook families written without a space before the variant ("MateBookD16")
NOTEBOOK_FAMILIES = ['matebook', 'magicbook', 'redmibook']

SUFFIX_TOKENS = ['Pro', 'Max', 'Mini', 'Plus', 'Ultra', 'SE', 'Air', 'Turbo']
CHINESE_SUFFIX_TOKENS = ['竞速版', '至尊版', '活力版', '标准版', '青春版', '极速版']



def _by_length_desc(items):
    """Sort table entries longest-first (stable for equal lengths)."""
    return sorted(items, key=lambda item: len(item[0] if isinstance(item, tuple) else item), reverse=True)


def _latin(word: str) -> str:
    """Regex for a Latin token bounded by non-ASCII-letters/digits."""
    return rf'(?<![A-Za-z0-9]){re.escape(word)}(?![A-Za-z0-9])'


def _is_latin(word: str) -> bool:
    return bool(re.fullmatch(r'[A-Za-z0-9 .+-]+', word))


# ---------------------------------------------------------------------------
# Precompiled patterns
# ---------------------------------------------------------------------------

_NOISE_RE = re.compile('|'.join(re.escape(m) for m in _by_length_desc(DEMO_MARKERS + GIFT_MARKERS)))

_ACCESSORY_ALT = '|'.join(re.escape(k) for k in _by_length_desc(ACCESSORY_KEYWORDS))
_BUNDLED_ACCESSORY_RE = re.compile(
    rf'\s*\+?\s*(?:送|附赠|赠送|附送|带)\s*(?:{_ACCESSORY_ALT})'  # "送充电器", "+附赠耳机"
    rf'|\s*\+\s*(?:{_ACCESSORY_ALT})'                             # "+ 充电器"
)

_BRACKETS_RE = re.compile(r'[()\[\]{}<>「」『』《》]')
_TRAILING_PUNCT_RE = re.compile(r'[\s,.;:!?、]+$')
_WHITESPACE_RE = re.compile(r'\s+')

_TYPO_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(_latin(typo) if _is_latin(typo) else re.escape(typo), re.IGNORECASE), fixed)
    for typo, fixed in _by_length_desc(list(TYPO_CORRECTIONS.items()))
]


def _abbreviation_rule(abbr: str, full: str) -> Tuple[re.Pattern, str]:
    # "WATCH GT5" must become "Watch GT 5", not "WATCH Watch GT 5":
    # an existing copy of the expansion's lead word is consumed with the abbreviation
    lead = full.split()[0]
    if lead.lower() != abbr.lower():
        pattern = rf'(?<![A-Za-z0-9])(?:{re.escape(lead)}\s*)?{re.escape(abbr)}(?![A-Za-z0-9])'
    else:
        pattern = _latin(abbr)
    return re.compile(pattern, re.IGNORECASE), full


_ABBREVIATION_RULES = [
    _abbreviation_rule(abbr, full)
    for abbr, full in _by_length_desc(list(ABBREVIATIONS.items()))
]

_BRAND_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(_latin(alias) if _is_latin(alias) else re.escape(alias), re.IGNORECASE), canonical)
    for alias, canonical in _by_length_desc(
        [(alias, canonical) for canonical, aliases in BRAND_CANONICAL_FORMS.items() for alias in aliases]
    )
]

# "12GB+256GB", "12g + 256g", "12+1TB" -> "12+256" / "12+1T"
_CAPACITY_PAIR_RE = re.compile(
    r'(?<![\d.])(\d+)\s*(?:gb|g)?\s*\+\s*(\d+)(?:\s*(gb|g|tb|t))?(?![a-z0-9])',
    re.IGNORECASE,
)
_CAPACITY_TB_RE = re.compile(r'(?<![\d.])(\d+)\s*tb(?![a-z])', re.IGNORECASE)
_CAPACITY_GB_RE = re.compile(r'(?<![\d.])(\d+)\s*gb(?![a-z])', re.IGNORECASE)

# Brand glued to a model code: "IQOOZ10", "VIVOX200", "HUAWEIMate60", "iqooz10"
_LATIN_BRAND_SPACING_RE = re.compile(
    r'(?<![A-Za-z])((?i:' + '|'.join(LATIN_BRAND_TOKENS) + r'))(?=[A-Z0-9]|[a-z]\d)'
)
# "Hi nova" sub-brand is case-sensitive: "Hi" is too common a fragment otherwise
_HI_SPACING_RE = re.compile(r'(?<![A-Za-z])(Hi)(?=[A-Z0-9])')
_CHINESE_BRAND_SPACING_RE = re.compile(
    '(' + '|'.join(CHINESE_BRAND_TOKENS) + r')(?=[A-Za-z0-9])'
)
_NOTEBOOK_SPACING_RE = re.compile(
    r'(?<![A-Za-z])(' + '|'.join(NOTEBOOK_FAMILIES) + r')(?=[A-Za-z0-9])',
    re.IGNORECASE,
)

_SUFFIX_ALT = '|'.join(s.lower() for s in _by_length_desc(SUFFIX_TOKENS))
# A run of suffixes glued to a model number: "X200Pro", "Z10Turbo+", "15ProMax"
_GLUED_SUFFIX_RUN_RE = re.compile(
    rf'(?<=\d)((?:{_SUFFIX_ALT})+)(\+?)(?![a-z])',
    re.IGNORECASE,
)
_SUFFIX_SPLIT_RE = re.compile(_SUFFIX_ALT, re.IGNORECASE)
_SUFFIX_CANONICAL = {s.lower(): s for s in SUFFIX_TOKENS}

_CHINESE_SUFFIX_RE = re.compile(
    r'(?<=[A-Za-z0-9+])(' + '|'.join(CHINESE_SUFFIX_TOKENS) + ')'
)
_ACE_RE = re.compile(r'(?<![A-Za-z])ace\s*(\d)', re.IGNORECASE)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def clean_noise(text: str) -> str:
    """
    Stage 1: strip demo/gift/bundle noise and unify punctuation.

    Examples:
        'iPhone 16（演示机）' -> 'iPhone 16'
        'Mate 60 Pro+送充电器' -> 'Mate 60 Pro'
        '小米14 礼盒装' -> '小米14'
    """
    s = text.translate(FULL_WIDTH_MAP)
    s = _NOISE_RE.sub('', s)
    s = _BUNDLED_ACCESSORY_RE.sub('', s)
    s = _BRACKETS_RE.sub(' ', s)
    s = _WHITESPACE_RE.sub(' ', s).strip()
    return _TRAILING_PUNCT_RE.sub('', s)


def correct_typos(text: str) -> str:
    """Stage 2: table-driven typo fixes ('雾松蓝' -> '雾凇蓝')."""
    for pattern, fixed in _TYPO_RULES:
        text = pattern.sub(fixed, text)
    return text


def expand_abbreviations(text: str) -> str:
    """
    Stage 3: expand abbreviations, longest first.

    An abbreviation is left alone when its full form is already present,
    so 'Watch GT 5 GT5' does not grow a second 'Watch GT 5'.

    Examples:
        '华为GT5 46mm' -> '华为Watch GT 5 46mm'
        'MBP 14' -> 'MacBook Pro 14'
    """
    for pattern, full in _ABBREVIATION_RULES:
        if full.lower() in text.lower():
            continue
        text = pattern.sub(full, text)
    return text


def canonicalize_brands(text: str) -> str:
    """Stage 4: rewrite brand aliases to one spelling ('HUAWEI' -> '华为')."""
    for pattern, canonical in _BRAND_RULES:
        text = pattern.sub(canonical, text)
    return text


def _capacity_pair(m: re.Match) -> str:
    unit = (m.group(3) or '').lower()
    return f"{m.group(1)}+{m.group(2)}{'T' if unit.startswith('t') else ''}"


def canonicalize_capacity(text: str) -> str:
    """
    Stage 5: one spelling per capacity.

    Examples:
        '12GB+256GB' -> '12+256'
        '16g + 1tb'  -> '16+1T'
        '256 GB'     -> '256'
        '1 TB'       -> '1T'
    """
    text = _CAPACITY_PAIR_RE.sub(_capacity_pair, text)
    text = _CAPACITY_TB_RE.sub(r'\1T', text)
    return _CAPACITY_GB_RE.sub(r'\1', text)


def _split_suffix_run(m: re.Match) -> str:
    parts = [_SUFFIX_CANONICAL[p.lower()] for p in _SUFFIX_SPLIT_RE.findall(m.group(1))]
    return ' ' + ' '.join(parts) + m.group(2)


def canonicalize_spacing(text: str) -> str:
    """
    Stage 6: separate brand / model code / suffix tokens, collapse whitespace.

    Examples:
        'IQOOZ10Turbo+'     -> 'IQOO Z10 Turbo+'
        'VIVOX200Pro活力版' -> 'VIVO X200 Pro 活力版'
        '华为Mate60Pro'     -> '华为 Mate60 Pro'
        'OnePlus ACE5'      -> 'OnePlus Ace 5'
    """
    s = _LATIN_BRAND_SPACING_RE.sub(r'\1 ', text)
    s = _HI_SPACING_RE.sub(r'\1 ', s)
    s = _CHINESE_BRAND_SPACING_RE.sub(r'\1 ', s)
    s = _NOTEBOOK_SPACING_RE.sub(r'\1 ', s)
    s = _GLUED_SUFFIX_RUN_RE.sub(_split_suffix_run, s)
    s = _CHINESE_SUFFIX_RE.sub(r' \1', s)
    s = _ACE_RE.sub(r'Ace \1', s)
    return _WHITESPACE_RE.sub(' ', s).strip()


_PIPELINE = (
    clean_noise,
    correct_typos,
    expand_abbreviations,
    canonicalize_brands,
    canonicalize_capacity,
    canonicalize_spacing,
)


def _run_pipeline(text: str) -> str:
    for stage in _PIPELINE:
        text = stage(text)
    return text


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

@lru_cache(maxsize=50000)
def normalize_text(text: str) -> str:
    """
    Normalize a product description for comparison.

    Runs the stage pipeline until the text stops changing, so the result is
    a fixed point: normalize_text(normalize_text(s)) == normalize_text(s).
    Non-string or blank input returns ''.

    Examples:
        'IQOOZ10Turbo+'                -> 'IQOO Z10 Turbo+'
        'HUAWEI Mate60Pro 12GB+512GB'  -> '华为 Mate60 Pro 12+512'
        'vivo X200 Pro（样机）'         -> 'VIVO X200 Pro'
    """
    if not isinstance(text, str) or not text.strip():
        return ''
    s = text
    seen = {s}
    while True:
        out = _run_pipeline(s)
        if out == s:
            return s
        if out in seen:
            # two stages undoing each other; report it instead of spinning
            logger.warning("Normalization did not settle for %r", text)
            return out
        seen.add(out)
        s = out


def normalize_key(text: str) -> str:
    """Case-insensitive lookup key (used by normalized-exact matching)."""
    return normalize_text(text).casefold()


_COMPACT_DROP_RE = re.compile(r'[\s_/\\|]+')


@lru_cache(maxsize=50000)
def compact_text(text: str) -> str:
    """
    Deep form used for edit distance: lowercase, no separators, '+' -> 'plus'.

    'IQOO Z10 Turbo+ 12+256' -> 'iqooz10turboplus12plus256'
    """
    s = normalize_text(text).lower()
    s = _COMPACT_DROP_RE.sub('', s)
    return s.replace('+', 'plus')
