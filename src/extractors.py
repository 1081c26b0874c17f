"""
Attribute extraction from normalized product text.

Every extractor is a pure function of one string. Missing attributes come back
as None, never '', so callers can tell "not mentioned" from "mentioned".
Odd input yields None instead of raising.

Lookup tables are re-sorted longest-entry-first at import time. A short alias
("mate") can never fire before a longer one ("matebook"), whatever order the
table literal happens to use.

Latin aliases use ASCII-only boundaries because Python's \\b sees CJK
characters as word characters.
"""

import re
from functools import lru_cache
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Tuple

from model_disambiguator import extract_full_model
from normalizer import compact_text, normalize_text
from version_extractor import extract_version
from watch_recognizer import (
    WatchAttributes,
    extract_watch_attributes,
    is_watch_product,
    normalize_watch_attributes,
)

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# brand id -> aliases (lowercase)
BRAND_MAPPING: Dict[str, List[str]] = {
    'apple': ['苹果', 'apple', 'iphone', 'ipad', 'macbook', 'imac', 'mac', 'airpods', 'homepod', 'airtag'],
    'beats': ['beats'],
    'huawei': ['华为', 'huawei', 'mate', 'nova', 'pura', 'matepad', 'matebook', 'hi', '畅享', '智选', 'freebuds'],
    'honor': ['荣耀', 'honor', 'magic', 'magicbook', 'magicpad', '畅玩'],
    'xiaomi': ['小米', 'xiaomi', 'redmi', '红米', 'redmibook'],
    'oppo': ['oppo', '欧珀', 'reno', 'find'],
    'vivo': ['vivo', 'iqoo'],
    'samsung': ['三星', 'samsung', 'galaxy'],
    'oneplus': ['一加', 'oneplus', 'ace'],
}

# (type id, keywords) in priority order: watches are checked before this
# table, accessories before devices, phones last
PRODUCT_TYPE_TABLE: List[Tuple[str, List[str]]] = [
    ('screen_protector', ['钢化膜', '贴膜', '保护膜', '屏幕膜', '屏保', 'screen protector']),
    ('case', ['保护壳', '手机壳', '保护套', '手机套', 'case', 'cover']),
    ('bag', ['背包', '手提包', '公文包', '电脑包', 'bag', 'backpack']),
    ('charger', ['充电器', '充电头', '电源适配器', 'charger']),
    ('cable', ['数据线', '充电线', 'cable']),
    ('earphones', ['耳机', 'earphone', 'headphone', 'earbuds', 'airpods', 'freebuds', 'buds']),
    ('smart_screen', ['智慧屏', 'huawei vision']),
    ('smart_speaker', ['智能音箱', '音箱', 'sound x', 'homepod', 'echo']),
    ('smart_tv', ['智能电视', '电视', 'tv', 'television']),
    ('tablet', ['平板', 'ipad', 'matepad', 'magicpad', 'tablet', 'pad']),
    ('laptop', ['笔记本', 'macbook', 'matebook', 'magicbook', 'redmibook', 'laptop', 'book']),
    ('desktop', ['imac', 'mac mini', 'mac studio', 'mac pro']),
    ('stylus', ['pencil', '触控笔', '手写笔']),
    ('tracker', ['airtag']),
    ('iphone', ['iphone']),
    ('huawei_phone', ['mate', 'pura', 'nova', '畅享']),
    ('honor_phone', ['magic', '畅玩']),
    ('xiaomi_phone', ['redmi', '红米', '小米']),
    ('oppo_phone', ['reno', 'find']),
    ('vivo_phone', ['vivo', 'iqoo']),
    ('samsung_phone', ['galaxy']),
    ('oneplus_phone', ['一加', 'oneplus']),
]

# standard color -> aliases
COLOR_MAPPING: Dict[str, List[str]] = {
    '银色': ['银色', '银', 'silver', '银白', '银白色'],
    '金色': ['金色', '金', 'gold', '香槟金', '鎏光金', '沙漠金', '沙漠色'],
    '星光色': ['星光色', '星光', 'starlight'],
    '玫瑰金': ['玫瑰金', '粉金', 'rose gold'],
    '黑色': ['黑色', '黑', 'black', '曜石黑', '幻夜黑', '竞黑', '闪速黑', '琥珀黑', '玄武黑'],
    '午夜色': ['午夜色', '午夜', 'midnight'],
    '午夜黑': ['午夜黑', 'midnight black'],
    '深空灰': ['深空灰', '深空灰色', 'space gray', 'space grey', '极地灰'],
    '深空黑': ['深空黑', '深空黑色', 'space black'],
    '白色': ['白色', '白', 'white', '纯白', '象牙白', '月影白', '雪域白', '闪白', '星光白', '石英白', '钻石白', '云海白'],
    '蓝色': ['蓝色', '蓝', 'blue', '天蓝', '海蓝', '远峰蓝', '天海青', '清风蓝', '晓山青', '云母蓝', '雾凇蓝'],
    '深蓝色': ['深蓝色', '深蓝', 'deep blue'],
    '浅蓝色': ['浅蓝色', '浅蓝', 'light blue'],
    '红色': ['红色', '红', 'red', '中国红', '产品红', '朱砂红', '追光红'],
    '深红色': ['深红色', '深红', '酒红', 'deep red'],
    '绿色': ['绿色', '绿', 'green', '苍岭绿', '松岭青', '竹韵青', '旷野绿', '掠影绿', '原野绿', '玉石绿'],
    '暗夜绿': ['暗夜绿', '暗夜绿色', 'midnight green'],
    '紫色': ['紫色', '紫', 'purple', '梦幻紫', '电光紫', '玉兰紫', '雾光紫', '砂岩紫'],
    '深紫色': ['深紫色', '深紫', 'deep purple'],
    '浅紫色': ['浅紫色', '浅紫', 'light purple'],
    '粉色': ['粉色', '粉', 'pink', '粉红', '樱花粉', '流沙粉', '玛瑙粉', '水晶粉'],
    '灰色': ['灰色', '灰', 'gray', 'grey', '极夜灰'],
    '黄色': ['黄色', '黄', 'yellow', '柠檬黄'],
    '橙色': ['橙色', '橙', 'orange'],
    '棕色': ['棕色', '棕', 'brown', '摩卡棕'],
    '钛色': ['钛色', '钛', 'titanium', '燃力钛'],
}

# Words that contain a color character without naming a color
COLOR_MASKS = ['蓝牙', 'bluetooth', '金属', '红米']

# Single-G numbers at or below this are network generations ("5G"), not storage
NETWORK_GENERATION_MAX = 5
# Bare numbers read as storage when no unit survives normalization
STORAGE_SIZES = {'32', '64', '128', '256', '512', '1024'}

SCREEN_MM_RANGE = (38, 50)
SCREEN_INCH_RANGE = (3, 100)
NOTEBOOK_INCH_RANGE = (11, 17)

SERIES_KEYWORDS = [
    'iphone', 'ipad', 'macbook', 'watch', 'airpods', 'mate', 'magic', 'reno',
    'find', 'air', 'plus', 'pro', 'max', 'mini', 'se', 'pencil', 'homepod',
    'flex', 'studio', 'solo', 'buds', 'hi', 'ultra', 'turbo', 'nova', 'galaxy',
    'neo', 'ace', 'pura', 'matebook', 'matepad',
]

# Series words that prefix a model number ("mate 60", "iphone 16", "find x8")
MODEL_SERIES = [
    'nova', 'mate', 'pura', 'honor', 'magic', 'galaxy', 'reno', 'find', 'ace',
    'iqoo', 'iphone', 'ipad', 'macbook',
]
CHINESE_MODEL_SERIES = ['畅享', '畅玩', '智选']

CHINESE_NUMERALS = {
    '一': 1, '二': 2, '三': 3, '四': 4, '五': 5,
    '六': 6, '七': 7, '八': 8, '九': 9, '十': 10,
}


def _by_length_desc(pairs):
    """Sort (alias, value) pairs longest alias first; stable for ties."""
    return sorted(pairs, key=lambda pair: len(pair[0]), reverse=True)


def _is_latin(word: str) -> bool:
    return word.isascii()


def _latin(word: str) -> str:
    return rf'(?<![a-z]){re.escape(word)}(?![a-z])'


def _alias_matcher(alias: str):
    """Return a predicate for lowercase text: bounded regex for Latin, containment otherwise."""
    if _is_latin(alias):
        return re.compile(_latin(alias)).search
    return lambda text: alias in text


_BRAND_RULES = [
    (_alias_matcher(alias), brand)
    for alias, brand in _by_length_desc(
        [(alias, brand) for brand, aliases in BRAND_MAPPING.items() for alias in aliases]
    )
]
BRAND_ALIASES: Dict[str, str] = {
    alias: brand for brand, aliases in BRAND_MAPPING.items() for alias in aliases
}

_TYPE_RULES = [
    [(_alias_matcher(keyword), type_id) for keyword, _ in _by_length_desc([(k, None) for k in keywords])]
    for type_id, keywords in PRODUCT_TYPE_TABLE
]

_COLOR_RULES = [
    (re.compile(_latin(alias) if _is_latin(alias) else re.escape(alias)), standard)
    for alias, standard in _by_length_desc(
        [(alias, standard) for standard, aliases in COLOR_MAPPING.items() for alias in aliases]
    )
]
_COLOR_MASK_RE = re.compile('|'.join(re.escape(m) for m in sorted(COLOR_MASKS, key=len, reverse=True)))


# ---------------------------------------------------------------------------
# Single-attribute extractors
# ---------------------------------------------------------------------------

def extract_brand(text: str) -> Optional[str]:
    """
    Brand id from any alias in the text, longest alias first.

    '华为 Mate 60 Pro' -> 'huawei', 'IQOO Z10' -> 'vivo', 'Redmi K70' -> 'xiaomi'
    """
    if not text:
        return None
    lowered = text.lower()
    for matches, brand in _BRAND_RULES:
        if matches(lowered):
            return brand
    return None


def normalize_brand(brand) -> str:
    """
    Normalize a free brand cell to a brand id, '' when unknown.

    Examples:
        'HUAWEI' -> 'huawei'
        ' 荣耀 ' -> 'honor'
        'Apple Inc.' -> 'apple'
    """
    if not isinstance(brand, str) or not brand.strip():
        return ''
    key = brand.strip().lower()
    if key in BRAND_ALIASES:
        return BRAND_ALIASES[key]
    return extract_brand(normalize_text(brand)) or ''


def extract_product_type(text: str) -> Optional[str]:
    """
    Product category id; watches first, then PRODUCT_TYPE_TABLE order.

    'iPhone 16 Pro 手机壳' -> 'case' (not 'iphone')
    """
    if not text:
        return None
    if is_watch_product(text):
        return 'watch'
    lowered = text.lower()
    for rules in _TYPE_RULES:
        for matches, type_id in rules:
            if matches(lowered):
                return type_id
    return None


_CAPACITY_PAIR_RE = re.compile(
    r'(?<![\d.])(\d+)\s*(?:gb|g)?\s*\+\s*(\d+)(?:\s*(gb|g|tb|t))?(?![a-z0-9])', re.IGNORECASE
)
_CAPACITY_SINGLE_RE = re.compile(r'(?<![\d.+])(\d+)\s*(gb|g|tb|t)(?![a-z])', re.IGNORECASE)
_BARE_STORAGE_RE = re.compile(r'(?<![A-Za-z0-9.+])(\d{2,4})(?![A-Za-z0-9.+])')


def _storage_value(number: str, terabytes: bool) -> str:
    """'1024' -> '1T', '512' -> '512', '2' (TB) -> '2T'."""
    value = int(number)
    if terabytes:
        return f'{value}T'
    if value >= 1024 and value % 1024 == 0:
        return f'{value // 1024}T'
    return str(value)


def extract_capacity(text: str) -> Optional[str]:
    """
    Storage spec in canonical form.

    Order: first RAM+ROM combination, else first single size with a unit,
    else a bare storage-sized number (the normalizer drops 'GB').

    Examples:
        '12+256'     -> '12+256'
        '16GB+1TB'   -> '16+1T'
        '256GB'      -> '256'
        'iPhone 16 Pro 256' -> '256'
    """
    if not text:
        return None
    m = _CAPACITY_PAIR_RE.search(text)
    if m:
        unit = (m.group(3) or '').lower()
        return f'{int(m.group(1))}+{_storage_value(m.group(2), unit.startswith("t"))}'

    for m in _CAPACITY_SINGLE_RE.finditer(text):
        unit = m.group(2).lower()
        if unit == 'g' and int(m.group(1)) <= NETWORK_GENERATION_MAX:
            continue
        return _storage_value(m.group(1), unit.startswith('t'))

    for m in _BARE_STORAGE_RE.finditer(text):
        if m.group(1) in STORAGE_SIZES:
            return _storage_value(m.group(1), False)
    return None


def extract_colors(text: str) -> Optional[FrozenSet[str]]:
    """
    Standard color names mentioned in the text, or None.

    Matched spans are consumed so '远峰蓝' yields only '蓝色' once and the
    '黑' inside '曜石黑' cannot match again. '蓝牙' / '金属' are masked first.
    """
    if not text:
        return None
    remaining = _COLOR_MASK_RE.sub(' ', text.lower())
    found = set()
    for pattern, standard in _COLOR_RULES:
        if pattern.search(remaining):
            found.add(standard)
            remaining = pattern.sub(' ', remaining)
    return frozenset(found) if found else None


class ScreenSize(NamedTuple):
    value: float
    unit: str  # 'mm' or 'inch'


_MM_RE = re.compile(r'(?<![\d.])(\d{2})\s*mm(?![a-z])')
_INCH_RE = re.compile(r'(?<![\d.])(\d{1,3}(?:\.\d+)?)\s*(?:英寸|寸|inch|"|”)')
_NOTEBOOK_LETTER_FIRST_RE = re.compile(r'(?<![a-z])matebook\s*[a-z]\s*(\d{2})(?!\d)')
_NOTEBOOK_NUMBER_FIRST_RE = re.compile(r'(?<![a-z])matebook\s*(\d{2})\s*[a-z]?(?![a-z0-9])')


def extract_screen_size(text: str) -> Optional[ScreenSize]:
    """
    Case size (mm, 38-50) or screen diagonal (inch, 3-100).

    Also reads MateBook codes that carry the diagonal: 'MateBook D16',
    'MateBook 16S' -> 16 inch.
    """
    if not text:
        return None
    lowered = text.lower()

    for m in _MM_RE.finditer(lowered):
        value = int(m.group(1))
        if SCREEN_MM_RANGE[0] <= value <= SCREEN_MM_RANGE[1]:
            return ScreenSize(float(value), 'mm')

    for m in _INCH_RE.finditer(lowered):
        value = float(m.group(1))
        if SCREEN_INCH_RANGE[0] <= value <= SCREEN_INCH_RANGE[1]:
            return ScreenSize(value, 'inch')

    for pattern in (_NOTEBOOK_LETTER_FIRST_RE, _NOTEBOOK_NUMBER_FIRST_RE):
        m = pattern.search(lowered)
        if m and NOTEBOOK_INCH_RANGE[0] <= int(m.group(1)) <= NOTEBOOK_INCH_RANGE[1]:
            return ScreenSize(float(m.group(1)), 'inch')
    return None


_INTEL_RE = re.compile(r'(?<![a-z0-9])i([3579])(?![a-z0-9])')
_APPLE_SILICON_RE = re.compile(r'(?<![a-z0-9])m([1-4])(?![a-z0-9])')
_AMD_RE = re.compile(r'(?<![a-z])(?:ryzen|amd)(?![a-z])')


def extract_processor(text: str) -> Optional[str]:
    """'i7', 'm3' or 'amd'."""
    if not text:
        return None
    lowered = text.lower()
    m = _INTEL_RE.search(lowered)
    if m:
        return f'i{m.group(1)}'
    m = _APPLE_SILICON_RE.search(lowered)
    if m:
        return f'm{m.group(1)}'
    if _AMD_RE.search(lowered):
        return 'amd'
    return None


_YEAR_RE = re.compile(r'(?<!\d)(202\d)(?!\d)')


def extract_year(text: str) -> Optional[str]:
    if not text:
        return None
    m = _YEAR_RE.search(text)
    return m.group(1) if m else None


_WATCH_SERIES_RE = re.compile(r'watch\s*([a-z]+)(?:\s*(\d+))?')
_SERIES_VERSION_RE = re.compile(
    r'(?<![a-z])(' + '|'.join(sorted(MODEL_SERIES, key=len, reverse=True)) + r')'
    r'\s*([a-z]?\d+[a-z]?)?(?![a-z0-9])'
)
_P_SERIES_RE = re.compile(r'(?<![a-z])p\s*(\d{2,3})(?![0-9])')
_CHINESE_SERIES_RE = re.compile(
    '(' + '|'.join(CHINESE_MODEL_SERIES) + r')\s*(\d+[a-z]?)?'
)
_LETTER_MODEL_RE = re.compile(
    r'(?<![a-z0-9])([a-z])(\d{1,3})(?!\d)(turbo|pro|max|mini|se|air|ultra|plus)?(\+)?(?![a-z])'
)
_PROCESSOR_CODES = {'i3', 'i5', 'i7', 'i9', 'm1', 'm2', 'm3', 'm4'}


def extract_short_model(text: str) -> Optional[str]:
    """
    Compact model identifier used as a hard veto between different lines.

    Steps:
        1. Watch series: 'watch gt 5' -> 'watchgt5', 'watch fit 4' -> 'watchfit4'
        2. Series word + version: 'mate 60' -> 'mate60', 'find x8' -> 'findx8'
           (a series word carrying a version wins over a bare one)
        3. Huawei P line: 'p70' -> 'p70'
        4. Chinese series: '畅享 70' -> '畅享70'
        5. Letter + 1-3 digits (+ glued suffix): 'x200' -> 'x200', 'z10turbo+' -> 'z10turboplus'
           Processor codes (i7, m3) never count.
    """
    if not text:
        return None
    lowered = text.lower()

    m = _WATCH_SERIES_RE.search(lowered)
    if m:
        return f'watch{m.group(1)}{m.group(2) or ""}'

    bare_series = None
    for m in _SERIES_VERSION_RE.finditer(lowered):
        if m.group(2):
            return f'{m.group(1)}{m.group(2)}'
        if bare_series is None:
            bare_series = m.group(1)

    m = _P_SERIES_RE.search(lowered)
    if m:
        return f'p{m.group(1)}'

    m = _CHINESE_SERIES_RE.search(lowered)
    if m:
        return f'{m.group(1)}{m.group(2) or ""}'

    if bare_series:
        return bare_series

    for m in _LETTER_MODEL_RE.finditer(lowered):
        code = f'{m.group(1)}{m.group(2)}'
        if code in _PROCESSOR_CODES:
            continue
        return f'{code}{m.group(3) or ""}{"plus" if m.group(4) else ""}'
    return None


# family prefix ('' when the pattern captures the family itself) -> pattern
_SERIES_PATTERNS = [
    ('matebook', re.compile(r'(?<![a-z])matebook\s*([a-z]?)\s*(\d{0,2})\s*([a-z]?)(?![a-z])')),
    ('iphone', re.compile(r'(?<![a-z])iphone\s*(\d{1,2})\s*((?:pro\s*max|pro|max|plus|mini|e)?)(?![a-z])')),
    ('oppopad', re.compile(r'(?<![a-z])oppo\s*pad\s*(\d*)\s*((?:pro|air|se)?)(?![a-z])')),
    ('ipad', re.compile(r'(?<![a-z])ipad\s*((?:pro|air|mini)?)(?![a-z])')),
    ('', re.compile(
        r'(?<![a-z])(vivo|iqoo)\s*([a-z]{0,3}\d+[a-z]?)'
        r'((?:\s*(?:turbo|pro|max|mini|se|air|ultra|plus)\+?(?![a-z]))*)'
    )),
]
_SERIES_SUFFIX_RE = re.compile(r'(?:turbo|pro|max|mini|se|air|ultra|plus|\+)+$')
_WHITESPACE_RE = re.compile(r'\s+')


def extract_product_series(text: str) -> Optional[str]:
    """
    Family + variant for lines where the short model is too coarse.

    Examples:
        'MateBook 16S'      -> 'matebook16s'
        'MateBook D 16'     -> 'matebookd16'
        'iPhone 16 Pro Max' -> 'iphone16promax'
        'IQOO Z10 Turbo+'   -> 'iqooz10turbo+'
    """
    if not text:
        return None
    lowered = text.lower()
    for family, pattern in _SERIES_PATTERNS:
        m = pattern.search(lowered)
        if m:
            return _WHITESPACE_RE.sub('', family + ''.join(g or '' for g in m.groups()))
    return None


def series_base(series: str) -> str:
    """Series without its variant tail: 'iqooz10turbo+' -> 'iqooz10'."""
    base = _SERIES_SUFFIX_RE.sub('', series)
    return base or series


# ---------------------------------------------------------------------------
# Retrieval keywords
# ---------------------------------------------------------------------------

_SERIES_KEYWORD_RES = [(k, re.compile(_latin(k))) for k in sorted(SERIES_KEYWORDS, key=len, reverse=True)]
_GENERATION_DIGIT_RE = re.compile(r'第\s*(\d+)\s*代')
_GENERATION_CHINESE_RE = re.compile('第([' + ''.join(CHINESE_NUMERALS) + '])代')
_CHIP_RE = re.compile(r'(?<![a-z0-9])(m[1-4])(?![a-z0-9])')
_WATCH_SIZE_RE = re.compile(r'(?<!\d)(4[0-9]|3[89]|50)\s*mm(?![a-z])')
_SCREEN_RE = re.compile(r'(?<![\d.])(\d{1,2}(?:\.\d)?)\s*(?:英寸|寸|inch|")')
_NUMBER_SUFFIX_RE = re.compile(r'(?<![a-z0-9.+])(\d{1,3})\s*(?:pro|max|plus|mini|se|air|e)(?![a-z])')
_SUFFIX_NUMBER_RE = re.compile(r'(?<![a-z])(?:ace|turbo|pro|max|mini|se|air|ultra|plus)\s*(\d{1,3})(?![\d.+])')
_LETTER_NUMBER_RE = re.compile(r'(?<![a-z0-9])([a-z]\d{1,3})(?![a-z0-9])')
_BARE_NUMBER_RE = re.compile(r'(?<![a-z0-9.+])(\d{1,3})(?![\d.+]|\s*(?:g|mm|代|英寸|寸|inch|")|[a-z])')
_CODE_RE = re.compile(r'(?<![a-z0-9])([a-z]\d{4})(?![0-9])')
_CAPACITY_PAIRS_RE = re.compile(r'(?<![\d.])(\d+)\+(\d+t?)(?![a-z0-9])')
_TERABYTE_RE = re.compile(r'(?<![\d.+])(\d+)t(?![a-z])')


@lru_cache(maxsize=50000)
def extract_keywords(text: str) -> FrozenSet[str]:
    """
    Retrieval keywords for the candidate index and Jaccard scoring.

    Watches use model code plus normalized attributes. Everything else gets:
    brand ids, series words, model numbers (screen and capacity numbers
    excluded), chips, sizes, capacities, years, version.
    """
    if not text:
        return frozenset()
    lowered = text.lower()
    keywords = set()

    if is_watch_product(text):
        attrs = extract_watch_attributes(text)
        keywords.update(normalize_watch_attributes(attrs).lower().split())
        keywords.add('watch')

    for matches, brand in _BRAND_RULES:
        if matches(lowered):
            keywords.add(brand)

    for word, pattern in _SERIES_KEYWORD_RES:
        if pattern.search(lowered):
            keywords.add(word)

    for m in _GENERATION_DIGIT_RE.finditer(lowered):
        keywords.add(m.group(1))
    for m in _GENERATION_CHINESE_RE.finditer(lowered):
        keywords.add(str(CHINESE_NUMERALS[m.group(1)]))

    keywords.update(_CHIP_RE.findall(lowered))
    keywords.update(f'{size}mm' for size in _WATCH_SIZE_RE.findall(lowered))

    screen_numbers = set()
    for size in _SCREEN_RE.findall(lowered):
        keywords.add(f'{size}英寸')
        screen_numbers.add(size)

    for pattern in (_NUMBER_SUFFIX_RE, _SUFFIX_NUMBER_RE, _BARE_NUMBER_RE):
        keywords.update(n for n in pattern.findall(lowered) if n not in screen_numbers)
    keywords.update(code for code in _LETTER_NUMBER_RE.findall(lowered) if code[1:] not in screen_numbers)
    keywords.update(_CODE_RE.findall(lowered))

    for ram, rom in _CAPACITY_PAIRS_RE.findall(lowered):
        keywords.add(f'{ram}+{rom}')
    keywords.update(f'{n}t' for n in _TERABYTE_RE.findall(lowered))
    keywords.update(_YEAR_RE.findall(lowered))

    version = extract_version(text)
    if version:
        keywords.add(version.lower())
    return frozenset(keywords)


# ---------------------------------------------------------------------------
# All attributes at once
# ---------------------------------------------------------------------------

class AttributeSet(NamedTuple):
    brand: Optional[str]
    product_type: Optional[str]
    short_model: Optional[str]
    full_model: Optional[str]
    series: Optional[str]
    capacity: Optional[str]
    colors: Optional[FrozenSet[str]]
    screen_size: Optional[ScreenSize]
    processor: Optional[str]
    year: Optional[str]
    version: Optional[str]
    watch: Optional[WatchAttributes]  # set for wearables only
    keywords: FrozenSet[str]
    compact: str


@lru_cache(maxsize=50000)
def extract_attributes(text: str) -> AttributeSet:
    """
    Normalize once, then run every extractor.

    Safe to call with raw or already-normalized text.
    """
    norm = normalize_text(text) if isinstance(text, str) else ''
    return AttributeSet(
        brand=extract_brand(norm),
        product_type=extract_product_type(norm),
        short_model=extract_short_model(norm),
        full_model=extract_full_model(norm),
        series=extract_product_series(norm),
        capacity=extract_capacity(norm),
        colors=extract_colors(norm),
        screen_size=extract_screen_size(norm),
        processor=extract_processor(norm),
        year=extract_year(norm),
        version=extract_version(norm),
        watch=extract_watch_attributes(norm) if is_watch_product(norm) else None,
        keywords=extract_keywords(norm),
        compact=compact_text(norm),
    )
