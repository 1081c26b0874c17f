"""
Smartwatch recognition and comparison.

Watches are listed by model code ("WA2456C") plus a handful of attributes
(connectivity, case size, color, strap) rather than by a model name with
suffixes, so they get their own comparison path. A shared model code is
decisive; otherwise at least 80% of the attributes named on either side
must agree.
"""

import re
from functools import lru_cache
from typing import List, NamedTuple, Optional, Tuple

WATCH_KEYWORDS = ['watch', '手表', 'smartwatch', '智能手表']

# alias -> canonical token
CONNECTIVITY_TYPES: List[Tuple[str, str]] = [
    ('蓝牙版', '蓝牙版'), ('蓝牙', '蓝牙版'),
    ('esim版', 'esim版'), ('esim', 'esim版'),
    ('4g版', '4g版'), ('5g版', '5g版'), ('lte版', 'lte版'),
    ('gps版', 'gps版'), ('gps', 'gps版'),
    ('cellular版', 'cellular版'), ('cellular', 'cellular版'),
]

STRAP_MATERIALS = ['软胶', '皮革', '金属', '尼龙', '硅胶', '橡胶', '不锈钢', '钛金属', '陶瓷']

WATCH_COLORS = [
    # compound names first so '夏夜黑' is not read as '黑'
    '夏夜黑', '星云灰', '月光银', '玫瑰金', '钛金属', '曜石黑', '幻夜黑', '午夜黑',
    '深空黑', '深空灰', '象牙白', '月影白', '雪域白', '星光白', '云海白',
    '远峰蓝', '天海青', '清风蓝', '晓山青', '云母蓝',
    '苍岭绿', '松岭青', '竹韵青', '旷野绿', '掠影绿', '原野绿', '玉石绿',
    '梦幻紫', '电光紫', '玉兰紫', '雾光紫', '砂岩紫',
    '樱花粉', '流沙粉', '玛瑙粉', '水晶粉',
    '黑色', '白色', '银色', '金色', '黑', '白', '银', '金',
    '蓝', '红', '绿', '紫', '粉', '灰', '棕', '橙',
]

WATCH_SIZE_MIN_MM = 38
WATCH_SIZE_MAX_MM = 50
MIN_AGREEMENT = 0.8


class WatchAttributes(NamedTuple):
    model_code: Optional[str] = None
    connectivity: Optional[str] = None
    strap_material: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None


_CONNECTIVITY = sorted(CONNECTIVITY_TYPES, key=lambda pair: len(pair[0]), reverse=True)
_STRAPS = sorted(STRAP_MATERIALS, key=len, reverse=True)
_COLORS = sorted(WATCH_COLORS, key=len, reverse=True)

_KEYWORD_RE = re.compile(
    '|'.join(
        rf'(?<![a-z]){re.escape(k)}(?![a-z])' if k.isascii() else re.escape(k)
        for k in sorted(WATCH_KEYWORDS, key=len, reverse=True)
    )
)
_BRACKETED_CODE_RE = re.compile(r'[（(\[]\s*([A-Z]{2}\d{4}[A-Z]?)\s*[）)\]]', re.IGNORECASE)
_BARE_CODE_RE = re.compile(r'(?<![A-Za-z0-9])([A-Z]{2}\d{4}[A-Z]?)(?![A-Za-z0-9])', re.IGNORECASE)
_SIZE_RE = re.compile(r'(?<![\d.])(\d{2})\s*mm(?![a-z])', re.IGNORECASE)
_WHITESPACE_RE = re.compile(r'\s+')


@lru_cache(maxsize=50000)
def is_watch_product(text: str) -> bool:
    """True when the text names a watch ('watch', '手表', ...)."""
    if not text:
        return False
    return _KEYWORD_RE.search(text.lower()) is not None


def extract_watch_model_code(text: str) -> Optional[str]:
    """
    Two letters + four digits + optional letter, bracketed form preferred.

    '华为 Watch 5 (WA2456C) 46mm' -> 'WA2456C'
    """
    if not text:
        return None
    m = _BRACKETED_CODE_RE.search(text) or _BARE_CODE_RE.search(text)
    return m.group(1).upper() if m else None


def _first_in(text: str, table) -> Optional[str]:
    for entry in table:
        if entry in text:
            return entry
    return None


@lru_cache(maxsize=50000)
def extract_watch_attributes(text: str) -> WatchAttributes:
    """
    Pull model code, connectivity, strap, color and case size from watch text.

    Examples:
        '华为Watch 5 eSIM版 46mm 幻夜黑 软胶表带'
            -> WatchAttributes(None, 'esim版', '软胶', '幻夜黑', '46mm')
    """
    if not text:
        return WatchAttributes()
    lowered = text.lower()
    compact = _WHITESPACE_RE.sub('', lowered)

    # color is read from what connectivity and strap leave behind:
    # '蓝牙' holds '蓝' and '金属' holds '金'
    remainder = compact
    connectivity = None
    for alias, canonical in _CONNECTIVITY:
        if alias in compact:
            connectivity = canonical
            remainder = remainder.replace(alias, ' ')
            break

    strap = _first_in(compact, _STRAPS)
    if strap and strap not in WATCH_COLORS:
        remainder = remainder.replace(strap, ' ')

    size = None
    for m in _SIZE_RE.finditer(lowered):
        if WATCH_SIZE_MIN_MM <= int(m.group(1)) <= WATCH_SIZE_MAX_MM:
            size = f'{m.group(1)}mm'
            break

    return WatchAttributes(
        model_code=extract_watch_model_code(text),
        connectivity=connectivity,
        strap_material=strap,
        color=_first_in(remainder, _COLORS),
        size=size,
    )


def normalize_watch_attributes(attrs: WatchAttributes) -> str:
    """Render present attributes as 'code connectivity color strap size'."""
    ordered = [attrs.model_code, attrs.connectivity, attrs.color, attrs.strap_material, attrs.size]
    return ' '.join(value for value in ordered if value)


def compare_watch_attributes(a: WatchAttributes, b: WatchAttributes) -> bool:
    """
    Decide whether two watch attribute sets describe the same product.

    Steps:
        1. Both have a model code -> codes decide alone.
        2. Otherwise count connectivity, size, color and strap wherever
           either side names them; a one-sided attribute is a disagreement.
        3. Equivalent when at least 80% of counted attributes agree.
           Nothing to count -> not equivalent.
    """
    if a.model_code and b.model_code:
        return a.model_code == b.model_code

    total = agreed = 0
    for field in ('connectivity', 'size', 'color', 'strap_material'):
        left, right = getattr(a, field), getattr(b, field)
        if left or right:
            total += 1
            if left == right:
                agreed += 1
    if total == 0:
        return False
    return agreed / total >= MIN_AGREEMENT


def compare_watch_products(text_a: str, text_b: str) -> bool:
    """Text-level wrapper around compare_watch_attributes."""
    return compare_watch_attributes(extract_watch_attributes(text_a), extract_watch_attributes(text_b))
