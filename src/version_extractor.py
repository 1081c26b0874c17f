"""
Edition / version qualifiers ("活力版", "5G版", "V2", "第二代").

A qualifier is part of product identity: "X200 Pro" and "X200 Pro 活力版"
are sold as different SKUs. Matching is whitespace-insensitive because the
normalizer may have separated "5G" from "版".
"""

import re
from functools import lru_cache
from typing import Optional

VERSION_KEYWORDS = [
    '全网通5G版', '全网通版',
    '竞速版', '至尊版', '活力版', '标准版', '青春版', '极速版',
    '旗舰版', '尊享版', '典藏版', '纪念版', '限定版', '特别版', '周年版', '定制版',
    '专业版', '大师版', '先锋版', '探索版', '畅享版', '轻享版', '潮流版', '时尚版',
    '经典版', '豪华版', '精英版', '荣耀版', '冠军版', '传奇版', '超能版', '超级版',
    '增强版', '升级版', '进阶版', '高配版', '低配版', '入门版', '基础版', '简化版',
    '简约版', '纯净版', '素皮版', '玻璃版', '陶瓷版', '钛金版',
    '国行版', '港版', '美版', '欧版', '日版', '韩版', '国际版', '中国版',
    '移动版', '联通版', '电信版', '双卡版', '单卡版',
    '5G版', '4G版', '3G版',
]

# Qualifiers sold under several names
VERSION_SYNONYMS = [
    ['5g版', '全网通5g版'],
    ['4g版', '全网通4g版'],
    ['标准版', '基础版', '入门版'],
    ['旗舰版', '至尊版', '尊享版'],
    ['青春版', '轻享版', '畅享版'],
    ['竞速版', '极速版', '超能版'],
    ['国行版', '中国版'],
    ['港版', '香港版'],
    ['美版', '美国版'],
    ['欧版', '欧洲版'],
    ['日版', '日本版'],
    ['韩版', '韩国版'],
]

_MIN_SUBSTRING_LEN = 2

_KEYWORDS_LONGEST_FIRST = sorted(VERSION_KEYWORDS, key=len, reverse=True)
_SYNONYM_GROUP = {
    variant: group_id
    for group_id, group in enumerate(VERSION_SYNONYMS)
    for variant in group
}

_CHINESE_DIGITS = '一二三四五六七八九十'

# (pattern, search the whitespace-free form?)
_PATTERNS = [
    (re.compile(r'(?<![A-Za-z0-9])V(\d+)(?![A-Za-z0-9])', re.IGNORECASE), False),
    (re.compile(r'(?<![A-Za-z])Gen\s*(\d+)(?![0-9])', re.IGNORECASE), False),
    (re.compile(rf'第([{_CHINESE_DIGITS}]+)代'), True),
    (re.compile(r'(?<![\d.])(\d+)代'), True),
]
_WHITESPACE_RE = re.compile(r'\s+')


def _compact(text: str) -> str:
    return _WHITESPACE_RE.sub('', text)


@lru_cache(maxsize=50000)
def extract_version(text: str) -> Optional[str]:
    """
    Return the first edition qualifier found, longest phrase first.

    Falls back to generation patterns (V2, Gen 3, 第二代, 2代) when no
    qualifier phrase is present.

    Examples:
        'VIVO X200 Pro 活力版'   -> '活力版'
        'Mate 60 Pro 全网通5G版' -> '全网通5G版'
        'Apple Pencil 第二代'    -> '第二代'
    """
    if not text:
        return None
    compact = _compact(text)
    lowered = compact.lower()
    for keyword in _KEYWORDS_LONGEST_FIRST:
        if keyword.lower() in lowered:
            return keyword
    for pattern, on_compact in _PATTERNS:
        m = pattern.search(compact if on_compact else text)
        if m:
            return _compact(m.group(0))
    return None


def _normalize(version: str) -> str:
    return _compact(version).lower()


def versions_match(a: Optional[str], b: Optional[str]) -> bool:
    """
    Both absent -> True; one absent -> False; otherwise equal, synonyms,
    or one contained in the other (shorter side at least 2 chars).
    """
    if not a and not b:
        return True
    if not a or not b:
        return False

    na, nb = _normalize(a), _normalize(b)
    if na == nb:
        return True

    group_a, group_b = _SYNONYM_GROUP.get(na), _SYNONYM_GROUP.get(nb)
    if group_a is not None and group_a == group_b:
        return True

    shorter, longer = sorted((na, nb), key=len)
    return len(shorter) >= _MIN_SUBSTRING_LEN and shorter in longer


def remove_version(text: str) -> str:
    """
    Drop the edition qualifier: 'X200 Pro 活力版' -> 'X200 Pro'.

    A display helper for callers that want a version-free product name.
    Scoring keeps the qualifier in the text and compares it separately via
    versions_match, since the V<n> pattern also fires on model codes such
    as 'VIVO V30'.
    """
    version = extract_version(text)
    if not version:
        return text
    # qualifier may be spread over whitespace ("5G 版")
    pattern = r'\s*'.join(re.escape(ch) for ch in version)
    return _WHITESPACE_RE.sub(' ', re.sub(pattern, ' ', text, count=1, flags=re.IGNORECASE)).strip()
