"""
Full model extraction and comparison.

The short model ("x200") says which product line a row is about; the full
model ("X200 Pro Mini") says which member of that line. Two full models
that share a prefix are only the same product when the leftover text is not
a variant suffix: "X200 Pro" and "X200 Pro Mini" are different phones, while
"Mate 60" and "Mate60" are not.

Score tiers (model_match_score):
    1.0  identical after whitespace/case folding
    0.0  one extends the other with a known suffix ("X200 Pro" / "X200 Pro Mini")
    0.5  one extends the other with anything else
    0.3  same base once suffixes are stripped ("X200 Pro" / "X200 Max")
    0.0  unrelated
"""

import re
from functools import lru_cache
from typing import Optional

# Variant words that turn one product into a different one
MODEL_SUFFIXES = [
    'Pro', 'Max', 'Mini', 'Plus', 'Ultra', 'SE', 'Air', 'Turbo', 'Lite',
    'Note', 'Edge', 'Fold', 'Flip', 'X', 'S', 'R', 'T', 'GT', 'RS', 'Neo', 'Ace',
]

_SUFFIXES_LONGEST_FIRST = sorted((s.lower() for s in MODEL_SUFFIXES), key=len, reverse=True)
_SUFFIX_CANONICAL = {s.lower(): s for s in MODEL_SUFFIXES}
_SUFFIX_ALT = '|'.join(re.escape(s) for s in _SUFFIXES_LONGEST_FIRST)

# Optional word prefix ("Mate", "iPhone", "X"), digits, optional letter,
# then any run of suffix words ("Pro", "Turbo+", "Pro Max")
_FULL_MODEL_RE = re.compile(
    r'(?<![A-Za-z0-9+.])'
    r'(?P<prefix>[A-Za-z]+(?P<gap> )?)?'
    r'(?P<number>\d+)(?P<letter>[A-Za-z])?'
    rf'(?P<suffixes>(?:\s*(?:{_SUFFIX_ALT})\+?(?![A-Za-z]))*)'
    r'(?![A-Za-z0-9+.])',
    re.IGNORECASE,
)
_SUFFIX_WORD_RE = re.compile(rf'({_SUFFIX_ALT})(\+?)', re.IGNORECASE)

# A number followed by one of these is a size, capacity or date, not a model
_UNIT_AFTER_RE = re.compile(r'\s*(?:mm|英寸|寸|"|inch|gb|tb|代|年|款)', re.IGNORECASE)
_PROCESSOR_RE = re.compile(r'^(?:i[3579]|m[1-4])$', re.IGNORECASE)
_YEAR_RE = re.compile(r'^(?:19|20)\d\d$')
_WHITESPACE_RE = re.compile(r'\s+')


def _fold(model: Optional[str]) -> str:
    return _WHITESPACE_RE.sub('', model or '').lower()


def _render(prefix: str, number: str, letter: str, suffixes: str) -> str:
    words = [f'{prefix}{number}{letter}']
    for word, plus in _SUFFIX_WORD_RE.findall(suffixes):
        words.append(_SUFFIX_CANONICAL[word.lower()] + plus)
    return ' '.join(words)


@lru_cache(maxsize=50000)
def extract_full_model(text: str) -> Optional[str]:
    """
    Extract the model code plus every trailing suffix word.

    Sizes ("46mm", "13英寸"), capacities ("12+256", "1T"), years and
    processor codes are skipped.

    Examples:
        'VIVO X200 Pro mini 16+512' -> 'X200 Pro Mini'
        'IQOO Z10 Turbo+'           -> 'Z10 Turbo+'
        '华为 Mate 60 Pro'          -> 'Mate60 Pro'
    """
    if not text:
        return None
    for m in _FULL_MODEL_RE.finditer(text):
        prefix, number = m.group('prefix') or '', m.group('number')
        letter = m.group('letter') or ''
        if letter.lower() in ('g', 't'):
            continue  # "5G", "256G", "1T"
        if _UNIT_AFTER_RE.match(text, m.end()):
            continue
        if not prefix and _YEAR_RE.match(number):
            continue
        if _PROCESSOR_RE.match(f'{prefix}{number}'):
            continue
        # "Air 13" / "Ace 5": a spaced suffix word is not part of the code
        if m.group('gap') and prefix.strip().lower() in _SUFFIX_CANONICAL:
            prefix = ''
        return _render(prefix.strip(), number, letter, m.group('suffixes'))
    return None


def _has_suffix(remainder: str) -> bool:
    return any(suffix in remainder for suffix in _SUFFIXES_LONGEST_FIRST)


@lru_cache(maxsize=50000)
def extract_base_model(model: str) -> str:
    """
    Strip trailing suffix words until none is left.

    'X200 Pro Mini' -> 'x200', 'Z10 Turbo+' -> 'z10'
    """
    base = _fold(model).rstrip('+')
    stripped = True
    while stripped:
        stripped = False
        for suffix in _SUFFIXES_LONGEST_FIRST:
            if base.endswith(suffix) and len(base) > len(suffix):
                base = base[:-len(suffix)].rstrip('+')
                stripped = True
                break
    return base


def model_match_score(a: Optional[str], b: Optional[str]) -> float:
    """Compare two full models; symmetric, see module docstring for tiers."""
    fa, fb = _fold(a), _fold(b)
    if not fa and not fb:
        return 1.0
    if not fa or not fb:
        return 0.0
    if fa == fb:
        return 1.0

    shorter, longer = sorted((fa, fb), key=len)
    if longer.startswith(shorter):
        return 0.0 if _has_suffix(longer[len(shorter):]) else 0.5

    if extract_base_model(fa) == extract_base_model(fb):
        return 0.3
    return 0.0


def should_exclude_candidate(input_model: Optional[str], candidate_model: Optional[str]) -> bool:
    """
    True when the candidate is the input plus a variant suffix.

    Only that direction excludes: a row naming "X200 Pro Mini" may still
    fall back to an "X200 Pro" record through scoring.
    """
    fi, fc = _fold(input_model), _fold(candidate_model)
    if not fi or not fc or fi == fc:
        return False
    return fc.startswith(fi) and _has_suffix(fc[len(fi):])
