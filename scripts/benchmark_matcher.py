"""
Micro-benchmark for the matching pipeline.

Tests:
1. normalize_text() uncached, on typical row text
2. extract_attributes() uncached
3. build_candidate_index() on a synthetic 10k catalog
4. match_rows() end-to-end on 1k synthetic rows (keyword vote and brand filter)

Usage:
    python scripts/benchmark_matcher.py
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
import time
import numpy as np
import pandas as pd
from candidate_index import build_candidate_index
from catalog import load_catalog
from extractors import extract_attributes
from matcher import MODE_HEURISTIC, compute_match_summary, match_rows
from normalizer import normalize_text

RNG = np.random.default_rng(42)

LINES = [
    ('华为', 'HUAWEI', 'Mate {n}', ['60', '70']),
    ('华为', 'HUAWEI', 'nova {n}', ['12', '13']),
    ('荣耀', 'HONOR', 'Magic{n}', ['6', '7']),
    ('小米', 'Xiaomi', '小米{n}', ['14', '15']),
    ('VIVO', 'vivo', 'X{n}', ['100', '200']),
    ('VIVO', 'iQOO', 'Z{n}', ['9', '10']),
    ('OPPO', 'OPPO', 'Reno{n}', ['12', '13']),
    ('苹果', 'Apple', 'iPhone {n}', ['15', '16']),
]
SUFFIXES = ['', ' Pro', ' Pro Max', ' Ultra', ' Turbo+', ' 活力版']
CAPACITIES = ['8+256', '12+256', '12+512', '16+1T']
COLORS = ['黑色', '白色', '远峰蓝', '玫瑰金', '曜石黑']


def _pick(options):
    return options[RNG.integers(len(options))]


def generate_synthetic_catalog(n_rows: int = 10000) -> pd.DataFrame:
    """Catalog sheet with SKU name, SPU name, spec and brand columns."""
    data = []
    for _ in range(n_rows):
        brand_cn, _, template, numbers = LINES[RNG.integers(len(LINES))]
        spu = f"{brand_cn} {template.format(n=_pick(numbers))}{_pick(SUFFIXES)}"
        spec = f"{_pick(CAPACITIES)} {_pick(COLORS)}"
        data.append({'sku_name': f"{spu} {spec}", 'spu_name': spu, 'spec': spec, 'brand': brand_cn})
    return pd.DataFrame(data)


def generate_synthetic_rows(n_rows: int = 1000) -> pd.DataFrame:
    """Input rows written the sloppy way suppliers write them."""
    data = []
    for _ in range(n_rows):
        _, brand_en, template, numbers = LINES[RNG.integers(len(LINES))]
        model = template.format(n=_pick(numbers)).replace(' ', '')
        ram, rom = _pick(CAPACITIES).split('+')
        rom = rom.replace('1T', '1TB') if rom.endswith('T') else f'{rom}GB'
        name = f"{brand_en}{model}{_pick(SUFFIXES).replace(' ', '')} {ram}GB+{rom} {_pick(COLORS)}"
        data.append({'品牌': brand_en, '商品名称': name})
    return pd.DataFrame(data)


def benchmark_text_functions(n_iterations: int = 2000):
    """Uncached per-call cost of the two hot text functions."""
    print("\n" + "="*70)
    print("BENCHMARK: normalize_text() / extract_attributes() - uncached")
    print("="*70)

    samples = [
        "HUAWEI Mate60Pro 12GB+512GB 雅川青（演示机）",
        "IQOOZ10Turbo+ 16+1TB 星光白",
        "Apple iPhone 16 Pro Max 256GB 沙漠色钛金属",
        "华为Watch GT5 46mm (WA2456C) 软胶表带 幻夜黑",
    ]
    for text in samples:
        for label, func in (('normalize_text', normalize_text.__wrapped__),
                            ('extract_attributes', extract_attributes.__wrapped__)):
            start = time.perf_counter()
            for _ in range(n_iterations):
                func(text)
            elapsed_ms = (time.perf_counter() - start) * 1000
            print(f"\n{label}: {text}")
            print(f"  Per call: {elapsed_ms * 1000 / n_iterations:.2f}μs")


def benchmark_build_index(catalog):
    print("\n" + "="*70)
    print(f"BENCHMARK: build_candidate_index() - {len(catalog):,} records")
    print("="*70)
    start = time.perf_counter()
    index = build_candidate_index(catalog)
    elapsed = time.perf_counter() - start
    print(f"  Build: {elapsed * 1000:.2f}ms")
    print(f"  Keywords: {len(index.keyword_postings):,}  Brands: {len(index.brand_postings)}")
    print(f"  Indexing rate: {len(catalog) / elapsed:.0f} records/sec")
    return index


def benchmark_match_rows(catalog, index, df_rows):
    print("\n" + "="*70)
    print(f"BENCHMARK: match_rows() - {len(df_rows):,} rows")
    print("="*70)
    rows = df_rows.to_dict('records')
    for label, columns in (('keyword vote', ['商品名称']), ('brand filter', ['品牌', '商品名称'])):
        start = time.perf_counter()
        results = match_rows(rows, catalog, columns, mode=MODE_HEURISTIC, index=index)
        elapsed = time.perf_counter() - start
        summary = compute_match_summary(results)
        print(f"\n{label}:")
        print(f"  Matching time: {elapsed * 1000:.2f}ms")
        print(f"  Per-row time: {elapsed * 1000 / len(rows):.2f}ms")
        print(f"  Matched: {summary['matched_count']} ({summary['matched_rate']}%)")


def main():
    print("="*70)
    print("SKU MATCHER PERFORMANCE BENCHMARK")
    print("="*70)

    benchmark_text_functions()

    catalog, stats = load_catalog(generate_synthetic_catalog(10000), 'sku_name', 'spu_name', 'spec', 'brand')
    print(f"\nCatalog: {stats['final']:,} records ({stats['duplicate_dropped']:,} duplicates dropped)")
    index = benchmark_build_index(catalog)
    benchmark_match_rows(catalog, index, generate_synthetic_rows(1000))

    print("\n" + "="*70)
    print("BENCHMARK COMPLETE")
    print("="*70)


if __name__ == '__main__':
    main()
