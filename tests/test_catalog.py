"""Tests for catalog records and loading."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pandas as pd
import pytest

from catalog import CatalogRecord, load_catalog, make_catalog, read_table, record_fields


@pytest.fixture
def catalog_df():
    return pd.DataFrame({
        'SKU名称 ': ['VIVO X200 Pro 12+256 黑色', None, '  ', 'VIVO X200 Pro 12+256 黑色', '华为 Mate 60 Pro'],
        'SPU名称': ['VIVO X200 Pro', None, None, 'VIVO X200 Pro', np.nan],
        '规格': ['12+256 黑色', None, None, '12+256 黑色', '12+512'],
        '品牌': ['VIVO', None, None, 'VIVO', np.nan],
    })


class TestRecordFields:
    def test_name_only(self):
        assert record_fields(CatalogRecord(0, 'Mate 60')) == [('name', 'Mate 60')]

    def test_all_fields(self):
        record = CatalogRecord(0, 'VIVO X200 Pro 12+256 黑色', 'VIVO X200 Pro', '12+256 黑色')
        assert record_fields(record) == [
            ('name', 'VIVO X200 Pro 12+256 黑色'),
            ('secondary_name', 'VIVO X200 Pro'),
            ('secondary_name+spec', 'VIVO X200 Pro 12+256 黑色'),
        ]

    def test_spec_without_secondary_name_unused(self):
        assert record_fields(CatalogRecord(0, 'Mate 60', spec='12+512')) == [('name', 'Mate 60')]


class TestMakeCatalog:
    def test_positions_and_blank_names(self):
        records = make_catalog([{'name': 'A'}, {'name': ' '}, {'name': 'B', 'brand': ' 华为 '}])
        assert [(r.position, r.name) for r in records] == [(0, 'A'), (1, 'B')]
        assert records[1].brand == '华为'


class TestLoadCatalog:
    def test_cleaning_and_stats(self, catalog_df):
        records, stats = load_catalog(catalog_df, 'SKU名称', 'SPU名称', '规格', '品牌')
        assert [r.name for r in records] == ['VIVO X200 Pro 12+256 黑色', '华为 Mate 60 Pro']
        assert [r.position for r in records] == [0, 1]
        assert stats['original'] == 5
        assert stats['null_dropped'] == 2
        assert stats['duplicate_dropped'] == 1
        assert stats['final'] == 2
        assert any('duplicate' in w for w in stats['warnings'])
        assert any('empty brand' in w for w in stats['warnings'])

    def test_optional_fields(self, catalog_df):
        records, _ = load_catalog(catalog_df, 'SKU名称', 'SPU名称', '规格', '品牌')
        assert records[0].secondary_name == 'VIVO X200 Pro'
        assert records[0].spec == '12+256 黑色'
        assert records[0].brand == 'VIVO'
        assert records[1].secondary_name is None
        assert records[1].brand is None

    def test_missing_optional_column_warns(self, catalog_df):
        records, stats = load_catalog(catalog_df, 'SKU名称', brand_col='Brand')
        assert all(r.brand is None for r in records)
        assert any("'Brand'" in w for w in stats['warnings'])

    def test_input_not_modified(self, catalog_df):
        load_catalog(catalog_df, 'SKU名称')
        assert len(catalog_df) == 5
        assert 'SKU名称 ' in catalog_df.columns


class TestReadTable:
    def test_csv(self, tmp_path):
        path = tmp_path / 'rows.csv'
        pd.DataFrame({'商品名称': ['Mate 60 Pro'], ' 品牌 ': ['华为']}).to_csv(path, index=False)
        df = read_table(str(path))
        assert list(df.columns) == ['商品名称', '品牌']

    def test_xlsx_drops_index_column(self, tmp_path):
        path = tmp_path / 'catalog.xlsx'
        pd.DataFrame({'name': ['Mate 60 Pro']}).to_excel(path, engine='openpyxl')
        df = read_table(str(path))
        assert list(df.columns) == ['name']
        assert df.loc[0, 'name'] == 'Mate 60 Pro'
