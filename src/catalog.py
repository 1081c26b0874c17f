"""
Catalog records and loading.

A catalog record is one canonical product: a primary name (SKU name), an
optional secondary name (SPU / family name), an optional spec string and an
optional brand. Records are immutable and carry their catalog position,
which orders ties everywhere downstream.
"""

import logging
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


class CatalogRecord(NamedTuple):
    position: int
    name: str
    secondary_name: Optional[str] = None
    spec: Optional[str] = None
    brand: Optional[str] = None
    data: Optional[Mapping] = None  # original row, passed through to output


def _clean(value) -> Optional[str]:
    """Cell value as stripped text, None for NaN / None / blank."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    text = str(value).strip()
    return text or None


def record_fields(record: CatalogRecord) -> List[Tuple[str, str]]:
    """
    The texts a record can be matched on, in preference order.

    Steps:
        1. 'name'                -> SKU name
        2. 'secondary_name'      -> SPU name
        3. 'secondary_name+spec' -> SPU name + spec, only when both exist
    """
    fields = [('name', record.name)]
    if record.secondary_name:
        fields.append(('secondary_name', record.secondary_name))
        if record.spec:
            fields.append(('secondary_name+spec', f'{record.secondary_name} {record.spec}'))
    return fields


def make_catalog(entries: Iterable[Mapping]) -> List[CatalogRecord]:
    """Records from plain dicts with name / secondary_name / spec / brand keys."""
    records = []
    for entry in entries:
        name = _clean(entry.get('name'))
        if name is None:
            continue
        records.append(CatalogRecord(
            position=len(records),
            name=name,
            secondary_name=_clean(entry.get('secondary_name')),
            spec=_clean(entry.get('spec')),
            brand=_clean(entry.get('brand')),
            data=dict(entry),
        ))
    return records


def load_catalog(
    df_catalog: pd.DataFrame,
    name_col: str,
    secondary_col: Optional[str] = None,
    spec_col: Optional[str] = None,
    brand_col: Optional[str] = None,
) -> Tuple[List[CatalogRecord], Dict]:
    """
    Clean a catalog sheet into records:
        1. Drop rows with null/empty names
        2. Drop exact duplicate names (first occurrence kept)
        3. Count empty brands (data quality warning)

    Returns:
        - list of CatalogRecord, positions 0..n-1 in sheet order
        - stats dict (includes 'warnings' list)
    """
    df = df_catalog.copy()
    df.columns = [str(c).strip() for c in df.columns]
    warnings = []

    for label, col in (('secondary', secondary_col), ('spec', spec_col), ('brand', brand_col)):
        if col and col not in df.columns:
            warnings.append(f"Catalog has no {label} column '{col}', ignored")
    secondary_col = secondary_col if secondary_col in df.columns else None
    spec_col = spec_col if spec_col in df.columns else None
    brand_col = brand_col if brand_col in df.columns else None

    original_count = len(df)

    df = df[df[name_col].notna()]
    df = df[df[name_col].astype(str).str.strip() != '']
    null_dropped = original_count - len(df)

    pre_dedup = len(df)
    df = df[~df[name_col].astype(str).str.strip().duplicated(keep='first')]
    duplicate_dropped = pre_dedup - len(df)
    if duplicate_dropped:
        warnings.append(f"{duplicate_dropped} duplicate catalog names dropped")

    if brand_col:
        empty_brands = df[brand_col].isna().sum() + (df[brand_col].astype(str).str.strip() == '').sum()
        if empty_brands > 0:
            warnings.append(f"{empty_brands} catalog entries have empty brand fields")

    records = []
    for row in df.to_dict('records'):
        records.append(CatalogRecord(
            position=len(records),
            name=str(row[name_col]).strip(),
            secondary_name=_clean(row.get(secondary_col)) if secondary_col else None,
            spec=_clean(row.get(spec_col)) if spec_col else None,
            brand=_clean(row.get(brand_col)) if brand_col else None,
            data=row,
        ))

    stats = {
        'original': original_count,
        'null_dropped': null_dropped,
        'duplicate_dropped': duplicate_dropped,
        'final': len(records),
        'warnings': warnings,
    }
    logger.info("Catalog loaded: %d of %d rows kept", len(records), original_count)
    return records, stats


def read_table(file, sheet_name=0) -> pd.DataFrame:
    """
    Read an uploaded .xlsx or .csv file (path or file-like with a .name).

    Leading unnamed index columns written by earlier exports are dropped.
    """
    file_name = getattr(file, 'name', file if isinstance(file, str) else '')
    if str(file_name).lower().endswith('.csv'):
        df = pd.read_csv(file)
    else:
        df = pd.read_excel(file, sheet_name=sheet_name, engine='openpyxl')

    df.columns = [str(c).strip() for c in df.columns]
    while len(df.columns) and df.columns[0] in ('', 'nan', 'None', 'Unnamed: 0'):
        df = df.iloc[:, 1:]
    return df
