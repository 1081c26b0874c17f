"""
SKU Matcher: Streamlit UI

Upload a catalog and a list of product rows, pick the columns to match on,
and download the rows with their matched catalog records.

Run with:
    streamlit run src/app.py
"""

import io
import os

import pandas as pd
import streamlit as st

from batch_runner import MemoryLimitExceeded, run_in_batches
from catalog import load_catalog, read_table
from logging_config import configure_logging
from matcher import (
    BRAND_COLUMN_KEYWORDS,
    DEFAULT_THRESHOLD,
    MATCH_MODES,
    MATCH_STATUS_MATCHED,
    MATCH_STATUS_UNMATCHED,
    MODE_HEURISTIC,
    MatchConfigError,
    NAME_COLUMN_KEYWORDS,
    compute_match_summary,
    results_to_frame,
)

configure_logging(os.getenv("LOG_DIR"))

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="SKU Matcher",
    page_icon="🔗",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.title("🔗 SKU Matcher")
st.markdown("**Match free-text product rows to catalog records with attribute-aware scoring**")

MODE_LABELS = {
    'exact': 'Exact (literal name lookup)',
    'normalized': 'Normalized (case / spacing insensitive)',
    'heuristic': 'Heuristic (attribute-aware scoring)',
}


def _guess_column(columns, keywords, default_index=0):
    """Index of the first column whose name contains a keyword."""
    for i, col in enumerate(columns):
        if any(kw in str(col).lower() for kw in keywords):
            return i
    return default_index


def _optional_column(label, columns, keywords, key):
    options = ['(none)'] + list(columns)
    index = _guess_column(columns, keywords, default_index=-1) + 1
    choice = st.selectbox(label, options, index=index, key=key)
    return None if choice == '(none)' else choice


# ---------------------------------------------------------------------------
# Sidebar: matching settings
# ---------------------------------------------------------------------------
with st.sidebar:
    st.header("⚙️ Settings")
    mode = st.radio(
        "Matching mode",
        MATCH_MODES,
        index=MATCH_MODES.index(MODE_HEURISTIC),
        format_func=lambda m: MODE_LABELS.get(m, m),
    )
    threshold = st.slider(
        "Similarity threshold",
        min_value=0.0, max_value=1.0, value=DEFAULT_THRESHOLD, step=0.01,
        disabled=mode != MODE_HEURISTIC,
        help="Minimum composite score for a heuristic match",
    )

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
st.subheader("📚 Catalog")
catalog_upload = st.file_uploader("Upload catalog (.xlsx or .csv)", type=["xlsx", "csv"], key="catalog_upload")
if catalog_upload is None:
    st.info("Upload a catalog to begin.")
    st.stop()

try:
    df_catalog = read_table(catalog_upload)
except Exception as e:
    st.error(f"Failed to read catalog: {e}")
    st.stop()

catalog_columns = list(df_catalog.columns)
c1, c2, c3, c4 = st.columns(4)
with c1:
    name_col = st.selectbox(
        "Name column", catalog_columns,
        index=_guess_column(catalog_columns, NAME_COLUMN_KEYWORDS),
    )
with c2:
    secondary_col = _optional_column("Secondary name column", catalog_columns, ['spu'], key="secondary_col")
with c3:
    spec_col = _optional_column("Spec column", catalog_columns, ['spec', '规格'], key="spec_col")
with c4:
    brand_col = _optional_column("Brand column", catalog_columns, BRAND_COLUMN_KEYWORDS, key="brand_col")

catalog, catalog_stats = load_catalog(df_catalog, name_col, secondary_col, spec_col, brand_col)
st.metric("Catalog Records", f"{catalog_stats['final']:,}", f"-{catalog_stats['original'] - catalog_stats['final']} dropped")
for warning in catalog_stats['warnings']:
    st.warning(warning)

# ---------------------------------------------------------------------------
# Rows to match
# ---------------------------------------------------------------------------
st.divider()
st.subheader("📤 Rows to Match")
rows_upload = st.file_uploader("Upload product rows (.xlsx or .csv)", type=["xlsx", "csv"], key="rows_upload")
if rows_upload is None:
    st.stop()

try:
    df_rows = read_table(rows_upload)
except Exception as e:
    st.error(f"Failed to read rows: {e}")
    st.stop()

row_columns = list(df_rows.columns)
default_match = [c for c in row_columns if any(kw in str(c).lower() for kw in NAME_COLUMN_KEYWORDS + BRAND_COLUMN_KEYWORDS)]
match_columns = st.multiselect(
    "Columns to match on (in priority order)",
    row_columns,
    default=default_match or row_columns[:1],
)

with st.expander("Preview Raw Data"):
    st.dataframe(df_rows.head(10), use_container_width=True, hide_index=True)

# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
st.divider()
if st.button("🚀 Run Matching", type="primary", use_container_width=True):
    progress = st.progress(0, text="Starting...")

    def on_progress(p):
        progress.progress(p.processed / p.total, text=f"{p.processed:,}/{p.total:,} · {p.matched:,} matched · {p.digest}")

    partial = False
    try:
        results = run_in_batches(
            df_rows.to_dict('records'), catalog, match_columns,
            mode=mode, threshold=threshold, progress_callback=on_progress,
        )
    except MatchConfigError as e:
        st.error(str(e))
        st.stop()
    except MemoryLimitExceeded as e:
        st.warning(f"Stopped early: {e}. Results below cover the rows processed so far.")
        results = e.results
        partial = True
    progress.progress(1.0, text="✅ Matching complete!")

    df_result = results_to_frame(df_rows.iloc[:len(results)], results)
    summary = compute_match_summary(results)

    ca, cb, cc = st.columns(3)
    ca.metric("🟢 Matched", summary['matched_count'], f"{summary['matched_rate']:.1f}%")
    cb.metric("🔴 Unmatched", summary['unmatched_count'])
    cc.metric("Average Similarity", f"{summary['avg_similarity']:.3f}")

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------
    st.subheader("📋 Preview Results")

    def color_status(val):
        if val == MATCH_STATUS_MATCHED:
            return 'background-color: #d4edda; color: #155724'
        elif val == MATCH_STATUS_UNMATCHED:
            return 'background-color: #f8d7da; color: #721c24'
        return ''

    st.dataframe(
        df_result.head(100).style.map(color_status, subset=['match_status']),
        use_container_width=True, hide_index=True,
    )
    n_unmatched = (df_result['match_status'] == MATCH_STATUS_UNMATCHED).sum()
    if n_unmatched > 0:
        with st.expander(f"View {n_unmatched} Unmatched Rows"):
            st.dataframe(
                df_result[df_result['match_status'] == MATCH_STATUS_UNMATCHED],
                use_container_width=True, hide_index=True,
            )

    # ------------------------------------------------------------------
    # Output Excel
    # ------------------------------------------------------------------
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df_result[df_result['match_status'] == MATCH_STATUS_MATCHED].to_excel(writer, sheet_name='Matched', index=False)
        df_result[df_result['match_status'] == MATCH_STATUS_UNMATCHED].to_excel(writer, sheet_name='Unmatched', index=False)
        pd.DataFrame([summary]).to_excel(writer, sheet_name='Summary', index=False)
    output.seek(0)

    st.download_button(
        label="📥 Download Matched Excel File",
        data=output,
        file_name="sku_match_results.xlsx" if not partial else "sku_match_results_partial.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        type="primary",
        use_container_width=True,
    )
