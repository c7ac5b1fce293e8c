"""
================================================================================
BROKEN DATABASE REPAIR - STREAMLIT DASHBOARD
================================================================================
Interactive dashboard for the product database repair pipeline: run the
repair, inspect the repaired records and explore both validation reports.

Run with: streamlit run app.py
================================================================================
"""

import os

import pandas as pd
import plotly.express as px
import streamlit as st

from etl.database_repair_pipeline import DatabaseRepairPipeline, load_config
from etl.inventory_reports import list_products

CONFIG_PATH = "config/repair_config.yml"

# =============================================================================
# PAGE CONFIGURATION
# =============================================================================

st.set_page_config(
    page_title="Broken Database Repair",
    page_icon="🛠️",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(135deg, #1E3A5F 0%, #3D5A80 50%, #00D4FF 100%);
        padding: 2rem;
        border-radius: 15px;
        margin-bottom: 2rem;
        text-align: center;
    }

    .main-header h1 {
        color: white;
        font-size: 2.5rem;
        font-weight: 700;
        margin: 0;
    }

    .main-header p {
        color: #E0E0E0;
        font-size: 1.1rem;
        margin-top: 0.5rem;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_config():
    """Load pipeline configuration, falling back to defaults."""
    return load_config(CONFIG_PATH if os.path.exists(CONFIG_PATH) else None)


def run_pipeline(input_path: str, output_path: str):
    config = get_config()
    config['reporting']['highlight_headers'] = False
    pipeline = DatabaseRepairPipeline(config=config, input_path=input_path, output_path=output_path)
    return pipeline.run(print_reports=False), pipeline

# =============================================================================
# MAIN APP
# =============================================================================

def main():
    st.markdown("""
    <div class="main-header">
        <h1>🛠️ Broken Database Repair</h1>
        <p>Names, prices and quantities recovered - validated by category</p>
    </div>
    """, unsafe_allow_html=True)

    config = get_config()

    with st.sidebar:
        st.title("Pipeline")
        st.info(f"**Name:** {config['pipeline']['name']}")
        st.info(f"**Version:** {config['pipeline']['version']}")
        st.markdown("---")
        input_path = st.text_input(
            "Broken database",
            config['data_sources']['broken_database']['file_path']
        )
        output_path = st.text_input(
            "Repaired database",
            config['output']['repaired_database']['file_path']
        )

    if not st.button("🚀 Run Repair", use_container_width=True):
        st.warning("⚠️ Choose the database paths and run the repair.")
        return

    with st.spinner("Repairing database..."):
        result, pipeline = run_pipeline(input_path, output_path)

    if result['status'] != 'SUCCESS':
        st.error(f"❌ {result['error_name']}: {result['error']}")
        return

    st.success(f"✅ Repaired database saved to {result['output_path']}")
    show_stats(result['stats'])
    st.markdown("---")

    tab1, tab2, tab3 = st.tabs(["📦 Repaired Data", "📋 Product Listing", "💰 Stock Value"])
    with tab1:
        st.dataframe(pd.DataFrame(pipeline.database), use_container_width=True, height=400)
    with tab2:
        show_product_listing(pipeline)
    with tab3:
        show_stock_value(result['stock_value'], config['reporting'].get('currency', 'R$'))


def show_stats(stats: dict):
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Records", stats['total_records'])
    with col2:
        st.metric("Names Repaired", stats['names_repaired'])
    with col3:
        st.metric("Prices Converted", stats['prices_coerced'])
    with col4:
        st.metric("Quantities Defaulted", stats['quantities_defaulted'])


def show_product_listing(pipeline: DatabaseRepairPipeline):
    """Products grouped by category, ids ascending within each group."""
    for category in pipeline.categories:
        names = list_products(pipeline.database, [category])
        st.markdown(f"### {category}")
        st.dataframe(pd.DataFrame({'Product': names}), use_container_width=True, hide_index=True)


def show_stock_value(totals: dict, currency: str):
    df = pd.DataFrame({'Category': list(totals.keys()), 'Stock Value': list(totals.values())})
    fig = px.bar(
        df,
        x='Category',
        y='Stock Value',
        color='Stock Value',
        color_continuous_scale='Blues',
        title=f'Total Inventory Value by Category ({currency})'
    )
    st.plotly_chart(fig, use_container_width=True)
    st.dataframe(df.style.format({'Stock Value': '{:.2f}'}), use_container_width=True, hide_index=True)


if __name__ == "__main__":
    main()
