import html

import pandas as pd
import streamlit as st
from st_aggrid import AgGrid, GridOptionsBuilder, GridUpdateMode, JsCode

def setup_style():
    st.markdown("""
    <style>
        @import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;600;700&display=swap');

        :root {
            --apt-primary: #6c5ce7;
            --apt-secondary: #00b4d8;
            --apt-success: #2ecc71;
            --apt-danger: #e74c3c;
            --apt-muted: rgba(230, 236, 255, 0.65);
            --apt-card: rgba(255, 255, 255, 0.06);
            --apt-border: rgba(255, 255, 255, 0.12);
        }

        html, body, .stApp {
            font-family: 'Inter', sans-serif;
            background: linear-gradient(180deg, #0f1020 0%, #151833 100%);
        }

        .apt-title {
            text-align: center;
            font-size: 2.4rem;
            font-weight: 700;
            background: linear-gradient(90deg, var(--apt-primary), var(--apt-secondary));
            -webkit-background-clip: text;
            -webkit-text-fill-color: transparent;
            margin-bottom: 0.2rem;
        }
        .apt-subtitle { text-align: center; color: var(--apt-muted); margin-bottom: 1.5rem; }

        .apt-card {
            background: var(--apt-card);
            border: 1px solid var(--apt-border);
            border-radius: 16px;
            padding: 1rem 1.2rem;
        }
        .apt-card-label { color: var(--apt-muted); font-size: 0.85rem; }
        .apt-card-value { font-size: 1.9rem; font-weight: 700; }
        .apt-card-note { color: var(--apt-success); font-size: 0.75rem; font-weight: 600; }

        .apt-loading {
            min-height: 60vh;
            display: flex;
            flex-direction: column;
            align-items: center;
            justify-content: center;
            color: var(--apt-muted);
        }
        .apt-spinner {
            width: 48px;
            height: 48px;
            border: 4px solid var(--apt-primary);
            border-top-color: transparent;
            border-radius: 50%;
            animation: aptSpin 0.9s linear infinite;
            margin-bottom: 1rem;
        }
        @keyframes aptSpin { to { transform: rotate(360deg); } }

        .apt-badge { padding: 2px 10px; border-radius: 999px; font-size: 0.75rem; font-weight: 600; }
        .apt-badge-active { background: rgba(46, 204, 113, 0.2); color: var(--apt-success); }
        .apt-badge-inactive { background: rgba(255, 255, 255, 0.1); color: var(--apt-muted); }
        .apt-badge-suspended { background: rgba(231, 76, 60, 0.2); color: var(--apt-danger); }
    </style>
    """, unsafe_allow_html=True)

def render_header(title, subtitle=""):
    st.markdown(f"<div class='apt-title'>{html.escape(title)}</div>", unsafe_allow_html=True)
    if subtitle:
        st.markdown(f"<div class='apt-subtitle'>{html.escape(subtitle)}</div>", unsafe_allow_html=True)

def render_loading(message="Loading..."):
    """Full-page neutral loading indicator. Nothing else is rendered with it."""
    st.markdown(
        f"""
        <div class="apt-loading">
          <div class="apt-spinner"></div>
          <p>{html.escape(message)}</p>
        </div>
        """,
        unsafe_allow_html=True
    )

def render_stat_cards(cards):
    """cards: list of (label, value, note) tuples."""
    cols = st.columns(len(cards))
    for col, (label, value, note) in zip(cols, cards):
        with col:
            st.markdown(f'''
            <div class="apt-card">
                <div class="apt-card-label">{html.escape(str(label))}</div>
                <div class="apt-card-value">{html.escape(str(value))}</div>
                <div class="apt-card-note">{html.escape(str(note))}</div>
            </div>
            ''', unsafe_allow_html=True)

def status_badge(status):
    return f"<span class='apt-badge apt-badge-{html.escape(status)}'>{html.escape(status)}</span>"

def update_chart_layout(fig):
    fig.update_layout(
        template="plotly_dark",
        font=dict(family="Inter, sans-serif", size=13),
        margin=dict(l=20, r=20, t=50, b=20),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(255,255,255,0.04)",
        xaxis=dict(showgrid=False, zeroline=False),
        yaxis=dict(showgrid=True, gridcolor="rgba(255,255,255,0.08)", zeroline=False),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
    )
    return fig

def render_aggrid(df, height=400, pagination=False, percent_columns=(), theme="balham"):
    if df.empty:
        st.info("Nothing to show yet")
        return

    gb = GridOptionsBuilder.from_dataframe(df)
    gb.configure_default_column(filterable=True, sortable=True, resizable=True, wrapText=True, autoHeight=True)

    for col in df.columns:
        is_num = pd.api.types.is_numeric_dtype(df[col])
        col_kwargs = {"minWidth": 80 if is_num else 140, "flex": 1 if is_num else 2}
        if col in percent_columns:
            percent_fmt = """function(params) {
                if (params.value == null) return '';
                const val = Number(params.value);
                if (isNaN(val)) return params.value;
                return val.toFixed(1) + ' %';
            }"""
            gb.configure_column(col, valueFormatter=JsCode(percent_fmt), **col_kwargs)
        else:
            gb.configure_column(col, **col_kwargs)

    if pagination:
        gb.configure_pagination(paginationAutoPageSize=False, paginationPageSize=25)

    gb.configure_grid_options(wrapHeaderText=True, autoHeaderHeight=True)

    valid_themes = ["streamlit", "alpine", "balham", "material"]
    AgGrid(
        df,
        gridOptions=gb.build(),
        height=height,
        theme=theme if theme in valid_themes else "balham",
        custom_css={
            ".ag-root-wrapper": {"border-radius": "14px", "overflow": "hidden"},
            ".ag-header-cell-label": {"font-weight": "600"},
        },
        update_mode=GridUpdateMode.NO_UPDATE,
        allow_unsafe_jscode=True
    )
