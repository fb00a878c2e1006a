import html

import streamlit as st

PALETTES = {
    "dark": {
        "bg": "rgba(15, 15, 26, 0.6)", "border": "rgba(167, 139, 250, 0.12)",
        "text": "#e2e8f0", "muted": "#94a3b8", "accent": "#818cf8", "template": "plotly_dark",
    },
    "light": {
        "bg": "#ffffff", "border": "#e5e7eb",
        "text": "#111827", "muted": "#6b7280", "accent": "#2563eb", "template": "plotly_white",
    },
}

CHART_COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884D8"]

BADGE_COLORS = {
    "active": ("#dcfce7", "#166534"),
    "approved": ("#dcfce7", "#166534"),
    "completed": ("#dbeafe", "#1e40af"),
    "pending": ("#fef3c7", "#92400e"),
    "on-hold": ("#fef3c7", "#92400e"),
    "rejected": ("#fee2e2", "#991b1b"),
    "cancelled": ("#fee2e2", "#991b1b"),
}
_BADGE_DEFAULT = ("#f3f4f6", "#1f2937")


def palette(theme: str | None) -> dict:
    return PALETTES.get(theme or "light", PALETTES["light"])


def inject_css(theme: str | None = "light"):
    p = palette(theme)
    st.markdown(f"""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap');

    /* ── Global ── */
    html, body, [class*="css"] {{ font-family: 'Inter', sans-serif !important; }}
    .block-container {{ padding: 1rem 1.5rem 3rem; max-width: 100%; }}
    h1 {{ color: {p['text']} !important; font-weight: 800 !important; font-size: 1.7rem !important; letter-spacing: -0.02em; }}
    h2, h3, h4 {{ color: {p['text']} !important; letter-spacing: -0.01em; }}

    /* ── Cards ── */
    .glass {{
        background: {p['bg']};
        border: 1px solid {p['border']};
        border-radius: 16px; padding: 1rem 1.2rem;
        margin-bottom: 0.5rem;
    }}
    .card-title {{ color: {p['text']}; font-weight: 600; font-size: 1rem; }}
    .card-sub {{ color: {p['muted']}; font-size: 0.78rem; }}
    .card-line {{ color: {p['text']}; font-size: 0.85rem; margin-top: 2px; }}

    /* ── KPI Grid ── */
    .kpi-grid {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 0.75rem; margin-bottom: 1rem; }}
    .kpi {{
        background: {p['bg']}; border: 1px solid {p['border']};
        border-radius: 16px; padding: 1rem; text-align: center;
    }}
    .kpi-label {{ color: {p['muted']}; font-size: 0.72rem; text-transform: uppercase; letter-spacing: 0.05em; margin-bottom: 4px; }}
    .kpi-val {{ font-size: 1.35rem; font-weight: 700; }}
    .green {{ color: #16a34a; }} .red {{ color: #dc2626; }} .blue {{ color: {p['accent']}; }}

    /* ── Badges ── */
    .badge {{ display: inline-block; padding: 0.1rem 0.55rem; border-radius: 10px; font-size: 0.72rem; font-weight: 600; }}

    /* ── Progress ── */
    .track {{ background: {p['border']}; border-radius: 6px; height: 6px; overflow: hidden; margin-top: 6px; }}
    .fill {{ height: 100%; border-radius: 6px; }}

    .filter-banner {{
        background: #eff6ff; color: #1d4ed8; border-radius: 8px;
        padding: 0.5rem 0.8rem; font-size: 0.85rem; margin-bottom: 0.6rem;
    }}

    @media (max-width: 768px) {{
        .block-container {{ padding: 0.5rem 0.6rem 2rem; }}
        .kpi-grid {{ grid-template-columns: 1fr; gap: 0.5rem; }}
        [data-testid="column"] {{ min-width: 100% !important; }}
    }}
</style>
""", unsafe_allow_html=True)


def format_currency(value) -> str:
    v = round(float(value or 0), 2)
    sign = "-" if v < 0 else ""
    return f"{sign}${abs(v):,.2f}"


def safe_text(value) -> str:
    """Escape user text for the HTML cards; newlines become <br> so the block stays whole."""
    return html.escape(str(value or "")).replace("\r\n", "\n").replace("\n", "<br>")


def status_badge(status: str | None) -> str:
    status = status or "pending"
    bg, fg = BADGE_COLORS.get(status.lower(), _BADGE_DEFAULT)
    label = status[:1].upper() + status[1:]
    return f'<span class="badge" style="background:{bg};color:{fg}">{label}</span>'


def sign_class(value: float) -> str:
    return "green" if value >= 0 else "red"


def plotly_layout(theme: str | None, height: int = 320) -> dict:
    p = palette(theme)
    return dict(
        template=p["template"],
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        font=dict(family="Inter", color=p["text"]),
        legend=dict(orientation="h", y=1.1),
        margin=dict(l=0, r=0, t=20, b=0), height=height,
    )


def flash(message: str, icon: str = "✅"):
    """Queue a toast for the next run; ``st.rerun()`` drops anything shown before it."""
    st.session_state["flash"] = (message, icon)


def show_flash():
    queued = st.session_state.pop("flash", None)
    if queued:
        st.toast(queued[0], icon=queued[1])


def toast_error(action: str, exc: Exception, logger=None):
    if logger is not None:
        logger.warning("%s: %s", action, exc)
    st.toast(f"{action}: {exc}", icon="❌")
