# app.py
"""
Monthly Follow Dashboard - Main Entry Point

Version: 1.0.0
"""

import streamlit as st
import logging
from datetime import date

from follow_dashboard.config import config
from follow_dashboard.session import SessionManager
from follow_dashboard.action_tracker.fragments import render_action_summary
from follow_dashboard.action_tracker.notifications import unread_count

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Monthly Follow"
APP_ICON = "📅"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} Dashboard",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1f77b4;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

session = SessionManager()
session.ensure_initialized()

# ==================== HELPER FUNCTIONS ====================

def render_sidebar():
    """Viewer selector and demo controls"""
    directory = session.dataset.directory

    with st.sidebar:
        users = directory.users()
        ids = [u.id for u in users]
        selected = st.selectbox(
            "👤 Viewing as",
            ids,
            index=ids.index(session.current_user) if session.current_user in ids else 0,
            format_func=lambda uid: f"{directory.name_of(uid)} ({directory.get(uid).department})",
            key="viewer_select"
        )
        if selected != session.current_user:
            session.switch_user(selected)
            st.rerun()

        if config.is_feature_enabled("NOTIFICATIONS"):
            unread = unread_count(st.session_state.notifications, session.current_user)
            st.caption(f"🔔 {unread} unread notification(s)")

        st.markdown("---")
        if st.button("🔄 Reset demo data", use_container_width=True):
            session.reset()
            st.rerun()


def show_main_app():
    """Home page: what the dashboards are for, plus the action summary"""
    render_sidebar()

    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Decide before the numbers are final</p>',
        unsafe_allow_html=True
    )

    st.markdown("### 📊 Available Dashboards")

    st.markdown("""
    <div class="info-card">
        <strong>📅 Monthly Follow</strong><br>
        <span style="color: #666;">Month, YTD and landing estimate per KPI, pipeline rollup, target gap and insights.</span>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("""
    <div class="info-card">
        <strong>✅ Action Tracker</strong><br>
        <span style="color: #666;">Turn off-plan KPIs into actions and discuss them in threads with mentions and reactions.</span>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### 📌 My Actions")
    render_action_summary(
        st.session_state.actions,
        today=date.today(),
        current_user=session.current_user,
        directory=session.dataset.directory
    )

    if config.get_app_setting("ENABLE_DEBUG_MODE", False):
        with st.expander("🔧 Configuration (debug)"):
            st.json({
                "follow": config.follow.to_dict(),
                "notifications": config.notifications.to_dict(),
                "app": config.app_config,
                "cloud": config.is_cloud,
            })

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    show_main_app()


if __name__ == "__main__":
    main()
