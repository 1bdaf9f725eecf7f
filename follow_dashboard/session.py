# follow_dashboard/session.py
"""
Session state management shared by all pages.

The KPI dataset, pipeline and user directory are read-only and cached per
seed. Actions, comments and notifications are mutable per session and live
in st.session_state; pages replace them whole after each change.
"""

import logging
import streamlit as st

from .config import config
from .demo_data import DemoDataset, load_demo_dataset

logger = logging.getLogger(__name__)

SESSION_KEYS = ['actions', 'comments', 'notifications', 'current_user', 'selected_action']


@st.cache_resource(show_spinner=False, ttl=config.get_app_setting("CACHE_TTL_SECONDS", 300))
def get_demo_dataset(seed: int) -> DemoDataset:
    """Cached per seed for CACHE_TTL_SECONDS; callers must treat the result as read-only."""
    return load_demo_dataset(seed)


class SessionManager:
    """
    Usage:
        session = SessionManager()
        session.ensure_initialized()
        dataset = session.dataset
        user_id = session.current_user
    """

    def __init__(self, seed: int = None):
        self.seed = seed if seed is not None else config.get_app_setting("DEMO_SEED", 42)

    @property
    def dataset(self) -> DemoDataset:
        return get_demo_dataset(self.seed)

    def ensure_initialized(self):
        """Seed the mutable tracker state once per browser session."""
        if st.session_state.get('initialized'):
            return
        dataset = self.dataset
        st.session_state.actions = list(dataset.actions)
        st.session_state.comments = list(dataset.comments)
        st.session_state.notifications = list(dataset.notifications)
        st.session_state.current_user = dataset.current_user
        st.session_state.selected_action = dataset.actions[0].id if dataset.actions else None
        st.session_state.initialized = True
        logger.info(f"Session initialized with demo seed {self.seed}")

    @property
    def current_user(self) -> str:
        return st.session_state.get('current_user')

    def switch_user(self, user_id: str):
        self.dataset.directory.require(user_id)
        st.session_state.current_user = user_id
        logger.info(f"Viewing as {user_id}")

    def reset(self):
        """Drop tracker changes and reload the demo state."""
        for key in SESSION_KEYS + ['initialized']:
            if key in st.session_state:
                del st.session_state[key]
        self.ensure_initialized()
