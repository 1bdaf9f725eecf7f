# follow_dashboard/__init__.py
"""
Monthly Follow Dashboard Package

Subpackages:
- kpi_follow: YTD / forecast / status derivation and pipeline rollup
- action_tracker: actions, comment threads, mentions, reactions, notifications

Shared modules:
- config: Configuration management (local .env + Streamlit Cloud)
- formatters: Display unit conversion and number / date formatting
- export: Excel report
- demo_data: Seeded demo provider

Usage:
    from follow_dashboard.config import config
    from follow_dashboard.kpi_follow import TimeSeriesStore, compute_ytd
    from follow_dashboard.action_tracker import build_tree, extract_mentions

    # Or import commonly used items directly
    from follow_dashboard import config, format_amount
"""

# Configuration
from .config import (
    config,
    Config,
    FollowSettings,
    NotificationSettings,
    IS_RUNNING_ON_CLOUD,
)

# Formatting
from .formatters import (
    to_display_unit,
    format_amount,
    format_number,
    format_rate,
    format_date,
    format_relative_time,
)

__all__ = [
    'config',
    'Config',
    'FollowSettings',
    'NotificationSettings',
    'IS_RUNNING_ON_CLOUD',
    'to_display_unit',
    'format_amount',
    'format_number',
    'format_rate',
    'format_date',
    'format_relative_time',
]

__version__ = '1.0.0'
