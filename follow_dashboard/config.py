# follow_dashboard/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Typed settings sections for KPI follow and action tracking
- Type-safe getters with defaults
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Mapping, Tuple
from dataclasses import dataclass, asdict

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_stage_list(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    stages = tuple(s.strip() for s in str(value).split(',') if s.strip())
    return stages or default


@dataclass(frozen=True)
class FollowSettings:
    """KPI follow configuration container"""
    warning_threshold: float = -5.0
    high_confidence_stages: Tuple[str, ...] = ("A", "B")
    continuing_stage: str = "A"
    continuing_ratio: float = 0.8
    display_unit: float = 100_000_000
    display_unit_label: str = "億円"
    revenue_kpi_id: str = "revenue"
    gap_critical_threshold: float = 20.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NotificationSettings:
    """Action tracker / notification configuration container"""
    due_reminder_days: int = 2
    default_due_days: int = 14
    max_reply_depth: int = 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_follow_settings(source: Mapping[str, Any]) -> FollowSettings:
    """Build FollowSettings from a flat mapping (env vars or secrets section)."""
    defaults = FollowSettings()
    return FollowSettings(
        warning_threshold=float(source.get("KPI_WARNING_THRESHOLD", defaults.warning_threshold)),
        high_confidence_stages=_parse_stage_list(
            source.get("PIPELINE_HIGH_CONFIDENCE_STAGES"), defaults.high_confidence_stages
        ),
        continuing_stage=str(source.get("PIPELINE_CONTINUING_STAGE", defaults.continuing_stage)),
        continuing_ratio=float(source.get("PIPELINE_CONTINUING_RATIO", defaults.continuing_ratio)),
        display_unit=float(source.get("DISPLAY_UNIT", defaults.display_unit)),
        display_unit_label=str(source.get("DISPLAY_UNIT_LABEL", defaults.display_unit_label)),
        revenue_kpi_id=str(source.get("REVENUE_KPI_ID", defaults.revenue_kpi_id)),
        gap_critical_threshold=float(
            source.get("GAP_CRITICAL_THRESHOLD", defaults.gap_critical_threshold)
        ),
    )


def build_notification_settings(source: Mapping[str, Any]) -> NotificationSettings:
    """Build NotificationSettings from a flat mapping."""
    defaults = NotificationSettings()
    return NotificationSettings(
        due_reminder_days=int(source.get("DUE_REMINDER_DAYS", defaults.due_reminder_days)),
        default_due_days=int(source.get("DEFAULT_DUE_DAYS", defaults.default_due_days)),
        max_reply_depth=int(source.get("MAX_REPLY_DEPTH", defaults.max_reply_depth)),
    )


class Config:
    """
    Centralized configuration management

    Usage:
        from follow_dashboard.config import config

        # KPI follow settings
        settings = config.follow
        status = classify(rate, True, settings.warning_threshold)

        # App settings
        ttl = config.get_app_setting("CACHE_TTL_SECONDS", 300)

        # Feature flags
        if config.is_feature_enabled("EXPORT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        follow_secrets = dict(st.secrets.get("FOLLOW", {}))
        self._follow_settings = build_follow_settings(follow_secrets)

        notification_secrets = dict(st.secrets.get("NOTIFICATIONS", {}))
        self._notification_settings = build_notification_settings(notification_secrets)

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        # Find and load .env file
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._follow_settings = build_follow_settings(os.environ)
        self._notification_settings = build_notification_settings(os.environ)

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Cache
            "CACHE_TTL_SECONDS": int(os.getenv("CACHE_TTL_SECONDS", "300")),

            # Demo data
            "DEMO_SEED": int(os.getenv("DEMO_SEED", "42")),

            # Feature flags
            "ENABLE_NOTIFICATIONS": _parse_bool(os.getenv("ENABLE_NOTIFICATIONS"), True),
            "ENABLE_EXPORT": _parse_bool(os.getenv("ENABLE_EXPORT"), True),
            "ENABLE_DEBUG_MODE": _parse_bool(os.getenv("ENABLE_DEBUG_MODE"), False),
        }

    def _log_config_status(self):
        """Log configuration status"""
        settings = self._follow_settings
        logger.info(
            f"✅ KPI follow: warning threshold {settings.warning_threshold}, "
            f"high-confidence stages {','.join(settings.high_confidence_stages)}"
        )
        logger.info(f"✅ Display unit: {settings.display_unit:,.0f} ({settings.display_unit_label})")

    # ==================== PUBLIC GETTERS ====================

    @property
    def follow(self) -> FollowSettings:
        """KPI follow settings"""
        return self._follow_settings

    @property
    def notifications(self) -> NotificationSettings:
        """Action tracker / notification settings"""
        return self._notification_settings

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    @property
    def app_config(self) -> Dict[str, Any]:
        """Copy of the application settings"""
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

# ==================== CONVENIENCE EXPORTS ====================

IS_RUNNING_ON_CLOUD = config.is_cloud
FOLLOW_SETTINGS = config.follow
NOTIFICATION_SETTINGS = config.notifications
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'FollowSettings',
    'NotificationSettings',
    'build_follow_settings',
    'build_notification_settings',
    'IS_RUNNING_ON_CLOUD',
    'FOLLOW_SETTINGS',
    'NOTIFICATION_SETTINGS',
    'APP_CONFIG',
]
