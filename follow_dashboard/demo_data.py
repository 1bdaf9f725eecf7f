# follow_dashboard/demo_data.py
"""
Seeded demo provider for the follow dashboard.

Builds one fiscal year (April-March) closed through September, a pipeline,
users, actions, a comment thread and a few notifications. The same seed
always produces the same data.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List
import numpy as np

from .kpi_follow.constants import DEFAULT_PIPELINE_STAGES
from .kpi_follow.pipeline import PipelineItem, StageConfig, stages_from_records
from .kpi_follow.time_series import (
    KpiDefinition, TimeSeriesStore, build_month_record, fiscal_month_keys,
)
from .action_tracker.actions import create_action
from .action_tracker.models import (
    ActionItem, ActionMetrics, CommentReaction, Notification, ThreadComment, User,
)
from .action_tracker.users import UserDirectory

logger = logging.getLogger(__name__)

OKU = 100_000_000

FISCAL_YEAR = 2025
CLOSED_THROUGH = 6  # April..September

SEASONALITY = {
    '04': 0.85, '05': 0.90, '06': 0.95, '07': 0.92, '08': 0.88, '09': 1.00,
    '10': 1.05, '11': 1.10, '12': 1.15, '01': 1.08, '02': 1.05, '03': 1.20,
}

KPI_DEFINITIONS = [
    KpiDefinition('revenue', 'Revenue', 'yen', 'financial', True),
    KpiDefinition('gross_profit', 'Gross profit', 'yen', 'financial', True),
    KpiDefinition('sga_cost', 'SG&A cost', 'yen', 'financial', False),
    KpiDefinition('orders', 'Orders received', 'yen', 'sales', True),
    KpiDefinition('project_margin', 'Average project margin', '%', 'project', True),
    KpiDefinition('red_projects', 'Loss-making projects', 'count', 'project', False),
    KpiDefinition('utilization', 'Staff utilization', '%', 'operations', True),
]

# Annual plan per KPI; rates and counts are monthly targets
ANNUAL_PLAN = {
    'revenue': 200 * OKU,
    'gross_profit': 30 * OKU,
    'sga_cost': 18 * OKU,
    'orders': 220 * OKU,
}
MONTHLY_TARGET = {
    'project_margin': 15.0,
    'red_projects': 2.0,
    'utilization': 85.0,
}

# Relative noise of actual vs budget (std dev)
NOISE = {
    'revenue': 0.06, 'gross_profit': 0.09, 'sga_cost': 0.04, 'orders': 0.12,
    'project_margin': 0.10, 'red_projects': 0.6, 'utilization': 0.05,
}

USERS = [
    User('u1', 'Tanaka', 'executive', 'Management', 'tanaka@example.com'),
    User('u2', 'Sato', 'project_manager', 'Tokyo HQ', 'sato@example.com'),
    User('u3', 'Suzuki', 'field', 'Osaka Branch', 'suzuki@example.com'),
    User('u4', 'Takahashi', 'back_office', 'Accounting', 'takahashi@example.com'),
    User('u5', 'Ito', 'field', 'Sapporo Branch', 'ito@example.com'),
]

PIPELINE_SEED = [
    ('A001', 'Office tower new build', 8.5, 'A', 10, 'Marunouchi Realty', 'Tanaka'),
    ('A002', 'Condominium renovation', 4.2, 'A', 11, 'Harbor Owners Assoc.', 'Sato'),
    ('A003', 'Factory extension', 6.8, 'A', 12, 'Kanto Works', 'Suzuki'),
    ('A004', 'Hospital refurbishment', 3.5, 'A', 1, 'Seiwa Medical', 'Takahashi'),
    ('B001', 'Shopping complex', 12.0, 'B', 11, 'Retail One', 'Ito'),
    ('B002', 'Office building', 7.5, 'B', 12, 'Minato Trading', 'Sato'),
    ('B003', 'Logistics center', 9.0, 'B', 1, 'Nippon Logistics', 'Suzuki'),
    ('B004', 'School gymnasium', 4.5, 'B', 2, 'City Board of Education', 'Ito'),
    ('B005', 'Hotel remodel', 5.8, 'B', 3, 'Resort Hotels', 'Tanaka'),
    ('C001', 'Data center', 15.0, 'C', 2, 'Cloud Facilities', 'Sato'),
    ('C002', 'Station redevelopment', 20.0, 'C', 3, 'Metro Rail', 'Tanaka'),
    ('C003', 'Research lab', 6.0, 'C', 3, 'BioTech Labs', 'Suzuki'),
    ('D001', 'Stadium', 30.0, 'D', None, 'Sports Arena Co.', 'Ito'),
    ('D002', 'Airport terminal wing', 25.0, 'D', None, 'Air Terminal Corp.', 'Takahashi'),
]


@dataclass
class DemoDataset:
    store: TimeSeriesStore
    stages: List[StageConfig]
    pipeline: List[PipelineItem]
    directory: UserDirectory
    actions: List[ActionItem]
    comments: List[ThreadComment]
    notifications: List[Notification]
    current_user: str


def _monthly_budget(kpi_id: str, mm: str) -> float:
    if kpi_id in ANNUAL_PLAN:
        weight = SEASONALITY[mm] / sum(SEASONALITY.values())
        return ANNUAL_PLAN[kpi_id] * weight
    return MONTHLY_TARGET[kpi_id]


def build_store(seed: int = 42, closed_through: int = CLOSED_THROUGH) -> TimeSeriesStore:
    """KPI dataset with the first closed_through fiscal months closed."""
    rng = np.random.default_rng(seed)
    months = fiscal_month_keys(FISCAL_YEAR)

    records = []
    for idx, month in enumerate(months):
        mm = month[-2:]
        is_closed = idx < closed_through
        values = {}
        for definition in KPI_DEFINITIONS:
            budget = _monthly_budget(definition.id, mm)
            actual = None
            if is_closed:
                actual = budget * (1 + rng.normal(0, NOISE[definition.id]))
                if definition.id == 'red_projects':
                    actual = float(max(0, round(actual)))
            values[definition.id] = {'actual': actual, 'budget': budget}
        records.append(build_month_record(month, is_closed, values))

    fy_budget = dict(ANNUAL_PLAN)
    # Rate and count KPIs roll up as the sum of their monthly targets
    fy_budget.update({k: v * len(months) for k, v in MONTHLY_TARGET.items()})

    return TimeSeriesStore(
        records=records,
        month_order=months,
        fy_budget=fy_budget,
        definitions=KPI_DEFINITIONS,
    )


def build_pipeline() -> List[PipelineItem]:
    items = []
    for item_id, name, amount, stage, close_mm, customer, owner in PIPELINE_SEED:
        close_month = None
        if close_mm is not None:
            year = FISCAL_YEAR + 1 if close_mm <= 3 else FISCAL_YEAR
            close_month = f"{year:04d}-{close_mm:02d}"
        items.append(PipelineItem(
            id=item_id,
            name=name,
            amount=amount * OKU,
            stage=stage,
            expected_close_month=close_month,
            customer=customer,
            owner=owner,
        ))
    return items


def build_actions(now: datetime) -> List[ActionItem]:
    today = now.date()
    return [
        create_action(
            'branch', 'Sapporo Branch', 'Gross margin well below target',
            'Review estimating process and renegotiate subcontractor rates',
            'u5', today + timedelta(days=7), priority='high', status='in_progress',
            metrics=ActionMetrics(before=8.5, current=9.2, target=14.0),
            action_id='a-001', now=now - timedelta(days=10),
        ),
        create_action(
            'segment', 'Security', 'Segment margin low company-wide',
            'Standardize service packages', 'u3', today + timedelta(days=14),
            priority='medium', metrics=ActionMetrics(before=11.2, current=11.2, target=15.0),
            action_id='a-002', now=now - timedelta(days=5),
        ),
        create_action(
            'project', 'Chatbot rollout support', 'Budget overrun turned margin negative',
            'Agree change order with the customer', 'u2', today - timedelta(days=2),
            priority='high', status='in_progress',
            metrics=ActionMetrics(before=-5.2, current=-3.1, target=10.0),
            action_id='a-003', now=now - timedelta(days=20),
        ),
        create_action(
            'branch', 'Osaka Branch', 'Revenue strong but margin stagnant',
            'Shift mix toward maintenance contracts', 'u3', today + timedelta(days=21),
            priority='medium', status='completed',
            metrics=ActionMetrics(before=10.8, current=11.5, target=14.0),
            action_id='a-004', now=now - timedelta(days=30),
        ),
    ]


def build_comments(now: datetime) -> List[ThreadComment]:
    def comment(cid, parent, author, content, minutes_ago, mentions=(), reactions=()):
        created = now - timedelta(minutes=minutes_ago)
        return ThreadComment(
            id=cid, action_id='a-001', parent_id=parent, author_id=author,
            content=content, mentions=tuple(mentions), reactions=tuple(reactions),
            created_at=created, updated_at=created,
        )

    return [
        comment('c-1', None, 'u1', '@Ito what is blocking the margin recovery?', 60 * 26,
                mentions=['u5'], reactions=[CommentReaction('👀', ('u2',))]),
        comment('c-2', 'c-1', 'u5', 'Two subcontract renewals are still open. Closing them this week.',
                60 * 20, reactions=[CommentReaction('👍', ('u1', 'u4'))]),
        comment('c-3', 'c-2', 'u4', '@Tanaka accounting can book the revised cost once signed.', 60 * 3,
                mentions=['u1']),
        comment('c-4', None, 'u2', 'Sharing the Tokyo template for estimating reviews.', 45),
    ]


def build_notifications(now: datetime) -> List[Notification]:
    return [
        Notification(
            id='n-1', user_id='u1', type='mention', title='You were mentioned',
            message='Takahashi mentioned you in "Sapporo Branch: Gross margin well below target"',
            created_at=now - timedelta(hours=3), action_id='a-001',
            action_title='Sapporo Branch: Gross margin well below target',
            comment_id='c-3', from_user_id='u4', from_user_name='Takahashi',
        ),
        Notification(
            id='n-2', user_id='u1', type='reply', title='New reply to your comment',
            message='Ito replied to your comment',
            created_at=now - timedelta(hours=20), action_id='a-001',
            action_title='Sapporo Branch: Gross margin well below target',
            comment_id='c-2', from_user_id='u5', from_user_name='Ito',
        ),
        Notification(
            id='n-3', user_id='u1', type='due_reminder', title='Past due date',
            message='"Chatbot rollout support: Budget overrun turned margin negative" is 2 day(s) overdue',
            created_at=now - timedelta(days=1), is_read=True, action_id='a-003',
            action_title='Chatbot rollout support: Budget overrun turned margin negative',
        ),
    ]


def load_demo_dataset(seed: int = 42, now: datetime = None) -> DemoDataset:
    """Everything the pages need, generated from one seed."""
    now = now or datetime.now()
    dataset = DemoDataset(
        store=build_store(seed),
        stages=stages_from_records(DEFAULT_PIPELINE_STAGES),
        pipeline=build_pipeline(),
        directory=UserDirectory(USERS),
        actions=build_actions(now),
        comments=build_comments(now),
        notifications=build_notifications(now),
        current_user='u1',
    )
    logger.info(
        f"Demo dataset loaded (seed={seed}): {len(dataset.pipeline)} pipeline items, "
        f"{len(dataset.actions)} actions, {len(dataset.comments)} comments"
    )
    return dataset
