# follow_dashboard/export.py
"""
Formatted Excel Export for the Monthly Follow report

"""

import logging
from datetime import datetime
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple
import pandas as pd

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from .kpi_follow.constants import EXCEL_STYLES, DISPLAY_UNIT, DISPLAY_UNIT_LABEL, STATUS_CONFIG
from .kpi_follow.composite import TargetGap
from .kpi_follow.pipeline import PipelineRollup
from .action_tracker.actions import effective_status
from .action_tracker.models import ActionItem, Notification
from .action_tracker.users import UserDirectory

logger = logging.getLogger(__name__)

# (source column, header, width, kind)
Column = Tuple[str, str, int, str]


class FollowReportExport:
    """
    Excel report generator for the monthly follow page.

    Usage:
        exporter = FollowReportExport()
        excel_bytes = exporter.create_report(
            month='2025-09',
            summary=summary,
            kpi_table=kpi_table,
            rollup=rollup,
        )

        st.download_button(
            label="Download Report",
            data=excel_bytes,
            file_name="monthly_follow.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self, display_unit: float = DISPLAY_UNIT, unit_label: str = DISPLAY_UNIT_LABEL):
        self.wb = None
        self.display_unit = display_unit
        self.unit_label = unit_label
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right', vertical='center')

        self.amount_format = EXCEL_STYLES['amount_format']
        self.rate_format = EXCEL_STYLES['rate_format']
        self.date_format = EXCEL_STYLES['date_format']

    # =========================================================================
    # REPORT
    # =========================================================================

    def create_report(
        self,
        month: str,
        summary: Dict,
        kpi_table: pd.DataFrame,
        rollup: PipelineRollup = None,
        target_gap: TargetGap = None,
        actions: List[ActionItem] = None,
        notifications: List[Notification] = None,
        directory: UserDirectory = None,
        today=None
    ) -> BytesIO:
        """
        Create the Excel report.

        Sheets:
        1. Summary - headline numbers and target gap
        2. KPI Follow - month / YTD / forecast per KPI
        3. Pipeline - stage summary (when a rollup is given)
        4. Actions - action items with effective status
        5. Notifications - notification log
        """
        self.wb = Workbook()

        self._create_summary_sheet(month, summary, target_gap)

        if kpi_table is not None and not kpi_table.empty:
            self._create_kpi_sheet(kpi_table)

        if rollup is not None:
            self._create_pipeline_sheet(rollup)

        if actions:
            self._create_actions_sheet(actions, directory, today or datetime.now().date())

        if notifications:
            self._create_notifications_sheet(notifications)

        if 'Sheet' in self.wb.sheetnames:
            del self.wb['Sheet']

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"Monthly follow Excel report created for {month}")
        return output

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _amount(self, value) -> Optional[float]:
        if value is None or pd.isna(value):
            return None
        return float(value) / self.display_unit

    def _write_table(self, ws, columns: Sequence[Column], rows: List[Dict], start_row: int = 1):
        """Header + rows with borders and number formats by column kind."""
        for col_idx, (_, header, width, _) in enumerate(columns, 1):
            cell = ws.cell(row=start_row, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        for row_idx, row_data in enumerate(rows, start_row + 1):
            for col_idx, (key, _, _, kind) in enumerate(columns, 1):
                value = row_data.get(key)
                if value is not None and not isinstance(value, (str, datetime)) and pd.isna(value):
                    value = None
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border
                if kind == 'amount':
                    cell.number_format = self.amount_format
                    cell.alignment = self.right_align
                elif kind == 'rate':
                    cell.number_format = self.rate_format
                    cell.alignment = self.right_align
                elif kind == 'date':
                    cell.number_format = self.date_format

        ws.freeze_panes = ws.cell(row=start_row + 1, column=1)

    # =========================================================================
    # SHEETS
    # =========================================================================

    def _create_summary_sheet(self, month: str, summary: Dict, target_gap: TargetGap = None):
        ws = self.wb.create_sheet("Summary", 0)

        ws['A1'] = "Monthly Follow Report"
        ws['A1'].font = self.title_font
        ws.merge_cells('A1:D1')

        ws['A2'] = f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"
        ws['A2'].font = Font(italic=True, size=10)

        row = 4
        ws[f'A{row}'] = "MONTH"
        ws[f'A{row}'].font = self.subtitle_font
        row += 1
        ws[f'A{row}'] = "Selected month:"
        ws[f'B{row}'] = month
        row += 1
        ws[f'A{row}'] = "Closed months:"
        ws[f'B{row}'] = f"{summary.get('closed_months', 0)}/{summary.get('total_months', 12)}"
        row += 2

        ws[f'A{row}'] = f"REVENUE ({self.unit_label})"
        ws[f'A{row}'].font = self.subtitle_font
        row += 1

        revenue_rows = [
            ("Month", summary.get('revenue_actual'), summary.get('revenue_variance_rate')),
            ("YTD", summary.get('revenue_ytd'), summary.get('revenue_ytd_variance_rate')),
            ("Landing estimate", summary.get('revenue_forecast'), summary.get('revenue_forecast_variance_rate')),
        ]
        for label, amount, rate in revenue_rows:
            ws[f'A{row}'] = label
            ws[f'A{row}'].font = Font(bold=True)
            ws[f'B{row}'] = self._amount(amount)
            ws[f'B{row}'].number_format = self.amount_format
            ws[f'C{row}'] = rate
            ws[f'C{row}'].number_format = self.rate_format
            row += 1

        if target_gap is not None:
            row += 1
            ws[f'A{row}'] = f"TARGET GAP ({self.unit_label})"
            ws[f'A{row}'].font = self.subtitle_font
            row += 1
            gap_rows = [
                ("Annual target", target_gap.annual_target),
                ("Confirmed YTD", target_gap.confirmed_ytd),
                ("Continuing revenue", target_gap.continuing_revenue),
                ("Current stack", target_gap.current_stack),
                ("Gap to target", target_gap.gap_to_target),
                ("New business required", target_gap.new_business_required),
            ]
            for label, amount in gap_rows:
                ws[f'A{row}'] = label
                ws[f'A{row}'].font = Font(bold=True)
                ws[f'B{row}'] = self._amount(amount)
                ws[f'B{row}'].number_format = self.amount_format
                row += 1
            ws[f'A{row}'] = "Achievement rate (%)"
            ws[f'A{row}'].font = Font(bold=True)
            ws[f'B{row}'] = target_gap.achievement_rate

        ws.column_dimensions['A'].width = 26
        ws.column_dimensions['B'].width = 16
        ws.column_dimensions['C'].width = 12

    def _create_kpi_sheet(self, kpi_table: pd.DataFrame):
        ws = self.wb.create_sheet("KPI Follow")

        columns = [
            ('name', 'KPI', 24, 'text'),
            ('unit', 'Unit', 8, 'text'),
            ('actual', 'Actual', 14, 'number'),
            ('budget', 'Budget', 14, 'number'),
            ('variance_rate', 'Variance %', 12, 'rate'),
            ('status', 'Status', 14, 'text'),
            ('ytd_actual', 'YTD Actual', 14, 'number'),
            ('ytd_budget', 'YTD Budget', 14, 'number'),
            ('ytd_variance_rate', 'YTD Variance %', 14, 'rate'),
            ('forecast', 'Forecast', 14, 'number'),
            ('annual_budget', 'Annual Budget', 14, 'number'),
            ('forecast_variance_rate', 'Forecast Variance %', 18, 'rate'),
        ]
        value_cols = ['actual', 'budget', 'ytd_actual', 'ytd_budget', 'forecast', 'annual_budget']

        rows = []
        for record in kpi_table.to_dict('records'):
            if record.get('unit') == 'yen':
                for col in value_cols:
                    record[col] = self._amount(record.get(col))
                record['unit'] = self.unit_label
            record['status'] = STATUS_CONFIG.get(record['status'], {}).get('label', record['status'])
            rows.append(record)

        self._write_table(ws, columns, rows)

    def _create_pipeline_sheet(self, rollup: PipelineRollup):
        ws = self.wb.create_sheet("Pipeline")

        columns = [
            ('stage', 'Stage', 8, 'text'),
            ('name', 'Name', 16, 'text'),
            ('probability', 'Probability %', 14, 'number'),
            ('count', 'Items', 8, 'number'),
            ('total_amount', f'Gross ({self.unit_label})', 16, 'amount'),
            ('weighted_amount', f'Weighted ({self.unit_label})', 16, 'amount'),
            ('share', 'Share %', 10, 'number'),
        ]
        rows = rollup.to_frame().to_dict('records')
        for record in rows:
            record['total_amount'] = self._amount(record['total_amount'])
            record['weighted_amount'] = self._amount(record['weighted_amount'])
        rows.append({
            'stage': 'Total',
            'count': len(rollup.items),
            'total_amount': self._amount(rollup.gross_total),
            'weighted_amount': self._amount(rollup.weighted_total),
        })
        self._write_table(ws, columns, rows)

    def _create_actions_sheet(self, actions: List[ActionItem], directory: UserDirectory, today):
        ws = self.wb.create_sheet("Actions")

        columns = [
            ('id', 'ID', 14, 'text'),
            ('category', 'Category', 10, 'text'),
            ('target_name', 'Target', 20, 'text'),
            ('issue', 'Issue', 36, 'text'),
            ('action', 'Action', 36, 'text'),
            ('assignee', 'Assignee', 14, 'text'),
            ('due_date', 'Due', 12, 'date'),
            ('status', 'Status', 12, 'text'),
            ('priority', 'Priority', 10, 'text'),
        ]
        rows = [
            {
                'id': a.id,
                'category': a.category,
                'target_name': a.target_name,
                'issue': a.issue,
                'action': a.action,
                'assignee': directory.name_of(a.assignee, a.assignee) if directory else a.assignee,
                'due_date': a.due_date,
                'status': effective_status(a, today),
                'priority': a.priority,
            }
            for a in actions
        ]
        self._write_table(ws, columns, rows)

    def _create_notifications_sheet(self, notifications: List[Notification]):
        ws = self.wb.create_sheet("Notifications")

        columns = [
            ('created_at', 'Created', 18, 'date'),
            ('user_id', 'User', 10, 'text'),
            ('type', 'Type', 14, 'text'),
            ('title', 'Title', 28, 'text'),
            ('message', 'Message', 48, 'text'),
            ('is_read', 'Read', 8, 'text'),
        ]
        rows = [
            {
                'created_at': n.created_at,
                'user_id': n.user_id,
                'type': n.type,
                'title': n.title,
                'message': n.message,
                'is_read': 'yes' if n.is_read else 'no',
            }
            for n in sorted(notifications, key=lambda n: n.created_at, reverse=True)
        ]
        self._write_table(ws, columns, rows)
