# follow_dashboard/kpi_follow/errors.py
"""
Configuration errors for KPI Follow.

Only genuine configuration mismatches raise. Open months, empty pipelines
and missing actuals are represented as None / zero in results instead.
"""

from typing import Iterable


class MissingReferenceError(LookupError):
    """Raised when an id does not exist in its configuration table"""

    def __init__(self, kind: str, missing: Iterable[str], table: str = ''):
        self.kind = kind
        self.missing = sorted({str(m) for m in missing})
        self.table = table
        where = f" in {table}" if table else ""
        super().__init__(
            f"Unknown {kind}{where}: {', '.join(self.missing)}"
        )
