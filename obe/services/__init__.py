"""
Services module containing the attainment engine and reporting.
"""

from .attainment_service import AttainmentEngine, effective_weight, mean_attainment
from .report_service import ReportService, OutcomeReport, OutcomeReportRow, MappingMatrix, MarksSheet

__all__ = [
    "AttainmentEngine",
    "effective_weight",
    "mean_attainment",
    "ReportService",
    "OutcomeReport",
    "OutcomeReportRow",
    "MappingMatrix",
    "MarksSheet",
]
