"""
Data Preprocessing Module

Parsing of scanner reports into typed scanners, and generation of synthetic
scanner surveys with a known ground truth.
"""

from .loader import (
    ReportFormatError,
    ScannerReportLoader,
    parse_scanner_report,
    load_scanners,
    format_scanner_report,
)
from .synthetic import SyntheticSurvey, generate_survey, to_local_frame

__all__ = [
    "ReportFormatError",
    "ScannerReportLoader",
    "parse_scanner_report",
    "load_scanners",
    "format_scanner_report",
    "SyntheticSurvey",
    "generate_survey",
    "to_local_frame",
]
