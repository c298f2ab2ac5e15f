"""Report serialisation."""

from .export import (
    REPORT_KEY_STYLES,
    REVIEW_REPORT_KEYS,
    ReportKeys,
    report_to_dict,
    resolve_report_path,
    write_report_json,
    write_report_tables,
)

__all__ = [
    "REPORT_KEY_STYLES",
    "REVIEW_REPORT_KEYS",
    "ReportKeys",
    "report_to_dict",
    "resolve_report_path",
    "write_report_json",
    "write_report_tables",
]
