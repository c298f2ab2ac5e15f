"""Input scanning and record decoding."""

from .records import Record, RecordSchema, decode_frame
from .scanner import ScanSummary, scan_directory, validate_input_dir

__all__ = ["Record", "RecordSchema", "ScanSummary", "decode_frame", "scan_directory", "validate_input_dir"]
