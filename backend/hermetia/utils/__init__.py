"""
Utility modules for the incubator monitor backend.
"""

from hermetia.utils.validation import (
    validate_person_name,
    validate_phone,
    validate_email,
    validate_thresholds,
)
from hermetia.utils.timeseries import (
    normalize_range,
    range_start,
    hourly_averages,
    merge_by_timestamp,
    rows_to_csv,
    iso_utc,
)

__all__ = [
    "validate_person_name",
    "validate_phone",
    "validate_email",
    "validate_thresholds",
    "normalize_range",
    "range_start",
    "hourly_averages",
    "merge_by_timestamp",
    "rows_to_csv",
    "iso_utc",
]
