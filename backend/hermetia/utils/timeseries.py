"""
Time-Series Helpers
===================

Pure functions that turn raw reading rows into what the dashboard draws.

Rows are plain MongoDB documents:
    {"recorded_at": datetime, "temperature": 27.4, "component_id": 1}
    {"recorded_at": datetime, "humidity": 71.0, "component_id": 2}

All datetimes are naive UTC, the same way MongoDB returns them.

HOURLY BUCKETS (historical chart):
    Every reading is dropped into the hour it happened in (minutes, seconds
    cut off). Temperatures and humidities are averaged separately across ALL
    sensors in that hour.

EXACT-TIMESTAMP MERGE (export):
    Readings that share the exact same timestamp become one row.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from hermetia.models import ExportRow, HistoricalPoint, TimeRange


RANGE_LENGTHS = {
    TimeRange.LAST_24_HOURS: timedelta(hours=24),
    TimeRange.LAST_7_DAYS: timedelta(days=7),
    TimeRange.LAST_30_DAYS: timedelta(days=30),
}


def normalize_range(value: Optional[str]) -> TimeRange:
    """Map a ?range= query value to a TimeRange. Unknown or missing means 24h."""
    try:
        return TimeRange(value)
    except ValueError:
        return TimeRange.LAST_24_HOURS


def range_start(time_range: TimeRange, now: datetime) -> datetime:
    return now - RANGE_LENGTHS[time_range]


def hour_key(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0)


def iso_utc(moment: datetime) -> str:
    """Format like JavaScript's toISOString(): 2026-10-19T14:00:00.000Z"""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def hour_label(moment: datetime, time_range: TimeRange) -> str:
    """
    Axis label for an hourly bucket.

    24h       -> "14:00"
    7d / 30d  -> "19/10 14h"
    """
    if time_range == TimeRange.LAST_24_HOURS:
        return moment.strftime("%H:%M")
    return moment.strftime("%d/%m %Hh")


def export_label(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y, %H:%M:%S")


def _average(values: list[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 2)


def hourly_averages(
    temperatures: list[dict],
    humidities: list[dict],
    time_range: TimeRange,
) -> list[HistoricalPoint]:
    """
    Group readings by hour and average them.

    Buckets where both averages come out as 0 are dropped (no usable data).
    The result is sorted oldest first.
    """
    buckets: dict[datetime, dict[str, list[float]]] = {}

    for row in temperatures:
        bucket = buckets.setdefault(hour_key(row["recorded_at"]), {"temperature": [], "humidity": []})
        bucket["temperature"].append(row["temperature"])

    for row in humidities:
        bucket = buckets.setdefault(hour_key(row["recorded_at"]), {"temperature": [], "humidity": []})
        bucket["humidity"].append(row["humidity"])

    points = []
    for key in sorted(buckets):
        bucket = buckets[key]
        temperature = _average(bucket["temperature"])
        humidity = _average(bucket["humidity"])
        if temperature == 0 and humidity == 0:
            continue
        points.append(HistoricalPoint(
            time=hour_label(key, time_range),
            temperature=temperature,
            humidity=humidity,
            timestamp=iso_utc(key),
            temp_count=len(bucket["temperature"]),
            hum_count=len(bucket["humidity"]),
        ))
    return points


def merge_by_timestamp(temperatures: list[dict], humidities: list[dict]) -> list[ExportRow]:
    """
    Combine both series into one row per exact timestamp, oldest first.

    A timestamp with only one kind of reading gets 0 for the other column.
    """
    merged: dict[datetime, dict[str, list[float]]] = {}

    for row in temperatures:
        entry = merged.setdefault(row["recorded_at"], {"temperature": [], "humidity": []})
        entry["temperature"].append(row["temperature"])

    for row in humidities:
        entry = merged.setdefault(row["recorded_at"], {"temperature": [], "humidity": []})
        entry["humidity"].append(row["humidity"])

    return [
        ExportRow(
            timestamp=iso_utc(moment),
            time=export_label(moment),
            temperature=_average(merged[moment]["temperature"]),
            humidity=_average(merged[moment]["humidity"]),
        )
        for moment in sorted(merged)
    ]


def rows_to_csv(rows: list[ExportRow]) -> str:
    lines = [ExportRow.csv_header()]
    lines.extend(row.to_csv_row() for row in rows)
    return "\n".join(lines)
