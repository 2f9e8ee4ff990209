"""
Aggregate statistics over the record set for dashboard views.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .schema import Record

UNCATEGORIZED = "Uncategorized"

DAY_MS = 1000 * 60 * 60 * 24

TIME_RANGES = {"all": None, "month": 30, "week": 7}


def filter_time_range(records: List[Record], time_range: str = "all", now_ms: Optional[int] = None) -> List[Record]:
    """Keep records created within the last 30 (month) or 7 (week) days."""
    if time_range not in TIME_RANGES:
        raise ValueError(f"time_range must be one of: {list(TIME_RANGES)}")

    max_days = TIME_RANGES[time_range]
    if max_days is None:
        return list(records)

    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return [r for r in records if (now_ms - (r.created_at or 0)) / DAY_MS <= max_days]


def count_categories(records: List[Record]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        category = record.category or UNCATEGORIZED
        counts[category] = counts.get(category, 0) + 1
    return counts


def count_tags(records: List[Record]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        for tag in record.tags or []:
            counts[tag] = counts.get(tag, 0) + 1
    return counts


def top_tags(tag_counts: Dict[str, int], limit: int = 5) -> List[Dict[str, Any]]:
    ranked = sorted(tag_counts.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "count": count} for name, count in ranked[:limit]]


def _created(record: Record) -> datetime:
    return datetime.fromtimestamp(record.created_at / 1000, tz=timezone.utc)


def records_by_day(records: List[Record]) -> List[Dict[str, Any]]:
    """Creation counts per UTC day (YYYY-MM-DD), oldest first."""
    counts: Dict[str, int] = {}
    for record in records:
        if record.created_at:
            day = _created(record).strftime("%Y-%m-%d")
            counts[day] = counts.get(day, 0) + 1
    return [{"name": day, "count": counts[day]} for day in sorted(counts)]


def records_by_month(records: List[Record]) -> List[Dict[str, Any]]:
    """Creation counts per month labelled M/YYYY, in chronological order."""
    counts: Dict[tuple, int] = {}
    for record in records:
        if record.created_at:
            created = _created(record)
            bucket = (created.year, created.month)
            counts[bucket] = counts.get(bucket, 0) + 1
    return [
        {"name": f"{month}/{year}", "count": counts[(year, month)]}
        for year, month in sorted(counts)
    ]


def recent_records(records: List[Record], limit: int = 5) -> List[Record]:
    return sorted(records, key=lambda r: r.created_at or 0, reverse=True)[:limit]


def summarize(records: List[Record], time_range: str = "all", now_ms: Optional[int] = None) -> Dict[str, Any]:
    """Everything the dashboard shows, for records inside the time range."""
    selected = filter_time_range(records, time_range, now_ms)
    tag_counts = count_tags(selected)

    return {
        "time_range": time_range,
        "total": len(selected),
        "category_counts": count_categories(selected),
        "tag_counts": tag_counts,
        "top_tags": top_tags(tag_counts),
        "records_by_day": records_by_day(selected),
        "records_by_month": records_by_month(selected),
        "recent": recent_records(selected),
    }
