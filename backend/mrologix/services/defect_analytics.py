"""Defect aggregations over flight records for the analytics dashboards.

Only records flagged ``has_defect`` count. Blank strings are treated the
same as missing values for fleet, system and log page number.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, distinct, func
from sqlalchemy.orm import Session

from .. import models

# purpose: group-by summaries of defects per fleet, system and day
# status: active
# depends_on: models.FlightRecord

DEFAULT_MONTHS = 12
TOP_SYSTEMS = 3
DONUT_SYSTEMS = 10
FLEET_CHART_SIZE = 8

FlightRecord = models.FlightRecord
DEFECTS = FlightRecord.has_defect.is_(True)


def _present(column):
    return and_(column.isnot(None), column != "")


def _grouped(db: Session, column, *criteria, limit: Optional[int] = None) -> list[tuple[str, int]]:
    count = func.count(FlightRecord.id)
    query = (
        db.query(column, count)
        .filter(DEFECTS, *criteria)
        .group_by(column)
        .order_by(count.desc(), column)
    )
    if limit:
        query = query.limit(limit)
    return [(name, total) for name, total in query.all()]


def window_start(months: str, now: Optional[datetime] = None) -> datetime:
    """First day of the month ``months`` months back; ``all`` reaches back two years."""

    now = now or datetime.now(timezone.utc)
    if months == "all":
        return datetime(now.year - 2, now.month, 1, tzinfo=timezone.utc)
    try:
        span = int(months) or DEFAULT_MONTHS
    except (TypeError, ValueError):
        span = DEFAULT_MONTHS
    index = now.year * 12 + now.month - 1 - span
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)


def defect_summary(db: Session, start: datetime, end: datetime) -> dict:
    total_fleet_count = (
        db.query(func.count(distinct(FlightRecord.fleet)))
        .filter(DEFECTS, FlightRecord.fleet != "")
        .scalar()
    )
    total_log_page_no_count = (
        db.query(func.count(FlightRecord.id))
        .filter(DEFECTS, _present(FlightRecord.log_page_no))
        .scalar()
    )
    systems = _grouped(db, FlightRecord.system_affected, _present(FlightRecord.system_affected), limit=DONUT_SYSTEMS)
    fleets = _grouped(
        db,
        FlightRecord.fleet,
        FlightRecord.fleet != "",
        _present(FlightRecord.log_page_no),
        limit=FLEET_CHART_SIZE,
    )

    # one bucket per calendar day of created_at
    stamps = (
        db.query(FlightRecord.created_at)
        .filter(DEFECTS, FlightRecord.created_at >= start, FlightRecord.created_at <= end)
        .order_by(FlightRecord.created_at)
        .all()
    )
    per_day = Counter(stamp.date().isoformat() for (stamp,) in stamps)

    return {
        "total_fleet_count": total_fleet_count or 0,
        "total_log_page_no_count": total_log_page_no_count or 0,
        "top_systems_affected": [{"name": n, "count": c} for n, c in systems[:TOP_SYSTEMS]],
        "heatmap_data": [{"date": d, "count": c} for d, c in per_day.items()],
        "donut_chart_data": [{"name": n, "value": c} for n, c in systems],
        "fleet_type_chart_data": [{"name": n, "value": c} for n, c in fleets],
    }


def fleet_summaries(db: Session) -> list[dict]:
    fleets = _grouped(db, FlightRecord.fleet, FlightRecord.fleet != "")
    count = func.count(FlightRecord.id)
    rows = (
        db.query(FlightRecord.fleet, FlightRecord.system_affected, count)
        .filter(DEFECTS, FlightRecord.fleet != "", _present(FlightRecord.system_affected))
        .group_by(FlightRecord.fleet, FlightRecord.system_affected)
        .order_by(count.desc(), FlightRecord.system_affected)
        .all()
    )
    systems = defaultdict(list)
    for fleet, system, total in rows:
        systems[fleet].append({"system": system, "count": total})

    return [
        {
            "fleet_type": fleet,
            "total_defects": total,
            "affected_systems_count": len(systems[fleet]),
            "affected_systems": systems[fleet],
        }
        for fleet, total in fleets
    ]


def fleet_detail(db: Session, fleet_type: str) -> dict:
    total = (
        db.query(func.count(FlightRecord.id))
        .filter(DEFECTS, FlightRecord.fleet == fleet_type)
        .scalar()
    )
    systems = _grouped(
        db,
        FlightRecord.system_affected,
        FlightRecord.fleet == fleet_type,
        _present(FlightRecord.system_affected),
    )
    return {
        "fleet_type": fleet_type,
        "total_defects": total or 0,
        "systems": [{"system": s, "count": c} for s, c in systems],
    }


def system_records(db: Session, fleet_type: str, system: str) -> list[models.FlightRecord]:
    return (
        db.query(FlightRecord)
        .filter(DEFECTS, FlightRecord.fleet == fleet_type, FlightRecord.system_affected == system)
        .order_by(FlightRecord.date.desc())
        .all()
    )
