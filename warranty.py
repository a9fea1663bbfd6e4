"""Warranty coverage derived from a system's commissioning date."""

import math
from datetime import datetime, timezone
from typing import List, Optional

from schemas import PortalModel, User, WarrantyItem, utcnow
from seed import WARRANTY_ITEMS

AVG_DAYS_PER_MONTH = 30.44


class WarrantyStatus(PortalModel):
    name: str
    total_duration_years: int
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    progress_percent: float
    remaining_months: int


def add_years(start: datetime, years: int) -> datetime:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return start.replace(year=start.year + years, month=2, day=28)


def warranty_status(
    commissioning_date: Optional[datetime],
    items: Optional[List[WarrantyItem]] = None,
    now: Optional[datetime] = None,
) -> List[WarrantyStatus]:
    if commissioning_date is None:
        return []
    if commissioning_date.tzinfo is None:
        commissioning_date = commissioning_date.replace(tzinfo=timezone.utc)
    now = now or utcnow()

    statuses = []
    for item in items if items is not None else WARRANTY_ITEMS:
        end = add_years(commissioning_date, item.total_duration_years)
        total = (end - commissioning_date).total_seconds()
        elapsed = (now - commissioning_date).total_seconds()
        progress = max(0.0, min(elapsed / total * 100, 100.0)) if total > 0 else 100.0
        elapsed_months = max(0, math.floor(elapsed / 86400 / AVG_DAYS_PER_MONTH))
        statuses.append(
            WarrantyStatus(
                name=item.name,
                total_duration_years=item.total_duration_years,
                description=item.description,
                start_date=commissioning_date,
                end_date=end,
                progress_percent=round(progress, 2),
                remaining_months=max(0, item.total_duration_years * 12 - elapsed_months),
            )
        )
    return statuses


def warranty_for_user(user: User, now: Optional[datetime] = None) -> List[WarrantyStatus]:
    return warranty_status(user.system.commissioning_date, now=now)
