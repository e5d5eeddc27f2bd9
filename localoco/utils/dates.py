import calendar
from datetime import datetime


def add_months(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` by whole calendar months.

    The day of month is clamped to the last valid day of the target month, so
    Jan 31 + 1 month is Feb 28 (Feb 29 in leap years). Time of day and tzinfo
    are preserved.
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))
