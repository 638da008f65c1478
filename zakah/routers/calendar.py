from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from zakah.models.hijri import HijriDate
from zakah.services.hijri_calendar import DEFAULT_CALENDAR, HijriCalendar

"""Calendar router: Hijri date queries used to drive date pickers.

Endpoints:
    - GET /calendar/gregorian?year&month&day -> exact Gregorian date
    - GET /calendar/days?year&month          -> valid days of a month
    - GET /calendar/years/{year}             -> leap flag and year length
    - GET /calendar/default                  -> approximate "today" and year options
"""

router = APIRouter(prefix="/calendar", tags=["calendar"])


def get_calendar() -> HijriCalendar:
    return DEFAULT_CALENDAR


class HijriDateOut(BaseModel):
    year: int
    month: int
    day: int
    iso: str

    @classmethod
    def from_domain(cls, d: HijriDate) -> "HijriDateOut":
        return cls(year=d.year, month=d.month, day=d.day, iso=d.isoformat())


class ConversionOut(BaseModel):
    hijri: HijriDateOut
    gregorian: date


class MonthDaysOut(BaseModel):
    year: int
    month: int
    month_length: int
    days: List[int]


class YearInfoOut(BaseModel):
    year: int
    leap: bool
    length: int


class DefaultDateOut(BaseModel):
    date: HijriDateOut
    year_options: List[int]
    approximate: bool = True


@router.get("/gregorian", response_model=ConversionOut, summary="Convert a Hijri date to Gregorian")
async def to_gregorian(
    year: int = Query(..., description="Hijri year"),
    month: int = Query(..., description="Hijri month 1..12"),
    day: int = Query(..., description="Hijri day 1..30"),
    calendar: HijriCalendar = Depends(get_calendar),
):
    hijri = HijriDate(year, month, day)
    return ConversionOut(hijri=HijriDateOut.from_domain(hijri), gregorian=calendar.to_gregorian(hijri))


@router.get("/days", response_model=MonthDaysOut, summary="List valid days of a Hijri month")
async def month_days(
    year: int = Query(..., description="Hijri year"),
    month: int = Query(..., description="Hijri month 1..12"),
    calendar: HijriCalendar = Depends(get_calendar),
):
    days = calendar.days_in_month(year, month)
    return MonthDaysOut(year=year, month=month, month_length=len(days), days=days)


@router.get("/years/{year}", response_model=YearInfoOut, summary="Leap flag and length of a Hijri year")
async def year_info(year: int, calendar: HijriCalendar = Depends(get_calendar)):
    return YearInfoOut(year=year, leap=calendar.is_leap_year(year), length=calendar.year_length(year))


@router.get(
    "/default",
    response_model=DefaultDateOut,
    summary="Approximate current Hijri date and selectable years",
)
async def default_date(calendar: HijriCalendar = Depends(get_calendar)):
    today = date.today()
    return DefaultDateOut(
        date=HijriDateOut.from_domain(calendar.default_date(today)),
        year_options=calendar.year_options(today),
    )
