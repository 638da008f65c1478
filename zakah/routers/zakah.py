"""Zakah router: calculation, input checks and cash conversion previews.

Cash previews come in two forms:
    - POST /zakah/cash-preview converts at once. Each caller session (the
      ``x-session-id`` header, else the request id) gets one slot; a second
      preview from the same session while one runs is rejected with 409.
    - POST /zakah/cash-preview/live feeds the session's debouncer and returns
      immediately; GET /zakah/cash-preview/live reads the latest result. Use
      it from clients that fire on every keystroke.
"""

from decimal import Decimal
from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field
from starlette import status

from zakah.core.errors import InvalidInputError
from zakah.core.logging import request_id_ctx
from zakah.models.constants import TARGET_CURRENCIES
from zakah.models.hijri import HijriDate
from zakah.models.wealth import CashConversion, WealthInput, ZakahResult
from zakah.services.gold_price_link import gold_price_search_url
from zakah.services.money import round2, round2_map
from zakah.services.scheduling import ConversionSession, ConversionSessions, SessionSupervisors
from zakah.services.zakah_calculator import ZakahCalculator, get_calculator

router = APIRouter(prefix="/zakah", tags=["zakah"])


@lru_cache
def get_cash_supervisors() -> SessionSupervisors:
    return SessionSupervisors("cash conversion")


@lru_cache
def get_conversion_sessions() -> ConversionSessions:
    return ConversionSessions()


def get_session_id(
    x_session_id: Optional[str] = Header(None, description="Caller session; defaults to the request id"),
) -> str:
    return x_session_id or request_id_ctx.get() or "anonymous"


class HijriDateIn(BaseModel):
    year: int
    month: int
    day: int

    def to_domain(self) -> HijriDate:
        return HijriDate(self.year, self.month, self.day)


class ZakahRequest(BaseModel):
    gold_by_purity: Dict[str, Decimal] = Field(
        default_factory=dict,
        description="Grams held per purity grade; keys 18, 21, 24 (a trailing 'k' is accepted)",
    )
    cash_by_currency: Dict[str, Decimal] = Field(
        default_factory=dict, description="Cash held per currency (EGP, SAR, USD)"
    )
    gold_price_per_gram_24k: Decimal = Field(
        Decimal("0"), description="Price of one gram of 24k gold in the target currency"
    )
    target_currency: Optional[str] = Field(None, description="EGP or SAR")
    value_date: Optional[HijriDateIn] = Field(None, description="Hijri date the wealth is valued at")

    def to_domain(self) -> WealthInput:
        return WealthInput(
            gold_by_purity=dict(self.gold_by_purity),
            cash_by_currency=dict(self.cash_by_currency),
            gold_price_per_gram_24k=self.gold_price_per_gram_24k,
            target_currency=self.target_currency,
            value_date=self.value_date.to_domain() if self.value_date else None,
        )


class CashPreviewRequest(BaseModel):
    cash_by_currency: Dict[str, Decimal] = Field(default_factory=dict)
    target_currency: Optional[str] = None
    value_date: Optional[HijriDateIn] = None


class ProblemOut(BaseModel):
    field: str
    code: str
    message: str


class CheckOut(BaseModel):
    can_calculate: bool
    problems: List[ProblemOut]


class ZakahResultOut(BaseModel):
    target_currency: str
    value_date: str
    gregorian_date: date
    rates: Dict[str, float]
    total_gold_grams_24k: float
    gold_value: float
    total_cash: float
    total_wealth: float
    zakah_due: float
    gold_breakdown: Dict[str, float]
    cash_breakdown: Dict[str, float]

    @classmethod
    def from_domain(cls, r: ZakahResult) -> "ZakahResultOut":
        return cls(
            target_currency=r.target_currency,
            value_date=r.value_date.isoformat(),
            gregorian_date=r.gregorian_date,
            rates={c: float(v) for c, v in r.rates.as_dict().items()},
            total_gold_grams_24k=round2(r.total_gold_grams_24k),
            gold_value=round2(r.gold_value),
            total_cash=round2(r.total_cash),
            total_wealth=round2(r.total_wealth),
            zakah_due=round2(r.zakah_due),
            gold_breakdown={f"{k}k": round2(v) for k, v in r.gold_breakdown.items()},
            cash_breakdown=round2_map(r.cash_breakdown),
        )


class CashPreviewOut(BaseModel):
    target_currency: str
    gregorian_date: date
    rates: Optional[Dict[str, float]]
    breakdown: Dict[str, float]
    total: float

    @classmethod
    def from_domain(cls, c: CashConversion) -> "CashPreviewOut":
        return cls(
            target_currency=c.target_currency,
            gregorian_date=c.gregorian_date,
            rates={k: float(v) for k, v in c.rates.as_dict().items()} if c.rates else None,
            breakdown=round2_map(c.breakdown),
            total=round2(c.total),
        )


class GoldPriceLinkOut(BaseModel):
    gregorian_date: date
    url: str


class LiveErrorOut(BaseModel):
    error: str
    detail: str
    field: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_error(cls, e: Exception) -> "LiveErrorOut":
        if isinstance(e, InvalidInputError):
            return cls(error=e.error_code, detail=e.message, field=e.field, code=e.code)
        return cls(error=getattr(e, "error_code", "error"), detail=str(e))


class LivePreviewOut(BaseModel):
    session_id: str
    pending: bool
    dropped: int
    result: Optional[CashPreviewOut] = None
    last_error: Optional[LiveErrorOut] = None

    @classmethod
    def from_session(cls, session_id: str, s: ConversionSession) -> "LivePreviewOut":
        return cls(
            session_id=session_id,
            pending=s.pending,
            dropped=s.dropped,
            result=CashPreviewOut.from_domain(s.latest) if s.latest else None,
            last_error=LiveErrorOut.from_error(s.last_error) if s.last_error else None,
        )


@router.post("/check", response_model=CheckOut, summary="Report what is missing before calculating")
async def check(payload: ZakahRequest, calculator: ZakahCalculator = Depends(get_calculator)):
    problems = calculator.check_can_calculate(payload.to_domain())
    return CheckOut(
        can_calculate=not problems,
        problems=[ProblemOut(field=p.field, code=p.code, message=p.message) for p in problems],
    )


@router.post("/calculate", response_model=ZakahResultOut, summary="Calculate Zakah due")
async def calculate(payload: ZakahRequest, calculator: ZakahCalculator = Depends(get_calculator)):
    result = await calculator.calculate(payload.to_domain())
    return ZakahResultOut.from_domain(result)


@router.post(
    "/cash-preview",
    response_model=CashPreviewOut,
    summary="Convert cash to the target currency (one conversion per session at a time)",
)
async def cash_preview(
    payload: CashPreviewRequest,
    calculator: ZakahCalculator = Depends(get_calculator),
    supervisors: SessionSupervisors = Depends(get_cash_supervisors),
    session_id: str = Depends(get_session_id),
):
    value_date = payload.value_date.to_domain() if payload.value_date else None
    conversion = await supervisors.run(
        session_id,
        lambda: calculator.preview_cash(payload.cash_by_currency, payload.target_currency, value_date),
    )
    return CashPreviewOut.from_domain(conversion)


@router.post(
    "/cash-preview/live",
    response_model=LivePreviewOut,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a debounced cash conversion for the session",
)
async def cash_preview_live_update(
    payload: CashPreviewRequest,
    x_session_id: str = Header(..., description="Caller session"),
    sessions: ConversionSessions = Depends(get_conversion_sessions),
):
    session = sessions.get(x_session_id)
    value_date = payload.value_date.to_domain() if payload.value_date else None
    session.update(payload.cash_by_currency, payload.target_currency, value_date)
    return LivePreviewOut.from_session(x_session_id, session)


@router.get(
    "/cash-preview/live",
    response_model=LivePreviewOut,
    summary="Latest debounced cash conversion for the session",
)
async def cash_preview_live_state(
    x_session_id: str = Header(..., description="Caller session"),
    wait: bool = Query(False, description="Block until the pending conversion has run"),
    sessions: ConversionSessions = Depends(get_conversion_sessions),
):
    if x_session_id not in sessions:
        raise HTTPException(status_code=404, detail="No live conversion for this session")
    session = sessions.get(x_session_id)
    if wait:
        await session.wait()
    return LivePreviewOut.from_session(x_session_id, session)


@router.get(
    "/gold-price-link",
    response_model=GoldPriceLinkOut,
    summary="Web search link for the 24k gram price on the value date",
)
async def gold_price_link(
    year: int = Query(..., description="Hijri year"),
    month: int = Query(..., description="Hijri month 1..12"),
    day: int = Query(..., description="Hijri day 1..30"),
    target_currency: Optional[str] = Query(None, description="EGP or SAR"),
    calculator: ZakahCalculator = Depends(get_calculator),
):
    if target_currency and target_currency.upper() not in TARGET_CURRENCIES:
        raise InvalidInputError("target_currency", "unsupported_currency", "target currency must be EGP or SAR")
    gregorian = calculator.calendar.to_gregorian(HijriDate(year, month, day))
    return GoldPriceLinkOut(gregorian_date=gregorian, url=gold_price_search_url(target_currency, gregorian))
