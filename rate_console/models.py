from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field, model_validator


@dataclass(frozen=True)
class EntityId:
    sabre_id: str
    paragon_id: str | None = None

    def __post_init__(self):
        if not self.sabre_id and not self.paragon_id:
            raise ValueError("sabre_id or paragon_id is required")

    @property
    def lookup(self) -> tuple[str, str]:
        if self.sabre_id:
            return "sabre_id", self.sabre_id
        return "paragon_id", str(self.paragon_id)

    def as_dict(self) -> dict[str, str | None]:
        return {"sabre_id": self.sabre_id or None, "paragon_id": self.paragon_id}


class StayQuery(BaseModel):
    check_in: dt.date
    check_out: dt.date
    adults: int = Field(default=2, ge=1)
    children: int = Field(default=0, ge=0)
    currency_code: str = "KRW"

    @model_validator(mode="after")
    def _check_out_after_check_in(self) -> StayQuery:
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class RatePlanRow(BaseModel):
    rate_key: str = ""
    rate_plan_code: str = ""
    rate_plan_name: str = ""
    room_type: str = ""
    room_name: str = ""
    description: str = ""
    currency: str = ""
    amount_after_tax: float | None = None
    amount_before_tax: float | None = None
    taxes: float | None = None
    fees: float | None = None
    refundable: bool | str | None = None
    cancel_offset: str = ""


class RoomOfferRow(BaseModel):
    room_type: str = ""
    room_view_description: str = ""
    bed_type_description: str = ""
    rate_plan_name: str = ""
    rate_plan_code: str = ""
    rate_key: str = ""
    product_code: str = ""
    amount_after_tax: float | None = None
    average_nightly_rate: float | None = None
    currency_code: str = ""
    room_name: str = ""
    room_text: str = ""


class CodeDisplay(BaseModel):
    code: str
    selected: bool
    persisted: bool


class SelectionSnapshot(BaseModel):
    sabre_id: str | None = None
    paragon_id: str | None = None
    baseline: list[str] = Field(default_factory=list)
    working: list[str] = Field(default_factory=list)
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    dirty: bool = False
    codes: list[CodeDisplay] = Field(default_factory=list)


class RatePlanSearchResponse(BaseModel):
    sabre_id: str | None = None
    paragon_id: str | None = None
    query: dict
    metadata: dict = Field(default_factory=dict)
    rows: list[RatePlanRow] = Field(default_factory=list)


class RoomOfferSearchResponse(BaseModel):
    sabre_id: str | None = None
    paragon_id: str | None = None
    query: dict
    metadata: dict = Field(default_factory=dict)
    offers: list[RoomOfferRow] = Field(default_factory=list)


class RoomUrlResponse(BaseModel):
    url: str
    sabre_id: str
    rate_plan_code: str
    room_code: str | None = None


class ApiError(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: dict | None = None


class ErrorEnvelope(BaseModel):
    ok: Literal[False] = False
    error: ApiError
