from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.validators import (
    MAX_RESULT_ADDRESSES,
    validate_address,
    validate_addresses,
    validate_query,
    validate_result_rank,
    validate_session_id,
    validate_timestamp_ms,
)


class SearchEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    query: str
    results: list[str] = Field(..., max_length=MAX_RESULT_ADDRESSES)
    result_count: int = Field(..., alias="resultCount", ge=0)
    timestamp: int | None = Field(default=None, description="Client event time, epoch milliseconds")

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: int | None) -> int | None:
        return validate_timestamp_ms(value)

    @field_validator("session_id")
    @classmethod
    def _check_session_id(cls, value: str) -> str:
        return validate_session_id(value)

    @field_validator("query")
    @classmethod
    def _check_query(cls, value: str) -> str:
        return validate_query(value)

    @field_validator("results")
    @classmethod
    def _check_results(cls, value: list[str]) -> list[str]:
        return validate_addresses(value)


class ClickEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    query: str
    clicked_address: str = Field(..., alias="clickedAddress")
    result_rank: int = Field(..., alias="resultRank")
    result_score: float | None = Field(default=None, alias="resultScore")
    time_to_click_ms: int | None = Field(default=None, alias="timeToClickMs", ge=0)
    timestamp: int | None = Field(default=None, description="Client event time, epoch milliseconds")

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: int | None) -> int | None:
        return validate_timestamp_ms(value)

    @field_validator("session_id")
    @classmethod
    def _check_session_id(cls, value: str) -> str:
        return validate_session_id(value)

    @field_validator("query")
    @classmethod
    def _check_query(cls, value: str) -> str:
        return validate_query(value)

    @field_validator("clicked_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        return validate_address(value)

    @field_validator("result_rank")
    @classmethod
    def _check_rank(cls, value: int) -> int:
        return validate_result_rank(value)


class EventSavedResponse(BaseModel):
    success: bool
    saved: bool
