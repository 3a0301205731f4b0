from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.validators import validate_address


class InteractionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_address: str = Field(..., alias="tokenAddress")
    interaction_type: Literal["search", "click", "select"] = Field(..., alias="interactionType")
    session_id: str | None = Field(default=None, alias="sessionId", max_length=64)
    query_text: str | None = Field(default=None, alias="queryText")
    result_position: int | None = Field(default=None, alias="resultPosition", ge=0)

    @field_validator("token_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        return validate_address(value)

    @field_validator("session_id", "query_text", mode="before")
    @classmethod
    def _strip_optional(cls, value: object) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None


class InteractionResponse(BaseModel):
    success: bool
    logged: bool
