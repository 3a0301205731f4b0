from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.validators import validate_address, validate_asset_type, validate_timestamp_ms


class TrendingLogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str
    asset_type: str = Field(..., alias="assetType")
    symbol: str | None = Field(default=None, max_length=50)
    name: str | None = Field(default=None, max_length=255)

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        return validate_address(value)

    @field_validator("asset_type")
    @classmethod
    def _check_asset_type(cls, value: str) -> str:
        return validate_asset_type(value)

    @field_validator("symbol", "name", mode="before")
    @classmethod
    def _strip_optional(cls, value: object) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None


class TrendingLogResponse(BaseModel):
    success: bool
    logged: bool


class PopularityUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_address: str = Field(..., alias="tokenAddress")
    appeared_in_results: bool = Field(default=False, alias="appearedInResults")
    was_clicked: bool = Field(default=False, alias="wasClicked")
    timestamp: int | None = None

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: int | None) -> int | None:
        return validate_timestamp_ms(value)

    @field_validator("token_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        return validate_address(value)


class PopularityUpdateResponse(BaseModel):
    success: bool
    updated: bool
