from __future__ import annotations

from pydantic import BaseModel


class PeerRecommendationOut(BaseModel):
    address: str
    name: str
    symbol: str
    score: float
    reason: str


class PeerRecommendationsResponse(BaseModel):
    recommendations: list[PeerRecommendationOut]
    query: str
    type: str
    count: int
