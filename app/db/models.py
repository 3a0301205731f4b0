from app.db.base import Base

# Import all models here
from app.models.click_event import ClickEvent
from app.models.learned_token import LearnedToken
from app.models.search_event import SearchEvent
from app.models.token_interaction import TokenInteraction
from app.models.token_popularity import TokenPopularity
from app.models.trending_search import TrendingSearch, TrendingSearchLog

__all__ = [
    "Base",
    "ClickEvent",
    "LearnedToken",
    "SearchEvent",
    "TokenInteraction",
    "TokenPopularity",
    "TrendingSearch",
    "TrendingSearchLog",
]
