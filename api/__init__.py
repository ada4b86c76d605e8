"""API module containing endpoint routers."""
from api.users import router as users_router
from api.restaurants import router as restaurants_router
from api.extraction import router as extraction_router
from api.webhooks import router as webhooks_router

__all__ = ["users_router", "restaurants_router", "extraction_router", "webhooks_router"]
