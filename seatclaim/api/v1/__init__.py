"""API v1 routers package."""

from seatclaim.api.v1.events import router as events_router
from seatclaim.api.v1.payments import router as payments_router
from seatclaim.api.v1.reservations import router as reservations_router
from seatclaim.api.v1.seatmap import router as seatmap_router
from seatclaim.api.v1.tickets import router as tickets_router

__all__ = [
    "events_router",
    "reservations_router",
    "tickets_router",
    "seatmap_router",
    "payments_router",
]
