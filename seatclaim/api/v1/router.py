"""API v1 main router."""

from fastapi import APIRouter

from seatclaim.api.v1.events import router as events_router
from seatclaim.api.v1.payments import router as payments_router
from seatclaim.api.v1.reservations import router as reservations_router
from seatclaim.api.v1.seatmap import router as seatmap_router
from seatclaim.api.v1.tickets import router as tickets_router

router = APIRouter(prefix="/v1")

router.include_router(events_router, prefix="/events", tags=["Events"])
router.include_router(reservations_router, prefix="/reservations", tags=["Reservations"])
router.include_router(tickets_router, prefix="/tickets", tags=["Tickets"])
router.include_router(seatmap_router, prefix="/seatmap", tags=["Seatmap"])
router.include_router(payments_router, prefix="/payments", tags=["Payments"])
