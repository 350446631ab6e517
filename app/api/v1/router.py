"""
API v1 router setup
Organized into: storefront (slots, bookings), pos, and admin (hours, availability)
"""
from fastapi import APIRouter

from app.api.v1 import availability, bookings, pos, locations, staff

api_v1_router = APIRouter()

# ============================================================================
# STOREFRONT ROUTES
# ============================================================================
api_v1_router.include_router(
    availability.router,
    prefix="/availability",
    tags=["Availability"]
)

api_v1_router.include_router(
    bookings.router,
    prefix="/bookings",
    tags=["Bookings"]
)

# ============================================================================
# POS ROUTES
# ============================================================================
api_v1_router.include_router(
    pos.router,
    prefix="/pos",
    tags=["POS"]
)

# ============================================================================
# ADMIN ROUTES
# ============================================================================
api_v1_router.include_router(
    locations.router,
    prefix="/locations",
    tags=["Locations"]
)

api_v1_router.include_router(
    staff.router,
    prefix="/staff",
    tags=["Staff"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoint groups"""
    return {
        "version": "1.0",
        "groups": {
            "availability": "/api/v1/availability/slots",
            "bookings": "/api/v1/bookings",
            "pos": "/api/v1/pos/bookings",
            "locations": "/api/v1/locations/{location_id}/hours",
            "staff": "/api/v1/staff/{staff_id}/availability",
        }
    }
