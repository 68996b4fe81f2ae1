"""
Geofence checks for check-in / check-out coordinates.

Distances are great-circle (haversine) distances on a sphere of radius
6 371 000 m. A point is inside the fence when its distance from the office
is less than or equal to the allowed radius.
"""

import logging
import math
from typing import Protocol

from emenu.core.exceptions import LocationRequiredError, OutOfRangeError

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6_371_000


class GeofencePolicy(Protocol):
    require_location_check: bool
    office_latitude: float | None
    office_longitude: float | None
    allowed_radius_meters: int | None


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two lat/lon points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push a marginally above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_radius(
    point: tuple[float, float],
    center: tuple[float, float],
    radius_meters: float,
) -> bool:
    return distance_meters(point[0], point[1], center[0], center[1]) <= radius_meters


def validate_location(
    latitude: float | None,
    longitude: float | None,
    policy: GeofencePolicy,
) -> float | None:
    """
    Enforce the policy's geofence for one punch.

    Returns the computed distance in meters, or None when the policy does not
    require a location check.

    Raises:
        LocationRequiredError: geofencing is mandatory and a coordinate is missing.
        OutOfRangeError: the point lies outside ``allowed_radius_meters``.
    """
    if not policy.require_location_check:
        return None

    if latitude is None or longitude is None:
        raise LocationRequiredError()

    if (
        policy.office_latitude is None
        or policy.office_longitude is None
        or policy.allowed_radius_meters is None
    ):
        raise ValueError("Attendance policy requires a location check but has no office geofence")

    distance = distance_meters(
        latitude, longitude, policy.office_latitude, policy.office_longitude
    )
    if distance > policy.allowed_radius_meters:
        logger.warning(
            "Geofence rejection: %.0fm from office, allowed %dm",
            distance, policy.allowed_radius_meters,
        )
        raise OutOfRangeError(distance, policy.allowed_radius_meters)
    return distance
