"""
Geographic Distance
===================

Great-circle (haversine) distance between donor and recipient locations.

Author: OrganSync Team
Version: 1.0.0
"""

import math
from typing import Optional

from shared.schemas.scoring import PartyProfile


EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in kilometers between two points in degrees.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    d_lat = lat2_rad - lat1_rad
    d_lon = math.radians(lon2) - math.radians(lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_between(donor: PartyProfile, recipient: PartyProfile) -> Optional[float]:
    """
    Distance between two parties, or None if any coordinate is missing.

    Callers apply their own fallback for the None case.
    """
    coords = (donor.latitude, donor.longitude, recipient.latitude, recipient.longitude)
    if any(c is None for c in coords):
        return None
    return haversine_km(*coords)
