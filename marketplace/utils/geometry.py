"""WKT point parsing for location coordinates"""

import math
from typing import Dict, Optional

import shapely
import structlog
from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point

logger = structlog.get_logger(__name__)


def parse_wkt_point(value) -> Optional[Dict[str, float]]:
    """
    Parse a stored ``POINT(lon lat)`` string into a coordinate pair.

    Returns ``{"longitude": x, "latitude": y}`` or ``None`` when the value is
    missing, is not a string, is not a 2D point, is empty or holds NaN. Never
    raises: a bad coordinate must not fail the whole response.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        shape = wkt.loads(value.strip())
    except (ShapelyError, ValueError, TypeError) as e:
        logger.warning("Unparseable WKT coordinates", value=value, error=str(e))
        return None

    if not isinstance(shape, Point) or shape.is_empty:
        logger.warning("WKT coordinates are not a point", value=value, geom_type=shape.geom_type)
        return None

    # Only plain XY points; Z and M ordinates are rejected, not truncated
    if shape.has_z or shapely.get_coordinate_dimension(shape) != 2:
        logger.warning("WKT point has extra ordinates", value=value)
        return None

    longitude, latitude = shape.x, shape.y
    if math.isnan(longitude) or math.isnan(latitude):
        return None

    return {"longitude": longitude, "latitude": latitude}


def format_wkt_point(longitude: float, latitude: float) -> str:
    """Write a coordinate pair in the stored WKT form"""
    return Point(float(longitude), float(latitude)).wkt
