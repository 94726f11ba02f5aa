"""Enumerations shared by properties, amenities and applications"""

from enum import Enum


class PropertyType(str, Enum):
    ROOMS = "Rooms"
    TINYHOUSE = "Tinyhouse"
    APARTMENT = "Apartment"
    VILLA = "Villa"
    TOWNHOUSE = "Townhouse"
    COTTAGE = "Cottage"


class Amenity(str, Enum):
    WASHER_DRYER = "WasherDryer"
    AIR_CONDITIONING = "AirConditioning"
    DISHWASHER = "Dishwasher"
    HIGH_SPEED_INTERNET = "HighSpeedInternet"
    HARDWOOD_FLOORS = "HardwoodFloors"
    WALK_IN_CLOSETS = "WalkInClosets"
    MICROWAVE = "Microwave"
    REFRIGERATOR = "Refrigerator"
    POOL = "Pool"
    GYM = "Gym"
    PARKING = "Parking"
    PETS_ALLOWED = "PetsAllowed"
    WIFI = "WiFi"


class Highlight(str, Enum):
    HIGH_SPEED_INTERNET_ACCESS = "HighSpeedInternetAccess"
    WASHER_DRYER = "WasherDryer"
    AIR_CONDITIONING = "AirConditioning"
    HEATING = "Heating"
    SMOKE_FREE = "SmokeFree"
    CABLE_READY = "CableReady"
    SATELLITE_TV = "SatelliteTV"
    DOUBLE_VANITIES = "DoubleVanities"
    TUB_SHOWER = "TubShower"
    INTERCOM = "Intercom"
    SPRINKLER_SYSTEM = "SprinklerSystem"
    RECENTLY_RENOVATED = "RecentlyRenovated"
    CLOSE_TO_TRANSIT = "CloseToTransit"
    GREAT_VIEW = "GreatView"
    QUIET_NEIGHBORHOOD = "QuietNeighborhood"


class ApplicationStatus(str, Enum):
    PENDING = "Pending"
    DENIED = "Denied"
    APPROVED = "Approved"


def enum_values(enum_cls) -> list:
    return [member.value for member in enum_cls]
