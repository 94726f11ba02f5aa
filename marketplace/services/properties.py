"""Property listing, lookup and creation"""

from typing import Dict, List, Optional

import structlog

from marketplace.database.documents import (
    LANDLORDS, LEASES, LOCATIONS, MANAGERS, PROPERTIES, Condition, where,
)
from marketplace.models.enums import Amenity, Highlight, PropertyType, enum_values
from marketplace.services.resolver import location_view
from marketplace.utils.exceptions import InvalidInput, NotFound
from marketplace.utils.geometry import format_wkt_point
from marketplace.utils.validation import parse_numeric_id, require_fields, to_number, utcnow, isoformat

logger = structlog.get_logger(__name__)

LOCATION_REQUIRED = ("address", "city", "state", "country", "postalCode")
PROPERTY_REQUIRED = ("name", "pricePerMonth", "beds", "baths", "squareFeet", "propertyType")
NUMERIC_FIELDS = ("pricePerMonth", "securityDeposit", "applicationFee", "beds", "baths", "squareFeet")
TEXT_FIELDS = ("name", "description")

OWNER_COLLECTIONS = {"manager": MANAGERS, "landlord": LANDLORDS}


def split_values(raw) -> List[str]:
    """Accept a list or a comma separated string"""
    if raw is None:
        return []
    items = raw if isinstance(raw, list) else str(raw).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def parse_flag(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() == "true"


def _active(raw) -> bool:
    return raw is not None and str(raw).strip() not in ("", "any")


def build_filters(args: Dict) -> List[Condition]:
    """Translate listing query parameters into store conditions"""
    conditions = []

    favorite_ids = [int(value) for value in (to_number(item) for item in split_values(args.get("favoriteIds")))
                    if value is not None and float(value).is_integer()]
    if favorite_ids:
        conditions.append(Condition("id", "in", favorite_ids))

    ranges = (
        ("priceMin", "pricePerMonth", ">="),
        ("priceMax", "pricePerMonth", "<="),
        ("beds", "beds", ">="),
        ("baths", "baths", ">="),
        ("squareFeetMin", "squareFeet", ">="),
        ("squareFeetMax", "squareFeet", "<="),
    )
    for param, field, op in ranges:
        if not _active(args.get(param)):
            continue
        value = to_number(args.get(param))
        if value is not None:
            conditions.append(Condition(field, op, value))

    if _active(args.get("propertyType")):
        conditions.append(where("propertyType", str(args["propertyType"]).strip()))

    if _active(args.get("amenities")):
        amenities = split_values(args["amenities"])
        if amenities:
            conditions.append(Condition("amenities", "contains", amenities))

    return conditions


def non_negative_numbers(body: Dict, names, errors: Dict) -> Dict:
    """Collect the given numeric fields, recording a message in ``errors`` for bad ones"""
    values = {}
    for name in names:
        if body.get(name) in (None, ""):
            continue
        value = to_number(body[name])
        if value is None or value < 0:
            errors[name] = "Must be a non-negative number"
        else:
            values[name] = value
    return values


def resolve_coordinates(body: Dict, geocoder=None) -> Optional[str]:
    """Explicit longitude/latitude win; otherwise geocode the address"""
    longitude, latitude = to_number(body.get("longitude")), to_number(body.get("latitude"))
    if longitude is not None and latitude is not None:
        return format_wkt_point(longitude, latitude)

    if geocoder is None:
        return None
    point = geocoder.geocode(body["address"], body["city"], body["country"], body["postalCode"])
    return format_wkt_point(*point) if point else None


def insert_location(store, geocoder, body: Dict) -> Dict:
    return store.insert(LOCATIONS, {
        **{name: str(body[name]).strip() for name in LOCATION_REQUIRED},
        "coordinates": resolve_coordinates(body, geocoder),
    })


class PropertyService:
    """Property reads and writes"""

    def __init__(self, store, resolver, geocoder=None):
        self.store = store
        self.resolver = resolver
        self.geocoder = geocoder

    def list(self, args: Dict) -> List[Dict]:
        conditions = build_filters(args)
        properties = self.store.find(PROPERTIES, conditions)
        logger.info("Properties listed", filters=len(conditions), count=len(properties))
        return self.resolver.enrich_properties(properties)

    def _require(self, raw_id) -> Dict:
        property_id = parse_numeric_id(raw_id, "propertyId")
        property_doc = self.store.find_by_id(PROPERTIES, property_id)
        if property_doc is None:
            raise NotFound(f"Property {property_id} not found")
        return property_doc

    def get(self, raw_id) -> Dict:
        return self.resolver.attach_location(self._require(raw_id))

    def leases_for(self, raw_id) -> List[Dict]:
        """Leases of one property; a missing property never reaches the lease lookup"""
        property_doc = self._require(raw_id)
        leases = self.store.find(LEASES, [where("propertyId", property_doc["id"])])
        return self.resolver.enrich_leases(leases)

    def owned_by(self, role: str, cognito_id: str) -> List[Dict]:
        collection = OWNER_COLLECTIONS[role]
        if not self.store.exists(collection, [where("cognitoId", cognito_id)]):
            raise NotFound(f"{role.capitalize()} {cognito_id} not found")

        properties = self.store.find(PROPERTIES, [where("managerCognitoId", cognito_id)])
        return self.resolver.enrich_properties(properties)

    def _property_fields(self, body: Dict) -> Dict:
        errors = {}
        document = {name: str(body[name]).strip() for name in TEXT_FIELDS if body.get(name) is not None}
        document.update(non_negative_numbers(body, NUMERIC_FIELDS, errors))

        property_type = body.get("propertyType")
        if property_type not in enum_values(PropertyType):
            errors["propertyType"] = f"Must be one of: {', '.join(enum_values(PropertyType))}"
        else:
            document["propertyType"] = property_type

        for name, enum_cls in (("amenities", Amenity), ("highlights", Highlight)):
            values = split_values(body.get(name))
            unknown = [value for value in values if value not in enum_values(enum_cls)]
            if unknown:
                errors[name] = f"Unknown values: {', '.join(unknown)}"
            document[name] = values

        if errors:
            raise InvalidInput("Invalid property data", errors=errors)

        document["photoUrls"] = split_values(body.get("photoUrls"))
        document["isPetsAllowed"] = parse_flag(body.get("isPetsAllowed", False))
        document["isParkingIncluded"] = parse_flag(body.get("isParkingIncluded", False))
        return document

    def create(self, body: Dict) -> Dict:
        require_fields(body, LOCATION_REQUIRED + ("managerCognitoId",))
        require_fields(body, PROPERTY_REQUIRED)
        property_fields = self._property_fields(body)

        manager_id = body["managerCognitoId"]
        if not any(self.store.exists(collection, [where("cognitoId", manager_id)])
                   for collection in OWNER_COLLECTIONS.values()):
            raise NotFound(f"Manager {manager_id} not found")

        location = insert_location(self.store, self.geocoder, body)

        property_doc = self.store.insert(PROPERTIES, {
            **property_fields,
            "postedDate": isoformat(utcnow()),
            "averageRating": 0,
            "numberOfReviews": 0,
            "locationId": location["id"],
            "managerCognitoId": manager_id,
            "tenants": [],
        })

        logger.info("Property created", property_id=property_doc["id"],
                    location_id=location["id"], manager=manager_id)
        return {**property_doc, "location": location_view(location)}
