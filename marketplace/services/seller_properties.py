"""Homes listed for sale by their owners"""

from typing import Dict, List

import structlog

from marketplace.database.documents import SELLER_PROPERTIES, Condition, where
from marketplace.services.properties import (
    LOCATION_REQUIRED, insert_location, non_negative_numbers, parse_flag, split_values,
)
from marketplace.services.resolver import location_view
from marketplace.utils.exceptions import InvalidInput, NotFound
from marketplace.utils.validation import isoformat, parse_numeric_id, require_fields, to_number, utcnow

logger = structlog.get_logger(__name__)

DEFAULT_STATUS = "For Sale"

LISTING_REQUIRED = ("name", "description", "salePrice", "propertyType", "beds", "baths", "squareFeet",
                    "sellerCognitoId")
NUMERIC_FIELDS = ("salePrice", "beds", "baths", "squareFeet", "yearBuilt", "HOAFees")
TEXT_FIELDS = ("name", "description", "propertyType", "propertyStatus", "sellerNotes",
               "preferredFinancingInfo", "insuranceRecommendation", "agreementDocumentUrl")
LIST_FIELDS = ("amenities", "highlights", "openHouseDates", "photoUrls")


def build_sale_filters(args: Dict) -> List[Condition]:
    conditions = []
    for param in ("sellerCognitoId", "propertyType", "propertyStatus"):
        value = str(args.get(param) or "").strip()
        if value and value != "any":
            conditions.append(where(param, value))

    for param, field, op in (("salePriceMin", "salePrice", ">="),
                             ("salePriceMax", "salePrice", "<="),
                             ("beds", "beds", ">=")):
        value = to_number(args.get(param))
        if value is not None:
            conditions.append(Condition(field, op, value))
    return conditions


class SellerPropertyService:
    """For-sale listings; each owns a Location like rental properties do"""

    def __init__(self, store, resolver, geocoder=None):
        self.store = store
        self.resolver = resolver
        self.geocoder = geocoder

    def list(self, args: Dict) -> List[Dict]:
        conditions = build_sale_filters(args)
        listings = self.store.find(SELLER_PROPERTIES, conditions)
        logger.info("Seller properties listed", filters=len(conditions), count=len(listings))
        return self.resolver.enrich_properties(listings)

    def get(self, raw_id) -> Dict:
        listing_id = parse_numeric_id(raw_id, "id")
        listing = self.store.find_by_id(SELLER_PROPERTIES, listing_id)
        if listing is None:
            raise NotFound(f"Seller property {listing_id} not found")
        return self.resolver.attach_location(listing)

    def _listing_fields(self, body: Dict) -> Dict:
        errors = {}
        document = {name: str(body[name]).strip() for name in TEXT_FIELDS if body.get(name) is not None}
        document.update(non_negative_numbers(body, NUMERIC_FIELDS, errors))
        if errors:
            raise InvalidInput("Invalid seller property data", errors=errors)

        for name in LIST_FIELDS:
            document[name] = split_values(body.get(name))
        document.setdefault("propertyStatus", DEFAULT_STATUS)
        document["allowBuyerApplications"] = parse_flag(body.get("allowBuyerApplications", True))
        return document

    def create(self, body: Dict) -> Dict:
        require_fields(body, LOCATION_REQUIRED + LISTING_REQUIRED)
        fields = self._listing_fields(body)

        location = insert_location(self.store, self.geocoder, body)
        listing = self.store.insert(SELLER_PROPERTIES, {
            **fields,
            "sellerCognitoId": str(body["sellerCognitoId"]).strip(),
            "locationId": location["id"],
            "buyerInquiries": [],
            "postedDate": isoformat(utcnow()),
        })

        logger.info("Seller property listed", listing_id=listing["id"],
                    location_id=location["id"], seller=listing["sellerCognitoId"])
        return {**listing, "location": location_view(location)}
