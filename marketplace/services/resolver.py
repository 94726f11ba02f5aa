"""Attach related entities to primary records at read time"""

import concurrent.futures
from typing import Callable, Dict, Iterable, List, Optional

import structlog

from marketplace.database.documents import LOCATIONS, PROPERTIES, TENANTS, Condition, where
from marketplace.utils.geometry import parse_wkt_point

logger = structlog.get_logger(__name__)

LOCATION_FIELDS = ("id", "address", "city", "state", "country", "postalCode")


def location_view(location: Optional[Dict]) -> Optional[Dict]:
    """Public shape of a location with parsed coordinates"""
    if location is None:
        return None
    view = {name: location.get(name) for name in LOCATION_FIELDS}
    view["coordinates"] = parse_wkt_point(location.get("coordinates"))
    return view


class RelationshipResolver:
    """
    Expands foreign keys into the documents they reference.

    A missing relation attaches ``None``; the root record is always kept.
    Batches keep their input order and cardinality. Locations, properties
    and tenants of a batch are fetched with one lookup per collection, so
    the number of queries does not grow with the batch size. Per-record
    work that cannot be batched goes through ``map_records``, whose thread
    fan-out is capped by ``max_workers``.
    """

    def __init__(self, store, max_workers: int = 8):
        self.store = store
        self.max_workers = max_workers

    def map_records(self, func: Callable[[Dict], Dict], records: List[Dict]) -> List[Dict]:
        if len(records) <= 1 or self.max_workers <= 1:
            return [func(record) for record in records]

        workers = min(self.max_workers, len(records))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order
            return list(executor.map(func, records))

    def _by_id(self, collection: str, ids: Iterable) -> Dict[int, Dict]:
        return {doc["id"]: doc for doc in self.store.find_many_by_ids(collection, ids)}

    def find_location(self, location_id) -> Optional[Dict]:
        if location_id is None:
            return None
        return self.store.find_by_id(LOCATIONS, location_id)

    def _with_location(self, property_doc: Dict, location: Optional[Dict]) -> Dict:
        if location is None and property_doc.get("locationId") is not None:
            logger.warning("Property references a missing location",
                           property_id=property_doc.get("id"),
                           location_id=property_doc.get("locationId"))
        return {**property_doc, "location": location_view(location)}

    def attach_location(self, property_doc: Dict) -> Dict:
        return self._with_location(property_doc, self.find_location(property_doc.get("locationId")))

    def enrich_properties(self, properties: List[Dict]) -> List[Dict]:
        locations = self._by_id(LOCATIONS, [p.get("locationId") for p in properties])
        return [self._with_location(p, locations.get(p.get("locationId"))) for p in properties]

    def find_tenant(self, lease: Dict) -> Optional[Dict]:
        if lease.get("tenant") is not None:
            return self.store.find_one(TENANTS, [where("_id", str(lease["tenant"]))])
        if lease.get("tenantCognitoId"):
            return self.store.find_one(TENANTS, [where("cognitoId", lease["tenantCognitoId"])])
        return None

    def find_property(self, property_id) -> Optional[Dict]:
        if property_id is None:
            return None
        property_doc = self.store.find_by_id(PROPERTIES, property_id)
        return self.attach_location(property_doc) if property_doc else None

    def enrich_lease(self, lease: Dict) -> Dict:
        return {
            **lease,
            "tenant": self.find_tenant(lease),
            "property": self.find_property(lease.get("propertyId")),
        }

    def _tenants_for(self, leases: List[Dict]):
        """Tenants keyed by internal id and by cognitoId"""
        internal_ids = sorted({str(lease["tenant"]) for lease in leases if lease.get("tenant") is not None})
        cognito_ids = sorted({lease["tenantCognitoId"] for lease in leases
                              if lease.get("tenant") is None and lease.get("tenantCognitoId")})

        by_internal, by_cognito = {}, {}
        if internal_ids:
            by_internal = {t["_id"]: t for t in self.store.find(TENANTS, [Condition("_id", "in", internal_ids)])}
        if cognito_ids:
            by_cognito = {t["cognitoId"]: t for t in self.store.find(TENANTS, [Condition("cognitoId", "in", cognito_ids)])}
        return by_internal, by_cognito

    def enrich_leases(self, leases: List[Dict]) -> List[Dict]:
        if not leases:
            return []

        properties = self._by_id(PROPERTIES, [lease.get("propertyId") for lease in leases])
        enriched_properties = {p["id"]: p for p in self.enrich_properties(list(properties.values()))}
        by_internal, by_cognito = self._tenants_for(leases)

        results = []
        for lease in leases:
            if lease.get("tenant") is not None:
                tenant = by_internal.get(str(lease["tenant"]))
            else:
                tenant = by_cognito.get(lease.get("tenantCognitoId"))
            results.append({
                **lease,
                "tenant": tenant,
                "property": enriched_properties.get(lease.get("propertyId")),
            })
        return results
