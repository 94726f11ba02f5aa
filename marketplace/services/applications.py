"""Rental applications and their approval workflow"""

from typing import Dict, List, Optional

import structlog

from marketplace.database.documents import (
    APPLICATIONS, LANDLORDS, LEASES, MANAGERS, PROPERTIES, TENANTS, Condition, where,
)
from marketplace.models.enums import ApplicationStatus, enum_values
from marketplace.utils.exceptions import InvalidInput, NotFound
from marketplace.utils.validation import isoformat, parse_numeric_id, require_fields, utcnow

logger = structlog.get_logger(__name__)

APPLICATION_REQUIRED = ("propertyId", "tenantCognitoId", "name", "email", "phoneNumber")
PROFILE_HIDDEN = ("_id", "id", "createdAt", "updatedAt", "favorites", "properties")
OWNER_HIDDEN = ("_id", "id", "createdAt", "updatedAt")


def _without(document: Optional[Dict], hidden) -> Optional[Dict]:
    if document is None:
        return None
    return {key: value for key, value in document.items() if key not in hidden}


def _check_status(raw) -> str:
    if raw not in enum_values(ApplicationStatus):
        raise InvalidInput(f"Invalid status: {raw!r}",
                           errors={"status": f"Must be one of: {', '.join(enum_values(ApplicationStatus))}"})
    return raw


class ApplicationService:
    """Application reads, submissions and status changes"""

    def __init__(self, store, resolver, leases):
        self.store = store
        self.resolver = resolver
        self.leases = leases

    def _find_owner(self, cognito_id) -> Optional[Dict]:
        if not cognito_id:
            return None
        for collection in (MANAGERS, LANDLORDS):
            owner = self.store.find_one(collection, [where("cognitoId", cognito_id)])
            if owner is not None:
                return owner
        return None

    def _find_lease(self, application: Dict) -> Optional[Dict]:
        if application.get("leaseId") is not None:
            return self.store.find_by_id(LEASES, application["leaseId"])
        if application.get("tenantCognitoId") and application.get("propertyId") is not None:
            # Latest lease of this tenant on this property
            leases = self.store.find(LEASES, [
                where("tenantCognitoId", application["tenantCognitoId"]),
                where("propertyId", application["propertyId"]),
            ])
            return max(leases, key=lambda lease: lease.get("startDate") or "") if leases else None
        return None

    def present(self, application: Dict) -> Dict:
        property_doc = manager = None
        raw_property = self.store.find_by_id(PROPERTIES, application.get("propertyId"))
        if raw_property is not None:
            property_doc = self.resolver.attach_location(raw_property)
            location = property_doc["location"]
            property_doc["address"] = location["address"] if location else None
            manager = _without(self._find_owner(raw_property.get("managerCognitoId")), OWNER_HIDDEN)

        tenant = None
        if application.get("tenantCognitoId"):
            tenant = self.store.find_one(TENANTS, [where("cognitoId", application["tenantCognitoId"])])

        return {
            **application,
            "property": property_doc,
            "tenant": _without(tenant, PROFILE_HIDDEN),
            "manager": manager,
            "lease": self.leases.with_next_payment(self._find_lease(application)),
        }

    def list(self, user_id: str = None, user_type: str = None) -> List[Dict]:
        conditions = []
        if user_id and user_type:
            if user_type == "tenant":
                conditions.append(where("tenantCognitoId", user_id))
            elif user_type in ("manager", "landlord"):
                owned = self.store.find(PROPERTIES, [where("managerCognitoId", user_id)])
                if not owned:
                    return []
                conditions.append(Condition("propertyId", "in", [p["id"] for p in owned]))
            else:
                raise InvalidInput(f"Invalid userType: {user_type!r}",
                                   errors={"userType": "Must be tenant, manager or landlord"})

        applications = self.store.find(APPLICATIONS, conditions)
        return self.resolver.map_records(self.present, applications)

    def _approve(self, application: Dict, property_doc: Dict) -> Optional[int]:
        """Create the lease for an approved application and seat the tenant"""
        lease = self.leases.create_lease(property_doc, application["tenantCognitoId"])
        self.store.add_to_set(PROPERTIES, [where("id", property_doc["id"])],
                              "tenants", application["tenantCognitoId"])
        return lease["id"]

    def create(self, body: Dict) -> Dict:
        require_fields(body, APPLICATION_REQUIRED)
        status = _check_status(body.get("status") or ApplicationStatus.PENDING.value)
        property_id = parse_numeric_id(body["propertyId"], "propertyId")

        property_doc = self.store.find_by_id(PROPERTIES, property_id)
        if property_doc is None:
            raise NotFound(f"Property {property_id} not found")

        tenant_id = body["tenantCognitoId"]
        if not self.store.exists(TENANTS, [where("cognitoId", tenant_id)]):
            raise NotFound(f"Tenant {tenant_id} not found")

        application = {
            "applicationDate": isoformat(utcnow()),
            "status": status,
            "propertyId": property_id,
            "tenantCognitoId": tenant_id,
            "name": body["name"],
            "email": body["email"],
            "phoneNumber": body["phoneNumber"],
            "message": body.get("message"),
            "leaseId": None,
        }
        created = self.store.insert(APPLICATIONS, application)
        if status == ApplicationStatus.APPROVED.value:
            lease_id = self._approve(created, property_doc)
            created = self.store.update_one(APPLICATIONS, [where("id", created["id"])], {"leaseId": lease_id})

        logger.info("Application submitted", application_id=created["id"],
                    property_id=property_id, tenant=tenant_id, status=status)
        return self.present(created)

    def update_status(self, raw_id, body: Dict) -> Dict:
        application_id = parse_numeric_id(raw_id, "applicationId")
        if not isinstance(body, dict) or not body.get("status"):
            raise InvalidInput("Status is required", errors={"status": "This field is required"})
        status = _check_status(body["status"])

        application = self.store.find_by_id(APPLICATIONS, application_id)
        if application is None:
            raise NotFound(f"Application {application_id} not found")

        property_doc = self.store.find_by_id(PROPERTIES, application.get("propertyId"))
        if property_doc is None:
            raise NotFound(f"Property {application.get('propertyId')} not found")

        changes = {"status": status}
        if status == ApplicationStatus.APPROVED.value and application.get("leaseId") is None:
            changes["leaseId"] = self._approve(application, property_doc)

        updated = self.store.update_one(APPLICATIONS, [where("id", application_id)], changes)
        logger.info("Application status changed", application_id=application_id,
                    previous=application.get("status"), status=status)
        return self.present(updated)
