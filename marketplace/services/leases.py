"""Lease listing, creation and active-residence queries"""

import calendar
from datetime import date, datetime
from typing import Dict, List, Optional

import structlog

from marketplace.database.documents import LEASES, PROPERTIES, Condition, where
from marketplace.services.accounts import ROLES
from marketplace.utils.exceptions import InvalidInput, NotFound
from marketplace.utils.validation import isoformat, parse_datetime, utcnow

logger = structlog.get_logger(__name__)

LEASE_TERM_YEARS = 1


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of short months"""
    month_index = start.month - 1 + months
    year, month = start.year + month_index // 12, month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(start: datetime, years: int) -> datetime:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 29 February in a non-leap year
        return start.replace(year=start.year + years, day=28)


def calculate_next_payment_date(start_date, today: Optional[date] = None) -> Optional[str]:
    """
    First monthly anniversary of the lease start that falls after today.

    A start date in the future is itself the next payment date. Returns an
    ISO date string, or None when the start date cannot be parsed.
    """
    try:
        start = parse_datetime(start_date, "startDate").date()
    except InvalidInput:
        return None

    today = today or utcnow().date()
    if start > today:
        return start.isoformat()

    months = (today.year - start.year) * 12 + (today.month - start.month)
    candidate = add_months(start, months)
    while candidate <= today:
        months += 1
        candidate = add_months(start, months)
    return candidate.isoformat()


class LeaseService:
    """Lease reads and writes"""

    def __init__(self, store, resolver):
        self.store = store
        self.resolver = resolver

    def list_all(self) -> List[Dict]:
        return self.resolver.enrich_leases(self.store.find(LEASES))

    def create_lease(self, property_doc: Dict, tenant_cognito_id: str,
                     start_date=None, end_date=None) -> Dict:
        start = parse_datetime(start_date, "startDate") if start_date else utcnow()
        end = parse_datetime(end_date, "endDate") if end_date else add_years(start, LEASE_TERM_YEARS)
        if end <= start:
            raise InvalidInput("Lease end date must be after its start date",
                               errors={"endDate": "Must be after startDate"})

        lease = self.store.insert(LEASES, {
            "startDate": isoformat(start),
            "endDate": isoformat(end),
            "rent": property_doc.get("pricePerMonth"),
            "deposit": property_doc.get("securityDeposit"),
            "propertyId": property_doc["id"],
            "tenantCognitoId": tenant_cognito_id,
        })
        logger.info("Lease created", lease_id=lease["id"], property_id=property_doc["id"],
                    tenant=tenant_cognito_id)
        return lease

    def current_residences(self, role: str, cognito_id: str, now: datetime = None) -> List[Dict]:
        """Properties where the user holds a lease active right now"""
        collection = ROLES[role].collection
        if not self.store.exists(collection, [where("cognitoId", cognito_id)]):
            raise NotFound(f"{role.capitalize()} {cognito_id} not found")

        now = now or utcnow()
        leases = self.store.find(LEASES, [
            where("tenantCognitoId", cognito_id),
            Condition("startDate", "<=", now),
            Condition("endDate", ">", now),
        ])

        property_ids = [lease.get("propertyId") for lease in leases]
        properties = self.store.find_many_by_ids(PROPERTIES, property_ids)
        logger.info("Current residences resolved", role=role, cognito_id=cognito_id,
                    active_leases=len(leases), properties=len(properties))
        return self.resolver.enrich_properties(properties)

    @staticmethod
    def with_next_payment(lease: Optional[Dict]) -> Optional[Dict]:
        if lease is None:
            return None
        return {**lease, "nextPaymentDate": calculate_next_payment_date(lease.get("startDate"))}
