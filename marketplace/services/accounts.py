"""Tenant, buyer, landlord and manager profiles"""

from collections import namedtuple
from typing import Dict

import structlog

from marketplace.database.documents import BUYERS, LANDLORDS, MANAGERS, TENANTS, where
from marketplace.services.favorites import FavoritesManager
from marketplace.utils.exceptions import InvalidInput, NotFound
from marketplace.utils.validation import pick_fields, require_fields

logger = structlog.get_logger(__name__)

RoleConfig = namedtuple("RoleConfig", ["collection", "required", "optional", "updatable", "has_favorites"])

_PROFILE = ("name", "email", "phoneNumber")
_LANDLORD_SETTINGS = ("companyName", "phone", "address", "description",
                      "businessLicense", "profileImage", "status")

ROLES = {
    "tenant": RoleConfig(TENANTS, ("cognitoId", "name", "email"), ("phoneNumber",), _PROFILE, True),
    "buyer": RoleConfig(BUYERS, ("cognitoId", "name", "email"), ("phoneNumber",), _PROFILE, True),
    "landlord": RoleConfig(LANDLORDS, ("cognitoId", "name", "email"),
                           ("phoneNumber",) + _LANDLORD_SETTINGS, _PROFILE + _LANDLORD_SETTINGS, False),
    "manager": RoleConfig(MANAGERS, ("cognitoId", "name", "email", "phoneNumber"), (), _PROFILE, False),
}


class AccountService:
    """Create, read and update the profile documents of one role"""

    def __init__(self, store, role: str):
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        self.store = store
        self.role = role
        self.config = ROLES[role]
        self.favorites = FavoritesManager(store, self.config.collection) if self.config.has_favorites else None

    def _present(self, user: Dict) -> Dict:
        return self.favorites.expand(user) if self.favorites else user

    def create(self, body: Dict) -> Dict:
        require_fields(body, self.config.required)

        document = pick_fields(body, self.config.required + self.config.optional)
        if self.config.has_favorites:
            document["favorites"] = []
            document["properties"] = []

        # The unique index settles concurrent creates; insert raises Conflict
        user = self.store.insert(self.config.collection, document)
        logger.info("Account created", role=self.role, cognito_id=user["cognitoId"], id=user["id"])
        return self._present(user)

    def get(self, cognito_id: str) -> Dict:
        user = self.store.find_one(self.config.collection, [where("cognitoId", cognito_id)])
        if user is None:
            raise NotFound(f"{self.role.capitalize()} {cognito_id} not found")
        return self._present(user)

    def update(self, cognito_id: str, body: Dict) -> Dict:
        if not isinstance(body, dict):
            raise InvalidInput("Request body must be a JSON object")

        changes = pick_fields(body, self.config.updatable)
        if not changes:
            raise InvalidInput("No valid fields to update",
                               errors={"body": f"Expected one of: {', '.join(self.config.updatable)}"})

        user = self.store.update_one(self.config.collection, [where("cognitoId", cognito_id)], changes)
        if user is None:
            raise NotFound(f"{self.role.capitalize()} {cognito_id} not found")

        logger.info("Account updated", role=self.role, cognito_id=cognito_id, fields=sorted(changes))
        return self._present(user)
