"""Favorite property management for tenants and buyers"""

from typing import Dict

import structlog

from marketplace.database.documents import PROPERTIES, where
from marketplace.utils.exceptions import NotFound
from marketplace.utils.validation import parse_numeric_id

logger = structlog.get_logger(__name__)


class FavoritesManager:
    """Add and remove favorite property ids on a user collection"""

    def __init__(self, store, collection: str):
        self.store = store
        self.collection = collection

    def expand(self, user: Dict) -> Dict:
        """Replace favorite ids with the property documents that still exist"""
        favorites = self.store.find_many_by_ids(PROPERTIES, user.get("favorites") or [])
        return {**user, "favorites": favorites}

    def _check(self, cognito_id: str, raw_property_id):
        # Parse first: a bad id must not cost a lookup
        property_id = parse_numeric_id(raw_property_id, "propertyId")

        user = self.store.find_one(self.collection, [where("cognitoId", cognito_id)])
        if user is None:
            raise NotFound(f"User {cognito_id} not found")

        if not self.store.exists(PROPERTIES, [where("id", property_id)]):
            raise NotFound(f"Property {property_id} not found")

        return property_id

    def add(self, cognito_id: str, raw_property_id) -> Dict:
        property_id = self._check(cognito_id, raw_property_id)
        user, changed = self.store.add_to_set(
            self.collection, [where("cognitoId", cognito_id)], "favorites", property_id)
        if user is None:
            raise NotFound(f"User {cognito_id} not found")

        logger.info("Favorite added", collection=self.collection, cognito_id=cognito_id,
                    property_id=property_id, changed=changed)
        return self.expand(user)

    def remove(self, cognito_id: str, raw_property_id) -> Dict:
        property_id = self._check(cognito_id, raw_property_id)
        user, changed = self.store.pull(
            self.collection, [where("cognitoId", cognito_id)], "favorites", property_id)
        if user is None:
            raise NotFound(f"User {cognito_id} not found")

        logger.info("Favorite removed", collection=self.collection, cognito_id=cognito_id,
                    property_id=property_id, changed=changed)
        return self.expand(user)
