"""Wires the store into the services the routes use"""

from marketplace.services.accounts import ROLES, AccountService
from marketplace.services.applications import ApplicationService
from marketplace.services.favorites import FavoritesManager
from marketplace.services.leases import LeaseService
from marketplace.services.properties import PropertyService
from marketplace.services.resolver import RelationshipResolver
from marketplace.services.seller_properties import SellerPropertyService


class ServiceContainer:
    """One instance per application, shared by every request"""

    def __init__(self, store, settings, geocoder=None):
        self.store = store
        self.resolver = RelationshipResolver(store, max_workers=settings.RESOLVER_MAX_WORKERS)

        self.geocoder = geocoder

        self.accounts = {role: AccountService(store, role) for role in ROLES}
        self.favorites = {role: FavoritesManager(store, ROLES[role].collection)
                          for role in ROLES if ROLES[role].has_favorites}
        self.properties = PropertyService(store, self.resolver, geocoder)
        self.leases = LeaseService(store, self.resolver)
        self.applications = ApplicationService(store, self.resolver, self.leases)
        self.seller_properties = SellerPropertyService(store, self.resolver, geocoder)

    def close(self):
        if self.geocoder is not None:
            self.geocoder.close()
        self.store.close()
