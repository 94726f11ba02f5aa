"""API Routes Registration"""

from flask import current_app, request
from flask_restx import Api


def services():
    """Service container of the running application"""
    return current_app.services


def json_body():
    """Parsed JSON body, or None when missing or malformed"""
    return request.get_json(silent=True)


def register_routes(api: Api) -> None:
    """Register all API routes"""

    # Import namespaces
    from marketplace.api.routes.tenants import tenants_ns
    from marketplace.api.routes.buyers import buyers_ns
    from marketplace.api.routes.landlords import landlords_ns
    from marketplace.api.routes.managers import managers_ns
    from marketplace.api.routes.properties import properties_ns
    from marketplace.api.routes.leases import leases_ns
    from marketplace.api.routes.applications import applications_ns
    from marketplace.api.routes.seller_properties import seller_properties_ns

    # Register namespaces
    api.add_namespace(tenants_ns, path="/tenants")
    api.add_namespace(buyers_ns, path="/buyers")
    api.add_namespace(landlords_ns, path="/landlords")
    api.add_namespace(managers_ns, path="/managers")
    api.add_namespace(properties_ns, path="/properties")
    api.add_namespace(leases_ns, path="/leases")
    api.add_namespace(applications_ns, path="/applications")
    api.add_namespace(seller_properties_ns, path="/seller-properties")
