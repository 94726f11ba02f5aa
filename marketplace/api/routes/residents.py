"""Shared endpoints of the roles that browse and rent: tenants and buyers"""

from flask_restx import Namespace, Resource, fields
import structlog

from marketplace.api.routes import json_body, services

logger = structlog.get_logger(__name__)


def build_resident_namespace(role: str, name: str, description: str) -> Namespace:
    """Namespace with profile, favorites and current-residence endpoints for ``role``"""
    ns = Namespace(name, description=description)

    create_model = ns.model(f"{role.capitalize()}Create", {
        "cognitoId": fields.String(required=True, description="Identity provider user id"),
        "name": fields.String(required=True),
        "email": fields.String(required=True),
        "phoneNumber": fields.String(description="Contact number"),
    })

    update_model = ns.model(f"{role.capitalize()}Update", {
        "name": fields.String,
        "email": fields.String,
        "phoneNumber": fields.String,
    })

    @ns.route("")
    class ResidentList(Resource):
        @ns.doc(f"create_{role}")
        @ns.expect(create_model)
        def post(self):
            """Create a profile"""
            return services().accounts[role].create(json_body()), 201

    @ns.route("/<string:cognito_id>")
    class ResidentProfile(Resource):
        @ns.doc(f"get_{role}")
        def get(self, cognito_id):
            """Get a profile with favorites expanded"""
            return services().accounts[role].get(cognito_id)

        @ns.doc(f"update_{role}")
        @ns.expect(update_model)
        def put(self, cognito_id):
            """Update profile fields"""
            return services().accounts[role].update(cognito_id, json_body())

    @ns.route("/<string:cognito_id>/favorites/<string:property_id>")
    class ResidentFavorite(Resource):
        @ns.doc(f"add_{role}_favorite")
        def post(self, cognito_id, property_id):
            """Add a property to favorites"""
            return services().favorites[role].add(cognito_id, property_id)

        @ns.doc(f"remove_{role}_favorite")
        def delete(self, cognito_id, property_id):
            """Remove a property from favorites"""
            return services().favorites[role].remove(cognito_id, property_id)

    @ns.route("/<string:cognito_id>/current-residences")
    class CurrentResidences(Resource):
        @ns.doc(f"{role}_current_residences")
        def get(self, cognito_id):
            """Properties under a lease that is active now"""
            return services().leases.current_residences(role, cognito_id)

    return ns
