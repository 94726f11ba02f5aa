"""Landlord profile and property endpoints"""

from flask import g
from flask_restx import Namespace, Resource, fields
import structlog

from marketplace.api.routes import json_body, services
from marketplace.utils.auth import require_auth
from marketplace.utils.exceptions import AuthorizationError

logger = structlog.get_logger(__name__)

landlords_ns = Namespace("landlords", description="Landlord profiles and their listings")

landlord_create_model = landlords_ns.model("LandlordCreate", {
    "cognitoId": fields.String(required=True, description="Identity provider user id"),
    "name": fields.String(required=True),
    "email": fields.String(required=True),
    "phoneNumber": fields.String,
})

landlord_settings_model = landlords_ns.model("LandlordSettings", {
    "name": fields.String,
    "email": fields.String,
    "phoneNumber": fields.String,
    "companyName": fields.String,
    "phone": fields.String,
    "address": fields.String,
    "description": fields.String,
    "businessLicense": fields.String,
    "profileImage": fields.String(description="Profile image URL"),
    "status": fields.String,
})


@landlords_ns.route("")
class LandlordList(Resource):
    @landlords_ns.doc("create_landlord")
    @landlords_ns.expect(landlord_create_model)
    def post(self):
        """Create a landlord profile"""
        return services().accounts["landlord"].create(json_body()), 201


@landlords_ns.route("/<string:cognito_id>")
class LandlordProfile(Resource):
    @landlords_ns.doc("get_landlord")
    def get(self, cognito_id):
        """Get a landlord profile"""
        return services().accounts["landlord"].get(cognito_id)

    @landlords_ns.doc("update_landlord")
    @landlords_ns.expect(landlord_settings_model)
    def put(self, cognito_id):
        """Update landlord profile settings"""
        return services().accounts["landlord"].update(cognito_id, json_body())


@landlords_ns.route("/<string:cognito_id>/properties")
class LandlordProperties(Resource):
    @landlords_ns.doc("landlord_properties", security="Bearer")
    @require_auth("landlord")
    def get(self, cognito_id):
        """List the authenticated landlord's own properties"""
        if g.current_user["id"] != cognito_id:
            logger.info("Landlord property access denied", caller=g.current_user["id"], target=cognito_id)
            raise AuthorizationError("Landlords can only list their own properties")
        return services().properties.owned_by("landlord", cognito_id)
