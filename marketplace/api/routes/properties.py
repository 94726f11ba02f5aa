"""Property listing endpoints"""

from flask import request
from flask_restx import Namespace, Resource, fields

from marketplace.api.routes import json_body, services
from marketplace.models.enums import Amenity, Highlight, PropertyType, enum_values

properties_ns = Namespace("properties", description="Property listings")

property_create_model = properties_ns.model("PropertyCreate", {
    "address": fields.String(required=True),
    "city": fields.String(required=True),
    "state": fields.String(required=True),
    "country": fields.String(required=True),
    "postalCode": fields.String(required=True),
    "managerCognitoId": fields.String(required=True, description="Owning manager or landlord"),
    "name": fields.String(required=True),
    "description": fields.String,
    "pricePerMonth": fields.Float(required=True),
    "securityDeposit": fields.Float,
    "applicationFee": fields.Float,
    "beds": fields.Integer(required=True),
    "baths": fields.Float(required=True),
    "squareFeet": fields.Integer(required=True),
    "propertyType": fields.String(required=True, enum=enum_values(PropertyType)),
    "amenities": fields.List(fields.String(enum=enum_values(Amenity))),
    "highlights": fields.List(fields.String(enum=enum_values(Highlight))),
    "photoUrls": fields.List(fields.String),
    "isPetsAllowed": fields.Boolean(default=False),
    "isParkingIncluded": fields.Boolean(default=False),
    "longitude": fields.Float(description="Skip geocoding when given with latitude"),
    "latitude": fields.Float,
})

listing_parser = properties_ns.parser()
listing_parser.add_argument("favoriteIds", type=str, location="args", help="Comma separated property ids")
listing_parser.add_argument("priceMin", type=str, location="args")
listing_parser.add_argument("priceMax", type=str, location="args")
listing_parser.add_argument("beds", type=str, location="args", help="Minimum beds, or 'any'")
listing_parser.add_argument("baths", type=str, location="args", help="Minimum baths, or 'any'")
listing_parser.add_argument("propertyType", type=str, location="args")
listing_parser.add_argument("squareFeetMin", type=str, location="args")
listing_parser.add_argument("squareFeetMax", type=str, location="args")
listing_parser.add_argument("amenities", type=str, location="args", help="All of these amenities")


@properties_ns.route("")
class PropertyList(Resource):
    @properties_ns.doc("list_properties")
    @properties_ns.expect(listing_parser)
    def get(self):
        """List properties matching the filters"""
        return services().properties.list(request.args.to_dict())

    @properties_ns.doc("create_property")
    @properties_ns.expect(property_create_model)
    def post(self):
        """Create a property and its location"""
        return services().properties.create(json_body()), 201


@properties_ns.route("/<string:property_id>")
class PropertyDetail(Resource):
    @properties_ns.doc("get_property")
    def get(self, property_id):
        """Get a property with its location"""
        return services().properties.get(property_id)


@properties_ns.route("/<string:property_id>/leases")
class PropertyLeases(Resource):
    @properties_ns.doc("property_leases")
    def get(self, property_id):
        """List a property's leases"""
        return services().properties.leases_for(property_id)
