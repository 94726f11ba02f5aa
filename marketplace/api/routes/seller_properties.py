"""For-sale listing endpoints"""

from flask import request
from flask_restx import Namespace, Resource, fields

from marketplace.api.routes import json_body, services

seller_properties_ns = Namespace("seller-properties", description="Homes listed for sale")

seller_property_model = seller_properties_ns.model("SellerPropertyCreate", {
    "sellerCognitoId": fields.String(required=True),
    "address": fields.String(required=True),
    "city": fields.String(required=True),
    "state": fields.String(required=True),
    "country": fields.String(required=True),
    "postalCode": fields.String(required=True),
    "name": fields.String(required=True),
    "description": fields.String(required=True),
    "salePrice": fields.Float(required=True),
    "propertyType": fields.String(required=True),
    "propertyStatus": fields.String(default="For Sale"),
    "beds": fields.Integer(required=True),
    "baths": fields.Float(required=True),
    "squareFeet": fields.Integer(required=True),
    "yearBuilt": fields.Integer,
    "HOAFees": fields.Float,
    "amenities": fields.List(fields.String),
    "highlights": fields.List(fields.String),
    "openHouseDates": fields.List(fields.String),
    "photoUrls": fields.List(fields.String, description="Already uploaded photo URLs"),
    "agreementDocumentUrl": fields.String,
    "sellerNotes": fields.String,
    "allowBuyerApplications": fields.Boolean(default=True),
    "preferredFinancingInfo": fields.String,
    "insuranceRecommendation": fields.String,
    "longitude": fields.Float,
    "latitude": fields.Float,
})

sale_parser = seller_properties_ns.parser()
sale_parser.add_argument("sellerCognitoId", type=str, location="args")
sale_parser.add_argument("propertyType", type=str, location="args")
sale_parser.add_argument("propertyStatus", type=str, location="args")
sale_parser.add_argument("salePriceMin", type=str, location="args")
sale_parser.add_argument("salePriceMax", type=str, location="args")
sale_parser.add_argument("beds", type=str, location="args", help="Minimum beds")


@seller_properties_ns.route("")
class SellerPropertyList(Resource):
    @seller_properties_ns.doc("list_seller_properties")
    @seller_properties_ns.expect(sale_parser)
    def get(self):
        """List homes for sale"""
        return services().seller_properties.list(request.args.to_dict())

    @seller_properties_ns.doc("create_seller_property")
    @seller_properties_ns.expect(seller_property_model)
    def post(self):
        """List a home for sale"""
        return services().seller_properties.create(json_body()), 201


@seller_properties_ns.route("/<string:listing_id>")
class SellerPropertyDetail(Resource):
    @seller_properties_ns.doc("get_seller_property")
    def get(self, listing_id):
        """Get a for-sale listing with its location"""
        return services().seller_properties.get(listing_id)
