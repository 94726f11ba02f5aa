"""Rental application endpoints"""

from flask import request
from flask_restx import Namespace, Resource, fields

from marketplace.api.routes import json_body, services
from marketplace.models.enums import ApplicationStatus, enum_values

applications_ns = Namespace("applications", description="Rental applications")

application_create_model = applications_ns.model("ApplicationCreate", {
    "propertyId": fields.Integer(required=True),
    "tenantCognitoId": fields.String(required=True),
    "name": fields.String(required=True),
    "email": fields.String(required=True),
    "phoneNumber": fields.String(required=True),
    "message": fields.String,
    "status": fields.String(enum=enum_values(ApplicationStatus), default=ApplicationStatus.PENDING.value),
})

status_update_model = applications_ns.model("ApplicationStatusUpdate", {
    "status": fields.String(required=True, enum=enum_values(ApplicationStatus)),
})

application_parser = applications_ns.parser()
application_parser.add_argument("userId", type=str, location="args", help="Identity of the user")
application_parser.add_argument("userType", type=str, location="args", help="tenant, manager or landlord")


@applications_ns.route("")
class ApplicationList(Resource):
    @applications_ns.doc("list_applications")
    @applications_ns.expect(application_parser)
    def get(self):
        """List applications for a tenant or for a manager's properties"""
        return services().applications.list(request.args.get("userId"), request.args.get("userType"))

    @applications_ns.doc("create_application")
    @applications_ns.expect(application_create_model)
    def post(self):
        """Submit an application"""
        return services().applications.create(json_body()), 201


@applications_ns.route("/<string:application_id>/status")
class ApplicationStatusUpdate(Resource):
    @applications_ns.doc("update_application_status")
    @applications_ns.expect(status_update_model)
    def put(self, application_id):
        """Change an application's status; approval creates the lease"""
        return services().applications.update_status(application_id, json_body())
