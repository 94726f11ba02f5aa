"""Property manager endpoints"""

from flask_restx import Namespace, Resource, fields

from marketplace.api.routes import json_body, services

managers_ns = Namespace("managers", description="Property manager profiles and listings")

manager_create_model = managers_ns.model("ManagerCreate", {
    "cognitoId": fields.String(required=True, description="Identity provider user id"),
    "name": fields.String(required=True),
    "email": fields.String(required=True),
    "phoneNumber": fields.String(required=True),
})

manager_update_model = managers_ns.model("ManagerUpdate", {
    "name": fields.String,
    "email": fields.String,
    "phoneNumber": fields.String,
})


@managers_ns.route("")
class ManagerList(Resource):
    @managers_ns.doc("create_manager")
    @managers_ns.expect(manager_create_model)
    def post(self):
        """Create a manager profile"""
        return services().accounts["manager"].create(json_body()), 201


@managers_ns.route("/<string:cognito_id>")
class ManagerProfile(Resource):
    @managers_ns.doc("get_manager")
    def get(self, cognito_id):
        """Get a manager profile"""
        return services().accounts["manager"].get(cognito_id)

    @managers_ns.doc("update_manager")
    @managers_ns.expect(manager_update_model)
    def put(self, cognito_id):
        """Update a manager profile"""
        return services().accounts["manager"].update(cognito_id, json_body())


@managers_ns.route("/<string:cognito_id>/properties")
class ManagerProperties(Resource):
    @managers_ns.doc("manager_properties")
    def get(self, cognito_id):
        """List properties managed by this manager"""
        return services().properties.owned_by("manager", cognito_id)
