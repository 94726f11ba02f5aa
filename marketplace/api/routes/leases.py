"""Lease endpoints"""

from flask_restx import Namespace, Resource

from marketplace.api.routes import services

leases_ns = Namespace("leases", description="Lease records")


@leases_ns.route("")
class LeaseList(Resource):
    @leases_ns.doc("list_leases")
    def get(self):
        """List all leases with tenant and property"""
        return services().leases.list_all()
