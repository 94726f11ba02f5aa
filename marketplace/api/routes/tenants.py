"""Tenant endpoints"""

from marketplace.api.routes.residents import build_resident_namespace

tenants_ns = build_resident_namespace("tenant", "tenants", "Tenant profiles, favorites and residences")
