"""Buyer endpoints"""

from marketplace.api.routes.residents import build_resident_namespace

buyers_ns = build_resident_namespace("buyer", "buyers", "Buyer profiles, favorites and residences")
