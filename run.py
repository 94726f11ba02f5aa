#!/usr/bin/env python3
"""Run the marketplace Flask application"""

from marketplace.app import create_app
from marketplace.config.settings import settings

if __name__ == "__main__":
    # Validate settings
    try:
        settings.validate()
        print("✓ Settings validated")
        print(f"  - Storage: {settings.STORAGE_BACKEND}")
        print(f"  - Geocoding: {'Enabled' if settings.GEOCODING_ENABLED else 'Disabled'}")
        print(f"  - Token verification: {'shared secret' if settings.JWT_SECRET else 'JWKS'}")
    except ValueError as e:
        print(f"✗ Settings validation failed: {e}")
        raise SystemExit(1)

    app = create_app()

    print(f"\n🚀 Starting marketplace API on http://{settings.API_HOST}:{settings.API_PORT}")
    if settings.DEBUG:
        print(f"📚 API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs\n")

    app.run(
        host=settings.API_HOST,
        port=settings.API_PORT,
        debug=settings.DEBUG
    )
