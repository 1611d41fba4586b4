"""
FastAPI routers grouped by domain (accounts, company dashboard).

Each module exposes an APIRouter included by referral.app.create_app. Routers
fetch their services from app.state and only translate results to HTTP.
"""
