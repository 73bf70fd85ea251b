"""
FastAPI routers grouped by domain (users, listings, contacts).

Each module exposes an APIRouter that is included in the main application
(app.py).
"""
