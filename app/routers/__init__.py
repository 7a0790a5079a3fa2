from app.routers import api, dashboard, lookup

__all__ = [
    "api",
    "dashboard",
    "lookup",
]
