"""
Route modules. Import and include in main app.
"""

from api.routes.health import router as health_router
from api.routes.staff import router as staff_router
from api.routes.users import router as users_router

__all__ = ["health_router", "staff_router", "users_router"]
