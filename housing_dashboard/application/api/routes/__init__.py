from housing_dashboard.application.api.routes.admin import router as admin_router
from housing_dashboard.application.api.routes.analytics import router as analytics_router
from housing_dashboard.application.api.routes.health import router as health_router
from housing_dashboard.application.api.routes.housing import router as housing_router
from housing_dashboard.application.api.routes.rental import router as rental_router

__all__ = [
    "admin_router",
    "analytics_router",
    "health_router",
    "housing_router",
    "rental_router",
]
