# src/services/users/app.py
"""
FastAPI приложение для User Service.
"""

from src.config import settings
from src.services.users.consumers import build_dispatcher
from src.services.users.dependencies import close_dependencies, get_profile_service, init_dependencies
from src.services.users.routes import router
from src.shared.service_app import create_service_app

app = create_service_app(
    title=settings.system.SERVICE_IDENTITY,
    description=settings.system.SERVICE_DESCRIPTION or "Профили клиентов и KYC-верификация",
    routers=[router],
    dispatcher=build_dispatcher(get_profile_service),
    on_startup=init_dependencies,
    on_shutdown=close_dependencies,
)
