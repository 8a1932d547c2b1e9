from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import cast

from sessionmanager.config import Config
from sessionmanager.core.storage import Storage, create_storage


class Service:
    """Base class for services with direct storage access."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from sessionmanager.core.modules.access.service import AccessService  # noqa: PLC0415
    from sessionmanager.core.modules.auth.service import AuthService  # noqa: PLC0415
    from sessionmanager.core.modules.login_session.service import LoginSessionService  # noqa: PLC0415
    from sessionmanager.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    login_session: LoginSessionService
    auth: AuthService
    access: AccessService

    def __init__(self, storage: Storage) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._storage = storage

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - user must be first
        service_configs = [
            ("user", "sessionmanager.core.modules.user.service", "UserService"),
            ("login_session", "sessionmanager.core.modules.login_session.service", "LoginSessionService"),
            ("auth", "sessionmanager.core.modules.auth.service", "AuthService"),
            ("access", "sessionmanager.core.modules.access.service", "AccessService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(storage)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, storage, and all service instances."""

    config: Config
    storage: Storage
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, storage backend, and auto-register services."""
        self.config = config
        self.storage = create_storage(config.database_url)
        self.services = Services(self.storage)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the storage backend on shutdown."""
        await self.services.stop_all()
        await self.storage.close()
