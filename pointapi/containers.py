from dependency_injector import containers, providers

from pointapi.config import Settings
from pointapi.core.locks import UserLockRegistry
from pointapi.services.expiration_service import ExpirationService
from pointapi.services.point_admin_search_service import PointAdminSearchService
from pointapi.services.point_search_service import PointSearchService
from pointapi.services.point_service import PointService
from pointapi.services.policy_manager import PointPolicyManager
from pointapi.services.policy_service import PointPolicyService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    Process-wide state (policy cache, per-user locks) is held in singletons.
    Services are factories that receive the request-scoped ``db`` session
    at call time (see ``pointapi.deps``).
    """

    config = providers.DependenciesContainer()

    policy_manager = providers.Singleton(PointPolicyManager, settings=config.config)
    lock_registry = providers.Singleton(UserLockRegistry)

    point_service = providers.Factory(
        PointService, policy_manager=policy_manager, lock_registry=lock_registry
    )
    policy_service = providers.Factory(PointPolicyService, policy_manager=policy_manager)
    expiration_service = providers.Factory(
        ExpirationService, lock_registry=lock_registry, settings=config.config
    )
    point_search_service = providers.Factory(PointSearchService, settings=config.config)
    point_admin_search_service = providers.Factory(PointAdminSearchService)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "pointapi.deps",
            "pointapi.routers.health_router",
        ],
    )

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
