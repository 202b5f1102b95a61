from typing import Callable

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from pointapi.containers import Container
from pointapi.database.session import get_db

# Services
from pointapi.services.expiration_service import ExpirationService
from pointapi.services.point_admin_search_service import PointAdminSearchService
from pointapi.services.point_search_service import PointSearchService
from pointapi.services.point_service import PointService
from pointapi.services.policy_service import PointPolicyService


@inject
def get_point_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PointService] = Depends(
        Provide[Container.services.point_service.provider]
    ),
) -> PointService:
    return factory(db=db)


@inject
def get_policy_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PointPolicyService] = Depends(
        Provide[Container.services.policy_service.provider]
    ),
) -> PointPolicyService:
    return factory(db=db)


@inject
def get_expiration_service(
    db: Session = Depends(get_db),
    factory: Callable[..., ExpirationService] = Depends(
        Provide[Container.services.expiration_service.provider]
    ),
) -> ExpirationService:
    return factory(db=db)


@inject
def get_point_search_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PointSearchService] = Depends(
        Provide[Container.services.point_search_service.provider]
    ),
) -> PointSearchService:
    return factory(db=db)


@inject
def get_point_admin_search_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PointAdminSearchService] = Depends(
        Provide[Container.services.point_admin_search_service.provider]
    ),
) -> PointAdminSearchService:
    return factory(db=db)
