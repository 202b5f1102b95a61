from abc import ABC
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """
    모든 리포지토리의 베이스 클래스

    조회용 메서드는 Pydantic 스키마를, 쓰기 경로에서 쓰는 메서드는 SQLAlchemy 모델을 반환한다.
    커밋은 하지 않는다. 트랜잭션 경계는 서비스 계층의 작업 단위가 결정한다.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, model_instances: List[Any]) -> List[SchemaType]:
        return [self.schema_class.model_validate(instance) for instance in model_instances]

    def add(self, instance: T) -> T:
        """세션에 추가 후 flush (ID 할당), 커밋하지 않음"""
        self.db.add(instance)
        self.db.flush()
        return instance
