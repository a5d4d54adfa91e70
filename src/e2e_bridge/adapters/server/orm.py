"""SQLAlchemy implementation of the model repository and factories.

Host models opt into two class attributes:
- `__hidden__`: column names never sent over the bridge (e.g. `password`).
- `__verification_email__`: attribute hashed into verification URLs
  (default `email`).
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Iterable, Mapping

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

FactoryDefinition = Callable[[int], Mapping[str, Any]]


class ModelRegistry:
    """Maps the model names a test sends (`User`, `app.models.User`) to classes."""

    def __init__(self, models: Iterable[type] = ()) -> None:
        self._models: dict[str, type] = {}
        for model in models:
            self.register(model)

    def register(self, model: type) -> type:
        self._models[model.__name__] = model
        self._models[f"{model.__module__}.{model.__qualname__}"] = model
        return model

    def resolve(self, name: str) -> type:
        key = name.replace("\\", ".")
        try:
            return self._models[key]
        except KeyError:
            raise LookupError(f"Model [{name}] is not registered with the bridge") from None

    def names(self) -> list[str]:
        return sorted({model.__name__ for model in self._models.values()})


class FactoryRegistry:
    """Per-model default attributes, the way host factories define them.

    A definition receives a sequence number (1, 2, ...) unique per model so
    defaults such as emails stay distinct across calls.
    """

    def __init__(self) -> None:
        self._definitions: dict[type, FactoryDefinition] = {}
        self._sequences: dict[type, itertools.count] = {}

    def define(self, model: type) -> Callable[[FactoryDefinition], FactoryDefinition]:
        def decorator(definition: FactoryDefinition) -> FactoryDefinition:
            self._definitions[model] = definition
            self._sequences[model] = itertools.count(1)
            return definition

        return decorator

    def build(self, model: type, attributes: Mapping[str, Any]) -> Any:
        definition = self._definitions.get(model)
        if definition is None:
            raise LookupError(f"No factory defined for model [{model.__name__}]")
        values = dict(definition(next(self._sequences[model])))
        values.update(attributes)
        return model(**values)


class SQLAlchemyModels:
    """`ModelRepository` + `ModelFactory` over a session factory."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        registry: ModelRegistry,
        factories: FactoryRegistry,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._factories = factories

    # Repository

    def first_where(self, model: str, attributes: Mapping[str, Any]) -> Any | None:
        cls = self._registry.resolve(model)
        with self._session_factory() as session:
            statement = select(cls).filter_by(**attributes).limit(1)
            instance = session.scalars(statement).first()
            if instance is not None:
                session.expunge(instance)
            return instance

    def first_where_or_fail(self, model: str, attributes: Mapping[str, Any]) -> Any:
        cls = self._registry.resolve(model)
        with self._session_factory() as session:
            statement = select(cls).filter_by(**attributes).limit(1)
            # NoResultFound propagates to the caller.
            instance = session.scalars(statement).one()
            session.expunge(instance)
            return instance

    def serialize(self, instance: Any) -> dict[str, Any]:
        mapper = inspect(type(instance))
        hidden = set(getattr(type(instance), "__hidden__", ()))
        return {
            attr.key: getattr(instance, attr.key)
            for attr in mapper.column_attrs
            if attr.key not in hidden
        }

    def is_record(self, value: Any) -> bool:
        return inspect(type(value), raiseerr=False) is not None and not isinstance(value, type)

    def primary_key(self, instance: Any) -> Any:
        identity = inspect(type(instance)).primary_key_from_instance(instance)
        return identity[0] if len(identity) == 1 else list(identity)

    def verification_email(self, instance: Any) -> str:
        attribute = getattr(type(instance), "__verification_email__", "email")
        return str(getattr(instance, attribute))

    # Factories

    def make(self, model: str, times: int, attributes: Mapping[str, Any]) -> list[Any]:
        cls = self._registry.resolve(model)
        return [self._factories.build(cls, attributes) for _ in range(times)]

    def create(self, model: str, times: int, attributes: Mapping[str, Any]) -> list[Any]:
        instances = self.make(model, times, attributes)
        with self._session_factory() as session:
            session.add_all(instances)
            session.commit()
            for instance in instances:
                session.refresh(instance)
                session.expunge(instance)
        logger.debug("Created %d %s instance(s)", len(instances), model)
        return instances
