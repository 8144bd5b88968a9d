import operator
import typing

from sqlalchemy.orm import Session

from entity_denormalizer.registry import EntityRegistry
from entity_denormalizer.storages.sqlalchemy import SqlAlchemyStore


def register_models(
    registry: EntityRegistry,
    base: typing.Any,
    session: Session,
    factories: typing.Optional[typing.Mapping[type, typing.Callable[[], typing.Any]]] = None,
) -> SqlAlchemyStore:
    """Registers every class mapped on a declarative ``base`` as managed by one store over ``session``."""
    factories = factories or {}
    store = SqlAlchemyStore(session)
    mappers = sorted(base.registry.mappers, key=lambda mapper: mapper.class_.__name__)
    for entity_cls in map(operator.attrgetter("class_"), mappers):
        registry.register(entity_cls, store, factory=factories.get(entity_cls))
    return store
