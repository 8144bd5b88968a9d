import logging
import typing

import attr
import inflection

from entity_denormalizer.errors import ConfigurationError
from entity_denormalizer.store import Store


logger = logging.getLogger(__name__)

EntityTypeOrName = typing.Union[type, str]


@attr.s(auto_attribs=True, frozen=True)
class RegisteredEntity:
    entity_cls: type
    store: Store
    name: str
    factory: typing.Optional[typing.Callable[[], typing.Any]] = None


@attr.s(auto_attribs=True)
class EntityRegistry:
    """Maps entity classes, and the names they are registered under, onto the stores managing them.

    Filled once while wiring the application; the resolver only reads from it afterwards.
    """

    entities: typing.Dict[type, RegisteredEntity] = attr.Factory(dict)
    names: typing.Dict[str, type] = attr.Factory(dict)

    def register(
        self,
        entity_cls: type,
        store: Store,
        name: typing.Optional[str] = None,
        factory: typing.Optional[typing.Callable[[], typing.Any]] = None,
    ) -> RegisteredEntity:
        name = name or inflection.underscore(entity_cls.__name__)
        if entity_cls in self.entities:
            raise ConfigurationError(f"{entity_cls.__name__} is already registered")
        if name in self.names:
            raise ConfigurationError(f"Name {name!r} is already taken by {self.names[name].__name__}")

        registered = RegisteredEntity(entity_cls=entity_cls, store=store, name=name, factory=factory)
        self.entities[entity_cls] = registered
        self.names[name] = entity_cls
        logger.debug("Registered %s as %r", entity_cls.__name__, name)
        return registered

    def lookup(self, entity_type: EntityTypeOrName) -> typing.Optional[RegisteredEntity]:
        if isinstance(entity_type, str):
            entity_cls = self.names.get(entity_type)
            if entity_cls is None:
                return None
            return self.entities[entity_cls]
        return self.entities.get(entity_type)

    def store_for(self, entity_type: EntityTypeOrName) -> typing.Optional[Store]:
        registered = self.lookup(entity_type)
        return registered.store if registered else None

    def entity_class(self, entity_type: EntityTypeOrName) -> typing.Optional[type]:
        registered = self.lookup(entity_type)
        return registered.entity_cls if registered else None

    def factory_for(self, entity_type: EntityTypeOrName) -> typing.Optional[typing.Callable[[], typing.Any]]:
        registered = self.lookup(entity_type)
        return registered.factory if registered else None

    def __contains__(self, entity_type: EntityTypeOrName) -> bool:
        return self.lookup(entity_type) is not None

    def __iter__(self) -> typing.Iterator[RegisteredEntity]:
        return iter(list(self.entities.values()))

    def __len__(self) -> int:
        return len(self.entities)
