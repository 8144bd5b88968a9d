import abc
import typing

import attr


EntityType = typing.TypeVar("EntityType")


@attr.s(auto_attribs=True, frozen=True)
class UniqueConstraint:
    columns: typing.Tuple[str, ...] = attr.ib(converter=tuple)
    name: typing.Optional[str] = None


@attr.s(auto_attribs=True, frozen=True)
class EntityMetadata:
    identifier_field_names: typing.Tuple[str, ...] = attr.ib(converter=tuple)
    # ordered as declared, lookups rely on it
    unique_constraints: typing.Tuple[UniqueConstraint, ...] = attr.ib(converter=tuple, default=())


class Repository(abc.ABC, typing.Generic[EntityType]):
    @abc.abstractmethod
    def find_one_matching(self, criteria: typing.Mapping[str, typing.Any]) -> typing.Optional[EntityType]:
        pass


class Store(abc.ABC):
    """Read side of a persistence layer, as seen by the entity resolver."""

    @abc.abstractmethod
    def fetch_by_identifier(
        self, entity_cls: typing.Type[EntityType], identity: typing.Any
    ) -> typing.Optional[EntityType]:
        pass

    @abc.abstractmethod
    def metadata_for(self, entity_cls: type) -> EntityMetadata:
        pass

    @abc.abstractmethod
    def field_for_column(self, entity_cls: type, column: str) -> str:
        """Raises MappingError when no field is mapped onto the column."""

    @abc.abstractmethod
    def repository_for(self, entity_cls: typing.Type[EntityType]) -> typing.Optional[Repository[EntityType]]:
        pass
