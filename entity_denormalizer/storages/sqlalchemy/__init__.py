import operator
import typing

from sqlalchemy import UniqueConstraint as SaUniqueConstraint, inspect
from sqlalchemy.orm import Mapper, Session
from sqlalchemy.orm.exc import UnmappedColumnError

from entity_denormalizer.errors import ConfigurationError, MappingError
from entity_denormalizer.store import EntityMetadata, EntityType, Repository, Store, UniqueConstraint


def _mapper_for(entity_cls: type) -> typing.Optional[Mapper]:
    mapper = inspect(entity_cls, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


class SqlAlchemyRepository(Repository[EntityType]):
    def __init__(self, session: Session, entity_cls: typing.Type[EntityType]) -> None:
        self._session = session
        self._entity_cls = entity_cls

    def find_one_matching(self, criteria: typing.Mapping[str, typing.Any]) -> typing.Optional[EntityType]:
        return self._session.query(self._entity_cls).filter_by(**criteria).first()


class SqlAlchemyStore(Store):
    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def fetch_by_identifier(
        self, entity_cls: typing.Type[EntityType], identity: typing.Any
    ) -> typing.Optional[EntityType]:
        return self._session.get(entity_cls, identity)

    def metadata_for(self, entity_cls: type) -> EntityMetadata:
        mapper = self._require_mapper(entity_cls)
        identifier_field_names = [mapper.get_property_by_column(column).key for column in mapper.primary_key]
        # Table.constraints is a set. Creation order is the one SQLAlchemy emits DDL in: __table_args__ constraints as
        # declared, then those generated by Column(unique=True) in column order.
        constraints = sorted(
            (c for c in mapper.local_table.constraints if isinstance(c, SaUniqueConstraint)),
            key=operator.attrgetter("_creation_order"),
        )
        return EntityMetadata(
            identifier_field_names=identifier_field_names,
            unique_constraints=[
                UniqueConstraint(columns=[column.name for column in constraint.columns], name=constraint.name)
                for constraint in constraints
            ],
        )

    def field_for_column(self, entity_cls: type, column: str) -> str:
        mapper = self._require_mapper(entity_cls)
        for table_column in mapper.local_table.columns:
            if table_column.name != column:
                continue
            try:
                return mapper.get_property_by_column(table_column).key
            except UnmappedColumnError as e:
                raise MappingError(entity_cls, column) from e
        raise MappingError(entity_cls, column)

    def repository_for(self, entity_cls: typing.Type[EntityType]) -> typing.Optional[Repository[EntityType]]:
        if _mapper_for(entity_cls) is None:
            return None
        return SqlAlchemyRepository(self._session, entity_cls)

    @staticmethod
    def _require_mapper(entity_cls: type) -> Mapper:
        mapper = _mapper_for(entity_cls)
        if mapper is None:
            raise ConfigurationError(f"{entity_cls.__name__} is not mapped by SQLAlchemy")
        return mapper
