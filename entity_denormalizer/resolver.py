import decimal
import logging
import typing
import uuid
from collections.abc import Mapping

from entity_denormalizer.errors import ConfigurationError, MappingError
from entity_denormalizer.registry import EntityRegistry, EntityTypeOrName, RegisteredEntity
from entity_denormalizer.store import Store, UniqueConstraint


logger = logging.getLogger(__name__)

# bool is covered by int
SCALAR_TYPES = (str, bytes, int, float, decimal.Decimal, uuid.UUID)


def build_criteria(
    field_names: typing.Sequence[str], data: typing.Mapping[str, typing.Any]
) -> typing.Dict[str, typing.Any]:
    """Picks ``field_names`` out of ``data``, or returns nothing at all if any of them is missing."""
    criteria = {}
    for field_name in field_names:
        if field_name not in data:
            return {}
        criteria[field_name] = data[field_name]
    return criteria


class EntityResolver:
    """Finds the persisted instance a payload describes.

    A scalar payload is taken for an identifier. A mapping is matched against the identifier fields first and then
    against every unique constraint, in the order they are declared. The first group fully present in the payload that
    hits a stored row wins.
    """

    def __init__(self, registry: EntityRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    def is_managed_type(self, entity_type: EntityTypeOrName) -> bool:
        return self._registry.store_for(entity_type) is not None

    def resolve(self, entity_type: EntityTypeOrName, data: typing.Any) -> typing.Optional[typing.Any]:
        registered = self._lookup(entity_type)
        if isinstance(data, SCALAR_TYPES):
            logger.debug("Fetching %s by identifier %r", registered.name, data)
            return registered.store.fetch_by_identifier(registered.entity_cls, data)
        if not isinstance(data, Mapping):
            logger.debug("Not resolving %s from %s payload", registered.name, type(data).__name__)
            return None
        return self._find_by_constraints(registered, data)

    def find_by_constraints(
        self, entity_type: EntityTypeOrName, data: typing.Mapping[str, typing.Any]
    ) -> typing.Optional[typing.Any]:
        return self._find_by_constraints(self._lookup(entity_type), data)

    def _lookup(self, entity_type: EntityTypeOrName) -> RegisteredEntity:
        registered = self._registry.lookup(entity_type)
        if registered is None:
            raise ConfigurationError(f"No store registered for {entity_type!r}")
        return registered

    def _find_by_constraints(
        self, registered: RegisteredEntity, data: typing.Mapping[str, typing.Any]
    ) -> typing.Optional[typing.Any]:
        store = registered.store
        metadata = store.metadata_for(registered.entity_cls)

        instance = self._find_by(registered, metadata.identifier_field_names, data)
        if instance is not None:
            logger.debug("Resolved %s by identifier %s", registered.name, metadata.identifier_field_names)
            return instance

        for constraint in metadata.unique_constraints:
            field_names = self._resolve_unique_fields(store, registered.entity_cls, constraint)
            instance = self._find_by(registered, field_names, data)
            if instance is not None:
                logger.debug("Resolved %s by unique fields %s", registered.name, field_names)
                return instance

        logger.debug("No persisted %s matches the payload", registered.name)
        return None

    @staticmethod
    def _resolve_unique_fields(
        store: Store, entity_cls: type, constraint: UniqueConstraint
    ) -> typing.Tuple[str, ...]:
        field_names = []
        for column in constraint.columns:
            try:
                field_names.append(store.field_for_column(entity_cls, column))
            except MappingError as e:
                logger.debug("Skipping unique constraint %s: %s", constraint.name or constraint.columns, e)
                return ()
        return tuple(field_names)

    @staticmethod
    def _find_by(
        registered: RegisteredEntity, field_names: typing.Sequence[str], data: typing.Mapping[str, typing.Any]
    ) -> typing.Optional[typing.Any]:
        criteria = build_criteria(field_names, data)
        if not criteria:
            return None

        repository = registered.store.repository_for(registered.entity_cls)
        if repository is None:
            raise ConfigurationError(f"No repository found for {registered.entity_cls.__name__}")
        return repository.find_one_matching(criteria)
