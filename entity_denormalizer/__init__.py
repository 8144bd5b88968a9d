from entity_denormalizer.denormalizer import (
    ALLOW_EXTRA_ATTRIBUTES,
    ATTRIBUTES,
    OBJECT_TO_POPULATE,
    EntityDenormalizer,
    EntityObjectDenormalizer,
    ObjectDenormalizer,
)
from entity_denormalizer.errors import (
    ConfigurationError,
    DenormalizationError,
    EntityDenormalizerError,
    MappingError,
    UnknownAttribute,
    UnsupportedInput,
)
from entity_denormalizer.registry import EntityRegistry, RegisteredEntity
from entity_denormalizer.resolver import EntityResolver
from entity_denormalizer.store import EntityMetadata, Repository, Store, UniqueConstraint

__all__ = [
    "ALLOW_EXTRA_ATTRIBUTES",
    "ATTRIBUTES",
    "OBJECT_TO_POPULATE",
    "ConfigurationError",
    "DenormalizationError",
    "EntityDenormalizer",
    "EntityDenormalizerError",
    "EntityMetadata",
    "EntityObjectDenormalizer",
    "EntityRegistry",
    "EntityResolver",
    "MappingError",
    "ObjectDenormalizer",
    "RegisteredEntity",
    "Repository",
    "Store",
    "UniqueConstraint",
    "UnknownAttribute",
    "UnsupportedInput",
]
