import inspect
import logging
import typing
from collections.abc import Mapping

import attr
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from entity_denormalizer.errors import ConfigurationError, UnknownAttribute, UnsupportedInput
from entity_denormalizer.registry import EntityTypeOrName
from entity_denormalizer.resolver import EntityResolver


logger = logging.getLogger(__name__)

# context keys
OBJECT_TO_POPULATE = "object_to_populate"
ATTRIBUTES = "attributes"
ALLOW_EXTRA_ATTRIBUTES = "allow_extra_attributes"

Context = typing.Mapping[str, typing.Any]
InstanceFactory = typing.Callable[[], typing.Any]


class ObjectDenormalizer:
    """Populates objects attribute by attribute from a mapping.

    The target instance is taken from the ``OBJECT_TO_POPULATE`` context key when it holds an instance of the requested
    type, otherwise :meth:`create_blank_instance` builds one. ``ATTRIBUTES`` restricts which keys may be written and
    ``ALLOW_EXTRA_ATTRIBUTES=False`` turns keys that can not be written into an error instead of skipping them.
    """

    def __init__(self, instance_factories: typing.Optional[typing.Mapping[type, InstanceFactory]] = None) -> None:
        self._instance_factories: typing.Dict[type, InstanceFactory] = dict(instance_factories or {})

    def supports_denormalization(
        self, data: typing.Any, entity_type: typing.Any, format: typing.Optional[str] = None
    ) -> bool:
        return isinstance(data, Mapping) and inspect.isclass(entity_type)

    def denormalize(
        self,
        data: typing.Any,
        entity_type: type,
        format: typing.Optional[str] = None,
        context: typing.Optional[Context] = None,
    ) -> typing.Any:
        context = context or {}
        if not isinstance(data, Mapping):
            raise UnsupportedInput(entity_type, data)

        allowed_fields = self.get_allowed_fields(entity_type, context)
        allow_extra_attributes = context.get(ALLOW_EXTRA_ATTRIBUTES, True)
        instance = self.instantiate_object(data, entity_type, context, allowed_fields, format)

        for field_name, value in data.items():
            if not self.is_allowed_attribute(entity_type, field_name, allowed_fields):
                if not allow_extra_attributes:
                    raise UnknownAttribute(entity_type, field_name)
                logger.debug("Ignoring %r while denormalizing %s", field_name, entity_type.__name__)
                continue
            setattr(instance, field_name, value)

        return instance

    def get_allowed_fields(self, entity_type: type, context: Context) -> typing.Optional[typing.FrozenSet[str]]:
        attributes = context.get(ATTRIBUTES)
        if attributes is None:
            return None
        return frozenset(attributes)

    def is_allowed_attribute(
        self, entity_type: type, field_name: str, allowed_fields: typing.Optional[typing.FrozenSet[str]]
    ) -> bool:
        if field_name.startswith("_"):
            return False
        if allowed_fields is not None and field_name not in allowed_fields:
            return False
        if attr.has(entity_type):
            return field_name in attr.fields_dict(entity_type)
        mapper = sa_inspect(entity_type, raiseerr=False)
        if isinstance(mapper, Mapper):
            return field_name in mapper.attrs.keys()
        return hasattr(entity_type, field_name) and not inspect.isroutine(getattr(entity_type, field_name))

    def instantiate_object(
        self,
        data: typing.Mapping[str, typing.Any],
        entity_type: type,
        context: Context,
        allowed_fields: typing.Optional[typing.FrozenSet[str]],
        format: typing.Optional[str] = None,
    ) -> typing.Any:
        object_to_populate = context.get(OBJECT_TO_POPULATE)
        if object_to_populate is not None and isinstance(object_to_populate, entity_type):
            return object_to_populate
        return self.create_blank_instance(data, entity_type, context, allowed_fields, format)

    def create_blank_instance(
        self,
        data: typing.Mapping[str, typing.Any],
        entity_type: type,
        context: Context,
        allowed_fields: typing.Optional[typing.FrozenSet[str]],
        format: typing.Optional[str] = None,
    ) -> typing.Any:
        factory = self._instance_factories.get(entity_type, entity_type)
        return factory()


def _entity_class(resolver: EntityResolver, entity_type: EntityTypeOrName) -> type:
    if not isinstance(entity_type, str):
        return entity_type
    entity_cls = resolver.registry.entity_class(entity_type)
    if entity_cls is None:
        raise ConfigurationError(f"No store registered for {entity_type!r}")
    return entity_cls


class EntityDenormalizer:
    """Wraps another denormalizer, handing it the persisted instance the payload points at, if there is one.

    When nothing is persisted yet and the registry holds a factory for the type, the blank instance built by that
    factory is handed over instead, so the wrapped denormalizer never has to know about registered factories.
    """

    def __init__(self, base_denormalizer: ObjectDenormalizer, resolver: EntityResolver) -> None:
        self._base_denormalizer = base_denormalizer
        self._resolver = resolver

    def supports_denormalization(
        self, data: typing.Any, entity_type: EntityTypeOrName, format: typing.Optional[str] = None
    ) -> bool:
        entity_cls = self._resolver.registry.entity_class(entity_type)
        if entity_cls is None:
            return False
        return self._base_denormalizer.supports_denormalization(data, entity_cls, format)

    def denormalize(
        self,
        data: typing.Any,
        entity_type: EntityTypeOrName,
        format: typing.Optional[str] = None,
        context: typing.Optional[Context] = None,
    ) -> typing.Any:
        context = dict(context or {})
        instance = self._resolver.resolve(entity_type, data)
        entity_cls = _entity_class(self._resolver, entity_type)
        if instance is None and isinstance(data, Mapping):
            factory = self._resolver.registry.factory_for(entity_cls)
            if factory is not None:
                instance = factory()
        if instance is not None:
            context[OBJECT_TO_POPULATE] = instance

        return self._base_denormalizer.denormalize(data, entity_cls, format, context)


class EntityObjectDenormalizer(ObjectDenormalizer):
    """ObjectDenormalizer that reuses persisted instances instead of creating blank ones whenever possible.

    Blank instances come from the factory registered for the type, looked up on every call, and otherwise from
    ``instance_factories`` or the class itself.
    """

    def __init__(
        self,
        resolver: EntityResolver,
        instance_factories: typing.Optional[typing.Mapping[type, InstanceFactory]] = None,
    ) -> None:
        super().__init__(instance_factories)
        self._resolver = resolver

    def supports_denormalization(
        self, data: typing.Any, entity_type: EntityTypeOrName, format: typing.Optional[str] = None
    ) -> bool:
        entity_cls = self._resolver.registry.entity_class(entity_type)
        if entity_cls is None:
            return False
        return super().supports_denormalization(data, entity_cls, format)

    def denormalize(
        self,
        data: typing.Any,
        entity_type: EntityTypeOrName,
        format: typing.Optional[str] = None,
        context: typing.Optional[Context] = None,
    ) -> typing.Any:
        return super().denormalize(data, _entity_class(self._resolver, entity_type), format, context)

    def create_blank_instance(
        self,
        data: typing.Mapping[str, typing.Any],
        entity_type: type,
        context: Context,
        allowed_fields: typing.Optional[typing.FrozenSet[str]],
        format: typing.Optional[str] = None,
    ) -> typing.Any:
        instance = self._resolver.find_by_constraints(entity_type, data)
        if instance is not None:
            return instance
        factory = self._resolver.registry.factory_for(entity_type)
        if factory is not None:
            return factory()
        return super().create_blank_instance(data, entity_type, context, allowed_fields, format)
