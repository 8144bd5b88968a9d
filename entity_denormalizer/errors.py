class EntityDenormalizerError(Exception):
    pass


class ConfigurationError(EntityDenormalizerError):
    """Wiring mistake: a type has no store or no repository behind it."""


class MappingError(EntityDenormalizerError):
    def __init__(self, entity_cls: type, column: str) -> None:
        super().__init__(f"Column {column!r} is not mapped to any field of {entity_cls.__name__}")
        self.entity_cls = entity_cls
        self.column = column


class DenormalizationError(EntityDenormalizerError):
    pass


class UnsupportedInput(DenormalizationError):
    def __init__(self, entity_type: type, data: object) -> None:
        super().__init__(f"Can not denormalize {type(data).__name__} into {entity_type!r}, expected a mapping")
        self.entity_type = entity_type
        self.data = data


class UnknownAttribute(DenormalizationError):
    def __init__(self, entity_type: type, attribute: str) -> None:
        super().__init__(f"{entity_type.__name__} has no attribute {attribute!r}")
        self.entity_type = entity_type
        self.attribute = attribute
