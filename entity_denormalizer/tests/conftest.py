import typing

import pytest
from _pytest.config.argparsing import Parser

from entity_denormalizer.errors import MappingError
from entity_denormalizer.registry import EntityRegistry
from entity_denormalizer.resolver import EntityResolver
from entity_denormalizer.store import EntityMetadata, Repository, Store, UniqueConstraint


def pytest_addoption(parser: Parser) -> None:
    parser.addoption("--sqlalchemy-url", action="store", default="sqlite://")


class Widget:
    id = None
    sku = None
    name = None
    price = None
    warehouse = None
    shelf = None

    def __init__(self, **fields: typing.Any) -> None:
        for name, value in fields.items():
            setattr(self, name, value)

    def describe(self) -> str:
        return f"{self.sku}: {self.name}"


class RecordingRepository(Repository):
    def __init__(self, store: "RecordingStore") -> None:
        self._store = store

    def find_one_matching(self, criteria: typing.Mapping[str, typing.Any]) -> typing.Optional[typing.Any]:
        self._store.queries.append(("find_one_matching", dict(criteria)))
        for row in self._store.rows:
            if all(getattr(row, name, None) == value for name, value in criteria.items()):
                return row
        return None


class RecordingStore(Store):
    """In-memory store keeping every query it answered in ``queries``."""

    def __init__(
        self,
        metadata: EntityMetadata,
        rows: typing.Iterable[typing.Any] = (),
        columns_to_fields: typing.Optional[typing.Dict[str, str]] = None,
        with_repository: bool = True,
    ) -> None:
        self.metadata = metadata
        self.rows = list(rows)
        self.columns_to_fields = columns_to_fields
        self.with_repository = with_repository
        self.queries: typing.List[typing.Tuple[str, typing.Any]] = []

    def fetch_by_identifier(self, entity_cls: type, identity: typing.Any) -> typing.Optional[typing.Any]:
        self.queries.append(("fetch_by_identifier", identity))
        identifier_name = self.metadata.identifier_field_names[0]
        return next((row for row in self.rows if getattr(row, identifier_name) == identity), None)

    def metadata_for(self, entity_cls: type) -> EntityMetadata:
        return self.metadata

    def field_for_column(self, entity_cls: type, column: str) -> str:
        if self.columns_to_fields is None:
            return column
        try:
            return self.columns_to_fields[column]
        except KeyError:
            raise MappingError(entity_cls, column)

    def repository_for(self, entity_cls: type) -> typing.Optional[Repository]:
        return RecordingRepository(self) if self.with_repository else None


@pytest.fixture()
def widget_cls() -> typing.Type[Widget]:
    return Widget


@pytest.fixture()
def widget_metadata() -> EntityMetadata:
    return EntityMetadata(
        identifier_field_names=["id"],
        unique_constraints=[UniqueConstraint(["sku"], name="uq_sku"), UniqueConstraint(["warehouse", "shelf"])],
    )


@pytest.fixture()
def stored_widgets() -> typing.List[Widget]:
    return [
        Widget(id=7, sku="XYZ", name="Seven", warehouse="north", shelf=1),
        Widget(id=8, sku="ABC", name="Eight", warehouse="south", shelf=2),
    ]


@pytest.fixture()
def store(widget_metadata: EntityMetadata, stored_widgets: typing.List[Widget]) -> RecordingStore:
    return RecordingStore(widget_metadata, stored_widgets)


@pytest.fixture()
def registry(store: RecordingStore) -> EntityRegistry:
    registry = EntityRegistry()
    registry.register(Widget, store)
    return registry


@pytest.fixture()
def resolver(registry: EntityRegistry) -> EntityResolver:
    return EntityResolver(registry)


@pytest.fixture()
def recording_store_cls() -> typing.Type[RecordingStore]:
    return RecordingStore
