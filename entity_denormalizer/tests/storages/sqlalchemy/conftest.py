from typing import Generator, List, Type

import pytest
from sqlalchemy import Column, Integer, String, UniqueConstraint, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from entity_denormalizer.registry import EntityRegistry
from entity_denormalizer.resolver import EntityResolver
from entity_denormalizer.storages.sqlalchemy.registry import register_models


Base = declarative_base()


class Widget(Base):
    __tablename__ = "widgets"
    __table_args__ = (
        UniqueConstraint("sku", name="uq_widgets_sku"),
        UniqueConstraint("warehouse", "shelf_no", name="uq_widgets_location"),
    )

    id = Column(Integer, primary_key=True)
    sku = Column(String(32))
    name = Column(String(255))
    price = Column(Integer)
    warehouse = Column(String(32))
    shelf = Column("shelf_no", Integer)


class Placement(Base):
    __tablename__ = "placements"

    warehouse = Column(String(32), primary_key=True)
    slot = Column("slot_no", Integer, primary_key=True)


@pytest.fixture()
def sa_base():
    return Base


@pytest.fixture()
def widget_model() -> Type[Widget]:
    return Widget


@pytest.fixture()
def placement_model() -> Type[Placement]:
    return Placement


@pytest.fixture()
def session(sa_base, engine: Engine) -> Generator[Session, None, None]:
    sa_base.metadata.drop_all(engine)
    sa_base.metadata.create_all(engine)
    session_factory = sessionmaker(engine)
    session = session_factory()
    yield session
    session.close()
    sa_base.metadata.drop_all(engine)


@pytest.fixture()
def stored_widgets(session: Session) -> List[Widget]:
    widgets = [
        Widget(id=7, sku="XYZ", name="Seven", price=70, warehouse="north", shelf=1),
        Widget(id=8, sku="ABC", name="Eight", price=80, warehouse="south", shelf=2),
    ]
    session.add_all(widgets)
    session.flush()
    return widgets


@pytest.fixture()
def sa_registry(sa_base, session: Session) -> EntityRegistry:
    registry = EntityRegistry()
    register_models(registry, sa_base, session)
    return registry


@pytest.fixture()
def sa_resolver(sa_registry: EntityRegistry) -> EntityResolver:
    return EntityResolver(sa_registry)


@pytest.fixture()
def statements(engine: Engine) -> Generator[List[str], None, None]:
    executed: List[str] = []

    def record(conn, cursor, statement, parameters, context, executemany) -> None:
        executed.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    yield executed
    event.remove(engine, "before_cursor_execute", record)
