import json

from sqlalchemy import Column, Integer, String, UniqueConstraint, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from entity_denormalizer import EntityDenormalizer, EntityRegistry, EntityResolver, ObjectDenormalizer
from entity_denormalizer.storages.sqlalchemy.registry import register_models


Base = declarative_base()


class Widget(Base):
    __tablename__ = "widgets"
    __table_args__ = (UniqueConstraint("sku"),)

    id = Column(Integer, primary_key=True)
    sku = Column(String(32))
    name = Column(String(255))
    price = Column(Integer)


engine = create_engine("sqlite://", echo=True)
Base.metadata.create_all(engine)
Session = sessionmaker(engine)
session = Session()

session.add(Widget(id=7, sku="ABC", name="Old", price=5))
session.commit()

registry = EntityRegistry()
register_models(registry, Base, session)
denormalizer = EntityDenormalizer(ObjectDenormalizer(), EntityResolver(registry))

updated = denormalizer.denormalize(json.loads('{"sku": "ABC", "price": 10}'), Widget, "json")
created = denormalizer.denormalize(json.loads('{"sku": "DEF", "name": "New"}'), Widget, "json")
session.add(created)
session.commit()

assert updated.id == 7 and updated.price == 10, updated
assert session.query(Widget).count() == 2
