"""
Declarative base for the cart/order tables (SQLAlchemy 2.0 style).
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Shared by create_tables() and Alembic autogenerate
metadata = Base.metadata
