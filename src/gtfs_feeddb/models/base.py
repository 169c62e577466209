"""Shared SQLAlchemy metadata."""

from sqlalchemy import MetaData

metadata = MetaData(naming_convention={"pk": "pk_%(table_name)s"})
