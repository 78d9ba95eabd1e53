# bookmarket/models.py
from sqlalchemy import Column, Integer, Numeric, String, Text

from .database import Base


class BookRow(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)
    author = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False, index=True)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    owner_id = Column(Integer, nullable=False, index=True)
    thumbnail = Column(String(500), nullable=False, default="")


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, unique=True, index=True)
    password = Column(String(200), nullable=False)
    image = Column(String(500), nullable=True)
