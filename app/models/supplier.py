from sqlalchemy import Boolean, Column, Integer, String

from app.core.db import Base
from app.models.invoice import new_id


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(String(36), primary_key=True, default=new_id)
    nombre = Column(String(255), nullable=False, index=True)
    rfc = Column(String(13), nullable=False, default="")
    moneda = Column(String(3), nullable=False, default="MXN")
    dias_credito = Column(Integer, nullable=False, default=30)
    contacto = Column(String(255), nullable=False, default="")
    telefono = Column(String(50), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    banco = Column(String(100), nullable=False, default="")
    clabe = Column(String(18), nullable=False, default="")
    clasificacion = Column(String(100), nullable=False, default="Otros")
    activo = Column(Boolean, nullable=False, default=True)


class Clasificacion(Base):
    __tablename__ = "clasificaciones"

    id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False, unique=True)
    orden = Column(Integer, nullable=False, default=0)
