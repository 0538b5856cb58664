import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String, Text

from app.core.db import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    moneda = Column(String(3), nullable=False, default="MXN", index=True)
    tipo = Column(String(20), nullable=False, default="Factura")
    fecha = Column(Date, index=True)
    serie = Column(String(25), nullable=False, default="")
    folio = Column(String(40), nullable=False, default="")
    uuid = Column(String(64), nullable=False, default="")
    proveedor = Column(String(255), nullable=False, default="", index=True)
    clasificacion = Column(String(100), nullable=False, default="")
    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    iva = Column(Numeric(18, 2), nullable=False, default=0)
    ret_isr = Column(Numeric(18, 2), nullable=False, default=0)
    ret_iva = Column(Numeric(18, 2), nullable=False, default=0)
    total = Column(Numeric(18, 2), nullable=False, default=0)
    monto_pagado = Column(Numeric(18, 2), nullable=False, default=0)
    concepto = Column(Text, nullable=False, default="")
    dias_credito = Column(Integer, nullable=False, default=30)
    dias_ficticios = Column(Integer, nullable=False, default=0)
    vencimiento = Column(Date)
    fecha_programacion = Column(Date)
    estatus = Column(String(20), nullable=False, default="Pendiente")
    referencia = Column(String(255), nullable=False, default="")
    notas = Column(Text, nullable=False, default="")
    vo_bo = Column(Boolean, nullable=False, default=False)
    autorizado_direccion = Column(Boolean, nullable=False, default=False)
