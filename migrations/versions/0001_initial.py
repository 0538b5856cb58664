"""Invoices, suppliers and clasificaciones"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "invoices",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("moneda", sa.String(length=3), nullable=False, server_default="MXN", index=True),
        sa.Column("tipo", sa.String(length=20), nullable=False, server_default="Factura"),
        sa.Column("fecha", sa.Date(), index=True),
        sa.Column("serie", sa.String(length=25), nullable=False, server_default=""),
        sa.Column("folio", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("uuid", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("proveedor", sa.String(length=255), nullable=False, server_default="", index=True),
        sa.Column("clasificacion", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("subtotal", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("iva", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("ret_isr", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("ret_iva", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("monto_pagado", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("concepto", sa.Text(), nullable=False, server_default=""),
        sa.Column("dias_credito", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("dias_ficticios", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("vencimiento", sa.Date()),
        sa.Column("fecha_programacion", sa.Date()),
        sa.Column("estatus", sa.String(length=20), nullable=False, server_default="Pendiente"),
        sa.Column("referencia", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("notas", sa.Text(), nullable=False, server_default=""),
        sa.Column("vo_bo", sa.Boolean(), nullable=False, server_default=sa.sql.expression.false()),
        sa.Column("autorizado_direccion", sa.Boolean(), nullable=False, server_default=sa.sql.expression.false()),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("nombre", sa.String(length=255), nullable=False, index=True),
        sa.Column("rfc", sa.String(length=13), nullable=False, server_default=""),
        sa.Column("moneda", sa.String(length=3), nullable=False, server_default="MXN"),
        sa.Column("dias_credito", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("contacto", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("telefono", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("banco", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("clabe", sa.String(length=18), nullable=False, server_default=""),
        sa.Column("clasificacion", sa.String(length=100), nullable=False, server_default="Otros"),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.sql.expression.true()),
    )

    op.create_table(
        "clasificaciones",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre", sa.String(length=100), nullable=False, unique=True),
        sa.Column("orden", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("clasificaciones")
    op.drop_table("suppliers")
    op.drop_table("invoices")
