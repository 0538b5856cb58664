from fastapi import FastAPI, Request

from app.core.db import SessionLocal
from app.core.logging import setup_logging
from app.core.session import clear_session, ensure_csrf, load_session, save_session
from app.models import invoice, supplier, user  # noqa: F401  registers the tables
from app.routers import auth, catalogs, invoices, reports
from app.services.catalog_service import CatalogService

setup_logging()
app = FastAPI(title="Cuentas por Pagar")

app.include_router(auth.router)
app.include_router(invoices.router)
app.include_router(reports.router)
app.include_router(catalogs.router)


@app.middleware("http")
async def session_middleware(request: Request, call_next):
    session_data = load_session(request)
    request.state.session = session_data
    request.state.session_changed = False
    _, created = ensure_csrf(session_data)
    if created:
        request.state.session_changed = True
    response = await call_next(request)
    if getattr(request.state, "clear_session", False):
        clear_session(response)
    elif getattr(request.state, "session_changed", False):
        save_session(response, request.state.session)
    return response


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("startup")
def ensure_default_clasificaciones():
    with SessionLocal() as session:
        CatalogService(session).ensure_default_clasificaciones()
