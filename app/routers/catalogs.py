from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.db import get_session
from app.dependencies import csrf_protect, require_admin, require_login
from app.models.user import User
from app.schemas.supplier import Clasificaciones, SupplierIn, SupplierList, SupplierOut
from app.services.catalog_service import CatalogService, CatalogServiceError

router = APIRouter(prefix="/api", tags=["catalogs"])


def get_catalog(db: Session = Depends(get_session)) -> CatalogService:
    return CatalogService(db)


@router.get("/suppliers", response_model=SupplierList)
async def list_suppliers(
    search: str = "",
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(require_login),
):
    return catalog.list_suppliers(search)


@router.post("/suppliers", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    payload: SupplierIn,
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        return catalog.create_supplier(payload)
    except CatalogServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.put("/suppliers/{supplier_id}", response_model=SupplierOut)
async def update_supplier(
    supplier_id: str,
    payload: SupplierIn,
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        return catalog.update_supplier(supplier_id, payload)
    except CatalogServiceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/clasificaciones", response_model=Clasificaciones)
async def list_clasificaciones(catalog: CatalogService = Depends(get_catalog), user: User = Depends(require_login)):
    return Clasificaciones(nombres=catalog.list_clasificaciones())


@router.put("/clasificaciones", response_model=Clasificaciones)
async def save_clasificaciones(
    payload: Clasificaciones,
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(require_admin),
    csrf=Depends(csrf_protect),
):
    return Clasificaciones(nombres=catalog.save_clasificaciones(payload.nombres))
