# barbershop/routers/catalog_routes.py

from typing import List

from fastapi import APIRouter, Depends, Query

from barbershop.deps import get_catalog_service, get_report_service, require_admin, require_staff
from barbershop.schemas import (
    CommissionCreate,
    CommissionPublic,
    CommissionUpdate,
    CurrentUser,
    PopularService,
    ProductCommissionCreate,
    ProductCommissionPublic,
    ProductCreate,
    ProductPublic,
    ProductUpdate,
    ReportPeriod,
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
)
from barbershop.services.catalog import CatalogService
from barbershop.services.reports import ReportService

router = APIRouter(
    tags=["catalog"],
)


# ---- services ---------------------------------------------------------------

@router.get("/services", response_model=List[ServicePublic])
def list_services(catalog: CatalogService = Depends(get_catalog_service)):
    return catalog.services()


@router.get("/services/active", response_model=List[ServicePublic])
def list_active_services(catalog: CatalogService = Depends(get_catalog_service)):
    return catalog.services(active_only=True)


@router.get("/services/popular", response_model=List[PopularService])
def popular_services(
    period: ReportPeriod = ReportPeriod.month,
    limit: int = Query(default=5, ge=1, le=50),
    current_user: CurrentUser = Depends(require_staff),
    reports: ReportService = Depends(get_report_service),
):
    return reports.popular_services(period, limit)


@router.get("/services/{service_id}", response_model=ServicePublic)
def get_service(service_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return catalog.service(service_id)


@router.post("/services", status_code=201, response_model=ServicePublic)
def create_service(
    service: ServiceCreate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.create_service(current_user, service)


@router.patch("/services/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    service: ServiceUpdate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.update_service(current_user, service_id, service)


@router.delete("/services/{service_id}", response_model=ServicePublic)
def deactivate_service(
    service_id: int,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.deactivate_service(current_user, service_id)


# ---- commissions ------------------------------------------------------------

@router.get("/commissions", response_model=List[CommissionPublic])
def list_commissions(
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.commissions()


@router.get("/commissions/{commission_id}", response_model=CommissionPublic)
def get_commission(
    commission_id: int,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.commission(commission_id)


@router.post("/commissions", status_code=201, response_model=CommissionPublic)
def create_commission(
    commission: CommissionCreate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.create_commission(current_user, commission)


@router.patch("/commissions/{commission_id}", response_model=CommissionPublic)
def update_commission(
    commission_id: int,
    commission: CommissionUpdate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.update_commission(current_user, commission_id, commission)


@router.delete("/commissions/{commission_id}", status_code=204)
def delete_commission(
    commission_id: int,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    catalog.delete_commission(current_user, commission_id)


# ---- products ---------------------------------------------------------------

@router.get("/products", response_model=List[ProductPublic])
def list_products(catalog: CatalogService = Depends(get_catalog_service)):
    return catalog.products()


@router.get("/products/active", response_model=List[ProductPublic])
def list_active_products(catalog: CatalogService = Depends(get_catalog_service)):
    return catalog.products(active_only=True)


@router.get("/products/{product_id}", response_model=ProductPublic)
def get_product(product_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return catalog.product(product_id)


@router.post("/products", status_code=201, response_model=ProductPublic)
def create_product(
    product: ProductCreate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.create_product(current_user, product)


@router.patch("/products/{product_id}", response_model=ProductPublic)
def update_product(
    product_id: int,
    product: ProductUpdate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.update_product(current_user, product_id, product)


@router.delete("/products/{product_id}", response_model=ProductPublic)
def deactivate_product(
    product_id: int,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.deactivate_product(current_user, product_id)


# ---- product commissions ----------------------------------------------------

@router.get("/product-commissions", response_model=List[ProductCommissionPublic])
def list_product_commissions(
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.product_commissions()


@router.get("/product-commissions/{commission_id}", response_model=ProductCommissionPublic)
def get_product_commission(
    commission_id: int,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.product_commission(commission_id)


@router.post("/product-commissions", status_code=201, response_model=ProductCommissionPublic)
def create_product_commission(
    commission: ProductCommissionCreate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.create_product_commission(current_user, commission)


@router.patch("/product-commissions/{commission_id}", response_model=ProductCommissionPublic)
def update_product_commission(
    commission_id: int,
    commission: CommissionUpdate,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.update_product_commission(current_user, commission_id, commission)


@router.delete("/product-commissions/{commission_id}", status_code=204)
def delete_product_commission(
    commission_id: int,
    current_user: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    catalog.delete_product_commission(current_user, commission_id)
