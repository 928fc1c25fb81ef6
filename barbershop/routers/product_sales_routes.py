# barbershop/routers/product_sales_routes.py

from typing import List

from fastapi import APIRouter, Depends

from barbershop.deps import get_product_sale_service, require_admin, require_staff
from barbershop.schemas import CurrentUser, ProductSaleCreate, ProductSaleDetail, ProductSalePublic
from barbershop.services.product_sales import ProductSaleService

router = APIRouter(
    prefix="/product-sales",
    tags=["product-sales"],
)


@router.get("", response_model=List[ProductSaleDetail])
def list_product_sales(
    current_user: CurrentUser = Depends(require_staff),
    sales: ProductSaleService = Depends(get_product_sale_service),
):
    return sales.list(current_user)


@router.post("", status_code=201, response_model=ProductSalePublic)
def create_product_sale(
    sale: ProductSaleCreate,
    current_user: CurrentUser = Depends(require_staff),
    sales: ProductSaleService = Depends(get_product_sale_service),
):
    return sales.create(current_user, sale)


@router.post("/{sale_id}/validate", response_model=ProductSalePublic)
def validate_product_sale(
    sale_id: int,
    current_user: CurrentUser = Depends(require_admin),
    sales: ProductSaleService = Depends(get_product_sale_service),
):
    return sales.validate(current_user, sale_id)


@router.delete("/{sale_id}", status_code=204)
def delete_product_sale(
    sale_id: int,
    current_user: CurrentUser = Depends(require_staff),
    sales: ProductSaleService = Depends(get_product_sale_service),
):
    sales.delete(current_user, sale_id)
