# barbershop/services/product_sales.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from ..errors import Forbidden, ValidationError
from ..models import Barber, Product, ProductSale, User
from ..repository import Repository
from ..schemas import (
    CurrentUser,
    ProductPublic,
    ProductSaleCreate,
    ProductSaleDetail,
    ProductSalePublic,
    UserRole,
)
from .audit import AuditTrail
from .common import commission_of, ensure_acts_for_barber, get_or_404, money

logger = logging.getLogger(__name__)


def sale_commission(repo: Repository, sale: ProductSale) -> Tuple[Optional[Decimal], Decimal]:
    """(percentage, amount) for a sale; no ProductCommission means zero."""
    entry = repo.product_commission_for(sale.barber_id, sale.product_id)
    percentage = entry.percentage if entry else None
    return percentage, commission_of(Decimal(sale.unit_price) * sale.quantity, percentage)


class ProductSaleService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.audit = AuditTrail(repo)

    def create(self, current_user: CurrentUser, data: ProductSaleCreate) -> ProductSale:
        ensure_acts_for_barber(current_user, data.barber_id)
        get_or_404(self.repo, Barber, data.barber_id, "Barber")
        product = get_or_404(self.repo, Product, data.product_id, "Product")
        if not product.active:
            raise ValidationError("Product is not available for sale")

        client_name = data.client_name
        if data.client_id is not None:
            client = get_or_404(self.repo, User, data.client_id, "Client")
            client_name = client_name or client.full_name
        if not client_name:
            raise ValidationError("Either client_id or client_name is required")

        # stock_quantity is left as is; inventory is adjusted by hand
        sale = self.repo.add(
            ProductSale(
                barber_id=data.barber_id,
                product_id=product.id,
                client_id=data.client_id,
                client_name=client_name,
                quantity=data.quantity,
                unit_price=data.unit_price if data.unit_price is not None else product.price,
                date=data.date or datetime.now(),
                validated_by_admin=False,
            )
        )
        logger.info("Product sale %s recorded for barber %s", sale.id, sale.barber_id)
        self.audit.record(
            current_user.id,
            "create",
            "product_sale",
            sale.id,
            {"product_id": sale.product_id, "quantity": sale.quantity, "unit_price": sale.unit_price},
        )
        return sale

    def validate(self, actor: CurrentUser, sale_id: int) -> ProductSale:
        sale = get_or_404(self.repo, ProductSale, sale_id, "Product sale")
        if sale.validated_by_admin is True:
            return sale
        sale.validated_by_admin = True
        self.repo.add(sale)
        logger.info("Product sale %s validated by user %s", sale.id, actor.id)
        self.audit.record(actor.id, "validate", "product_sale", sale.id, {"validated_by_admin": True})
        return sale

    def delete(self, current_user: CurrentUser, sale_id: int) -> None:
        sale = get_or_404(self.repo, ProductSale, sale_id, "Product sale")
        if current_user.role != UserRole.admin:
            ensure_acts_for_barber(current_user, sale.barber_id)
            if sale.validated_by_admin is True:
                raise Forbidden("Validated sales can only be removed by an admin")
        barber_id = sale.barber_id
        self.repo.delete(sale)
        logger.info("Product sale %s deleted by user %s", sale_id, current_user.id)
        self.audit.record(current_user.id, "delete", "product_sale", sale_id, {"barber_id": barber_id})

    def detail(self, sale: ProductSale) -> ProductSaleDetail:
        product = self.repo.get(Product, sale.product_id)
        # unvalidated sales earn nothing yet
        amount = sale_commission(self.repo, sale)[1] if sale.validated_by_admin is True else money(0)
        return ProductSaleDetail(
            **ProductSalePublic.model_validate(sale).model_dump(),
            product=ProductPublic.model_validate(product),
            commission_amount=amount,
        )

    def list(self, current_user: CurrentUser) -> List[ProductSaleDetail]:
        barber_id = None if current_user.role == UserRole.admin else current_user.barber_id
        if barber_id is None and current_user.role != UserRole.admin:
            return []
        return [self.detail(s) for s in self.repo.product_sales(barber_id=barber_id)]
