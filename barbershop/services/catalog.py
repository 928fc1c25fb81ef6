# barbershop/services/catalog.py

import logging
from typing import List

from ..errors import Conflict
from ..models import Barber, Commission, Product, ProductCommission, Service
from ..repository import Repository
from ..schemas import (
    CommissionCreate,
    CommissionUpdate,
    CurrentUser,
    ProductCommissionCreate,
    ProductCreate,
    ProductUpdate,
    ServiceCreate,
    ServiceUpdate,
)
from .audit import AuditTrail
from .common import get_or_404

logger = logging.getLogger(__name__)


class CatalogService:
    """Services, products and the per-barber commission rates on them."""

    def __init__(self, repo: Repository):
        self.repo = repo
        self.audit = AuditTrail(repo)

    def _patch(self, obj, changes: dict):
        for key, value in changes.items():
            setattr(obj, key, value)
        return self.repo.add(obj)

    # ---- services -------------------------------------------------------

    def services(self, active_only: bool = False) -> List[Service]:
        criteria = [("active", "==", True)] if active_only else []
        return self.repo.find(Service, criteria, order_by="name")

    def service(self, service_id: int) -> Service:
        return get_or_404(self.repo, Service, service_id, "Service")

    def create_service(self, actor: CurrentUser, data: ServiceCreate) -> Service:
        service = self.repo.add(Service(**data.model_dump()))
        self.audit.record(actor.id, "create", "service", service.id, data.model_dump())
        return service

    def update_service(self, actor: CurrentUser, service_id: int, data: ServiceUpdate) -> Service:
        service = self.service(service_id)
        changes = data.model_dump(exclude_unset=True)
        self._patch(service, changes)
        self.audit.record(actor.id, "update", "service", service.id, changes)
        return service

    def deactivate_service(self, actor: CurrentUser, service_id: int) -> Service:
        # history keeps referencing the row
        service = self._patch(self.service(service_id), {"active": False})
        self.audit.record(actor.id, "delete", "service", service.id, {"active": False})
        return service

    # ---- service commissions --------------------------------------------

    def commissions(self) -> List[Commission]:
        return self.repo.find(Commission)

    def commission(self, commission_id: int) -> Commission:
        return get_or_404(self.repo, Commission, commission_id, "Commission")

    def create_commission(self, actor: CurrentUser, data: CommissionCreate) -> Commission:
        get_or_404(self.repo, Barber, data.barber_id, "Barber")
        get_or_404(self.repo, Service, data.service_id, "Service")
        if self.repo.commission_for(data.barber_id, data.service_id) is not None:
            logger.warning("Duplicate commission for barber %s, service %s", data.barber_id, data.service_id)
            raise Conflict("A commission already exists for this barber and service")
        commission = self.repo.add(Commission(**data.model_dump()))
        self.audit.record(actor.id, "create", "commission", commission.id, data.model_dump())
        return commission

    def update_commission(self, actor: CurrentUser, commission_id: int, data: CommissionUpdate) -> Commission:
        commission = self._patch(self.commission(commission_id), {"percentage": data.percentage})
        self.audit.record(actor.id, "update", "commission", commission.id, {"percentage": data.percentage})
        return commission

    def delete_commission(self, actor: CurrentUser, commission_id: int) -> None:
        self.repo.delete(self.commission(commission_id))
        self.audit.record(actor.id, "delete", "commission", commission_id)

    # ---- products -------------------------------------------------------

    def products(self, active_only: bool = False) -> List[Product]:
        criteria = [("active", "==", True)] if active_only else []
        return self.repo.find(Product, criteria, order_by="name")

    def product(self, product_id: int) -> Product:
        return get_or_404(self.repo, Product, product_id, "Product")

    def _ensure_free_sku(self, sku: str, product_id=None) -> None:
        existing = self.repo.product_by_sku(sku)
        if existing is not None and existing.id != product_id:
            raise Conflict("A product with this SKU already exists")

    def create_product(self, actor: CurrentUser, data: ProductCreate) -> Product:
        self._ensure_free_sku(data.sku)
        product = self.repo.add(Product(**data.model_dump()))
        self.audit.record(actor.id, "create", "product", product.id, {"sku": product.sku})
        return product

    def update_product(self, actor: CurrentUser, product_id: int, data: ProductUpdate) -> Product:
        product = self.product(product_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("sku"):
            self._ensure_free_sku(changes["sku"], product.id)
        self._patch(product, changes)
        self.audit.record(actor.id, "update", "product", product.id, changes)
        return product

    def deactivate_product(self, actor: CurrentUser, product_id: int) -> Product:
        product = self._patch(self.product(product_id), {"active": False})
        self.audit.record(actor.id, "delete", "product", product.id, {"active": False})
        return product

    # ---- product commissions --------------------------------------------

    def product_commissions(self) -> List[ProductCommission]:
        return self.repo.find(ProductCommission)

    def product_commission(self, commission_id: int) -> ProductCommission:
        return get_or_404(self.repo, ProductCommission, commission_id, "Product commission")

    def create_product_commission(self, actor: CurrentUser, data: ProductCommissionCreate) -> ProductCommission:
        get_or_404(self.repo, Barber, data.barber_id, "Barber")
        get_or_404(self.repo, Product, data.product_id, "Product")
        if self.repo.product_commission_for(data.barber_id, data.product_id) is not None:
            raise Conflict("A commission already exists for this barber and product")
        entry = self.repo.add(ProductCommission(**data.model_dump()))
        self.audit.record(actor.id, "create", "product_commission", entry.id, data.model_dump())
        return entry

    def update_product_commission(
        self, actor: CurrentUser, commission_id: int, data: CommissionUpdate
    ) -> ProductCommission:
        entry = self._patch(self.product_commission(commission_id), {"percentage": data.percentage})
        self.audit.record(actor.id, "update", "product_commission", entry.id, {"percentage": data.percentage})
        return entry

    def delete_product_commission(self, actor: CurrentUser, commission_id: int) -> None:
        self.repo.delete(self.product_commission(commission_id))
        self.audit.record(actor.id, "delete", "product_commission", commission_id)
