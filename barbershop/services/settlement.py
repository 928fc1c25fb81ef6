# barbershop/services/settlement.py

import logging
from datetime import datetime
from typing import List, Optional

from ..errors import Forbidden, ValidationError
from ..models import Barber, CompletedService, Payment, Product, ProductSale, Service
from ..repository import Repository
from ..schemas import (
    CompletedServicePublic,
    CurrentUser,
    PaymentCreate,
    PaymentDetail,
    PaymentPublic,
    PaymentStatus,
    ProductSettlementLine,
    ServiceSettlementLine,
    SettlementSummary,
    UserRole,
)
from .audit import AuditTrail
from .common import barber_public, commission_of, get_or_404, money
from .product_sales import sale_commission

logger = logging.getLogger(__name__)

# cutoff for barbers that were never paid
EPOCH = datetime(1970, 1, 1)


class SettlementService:
    """What a barber is owed: validated work dated after their last payment period."""

    def __init__(self, repo: Repository):
        self.repo = repo
        self.audit = AuditTrail(repo)

    def cutoff(self, barber_id: int) -> datetime:
        latest = self.repo.latest_payment(barber_id)
        return latest.period_end if latest is not None else EPOCH

    def validated_services_for_barber(self, barber_id: int) -> List[CompletedService]:
        return self.repo.completed_services(barber_id=barber_id, validated=True, after=self.cutoff(barber_id))

    def pending_services_for_barber(self, barber_id: int) -> List[CompletedService]:
        """Awaiting approval, whatever their date."""
        return self.repo.completed_services(barber_id=barber_id, validated=False)

    def validated_sales_for_barber(self, barber_id: int) -> List[ProductSale]:
        return self.repo.product_sales(
            barber_id=barber_id, validated=True, after=self.cutoff(barber_id), descending=False
        )

    def service_line(self, record: CompletedService) -> ServiceSettlementLine:
        service = self.repo.get(Service, record.service_id)
        commission = self.repo.commission_for(record.barber_id, record.service_id)
        percentage = commission.percentage if commission else None
        return ServiceSettlementLine(
            completed_service=CompletedServicePublic.model_validate(record),
            service_name=service.name if service else "",
            has_commission=commission is not None,
            commission_percentage=money(percentage or 0),
            commission_amount=commission_of(record.price, percentage),
        )

    def product_line(self, sale: ProductSale) -> ProductSettlementLine:
        product = self.repo.get(Product, sale.product_id)
        percentage, amount = sale_commission(self.repo, sale)
        return ProductSettlementLine(
            product_sale_id=sale.id,
            product_name=product.name if product else "",
            quantity=sale.quantity,
            unit_price=sale.unit_price,
            date=sale.date,
            has_commission=percentage is not None,
            commission_percentage=money(percentage or 0),
            commission_amount=amount,
        )

    def summary(
        self,
        barber_id: int,
        period_start: Optional[datetime] = None,
        period_end: Optional[datetime] = None,
    ) -> SettlementSummary:
        get_or_404(self.repo, Barber, barber_id, "Barber")

        def in_period(moment: datetime) -> bool:
            if period_start is not None and moment < period_start:
                return False
            if period_end is not None and moment > period_end:
                return False
            return True

        services = [
            self.service_line(r) for r in self.validated_services_for_barber(barber_id) if in_period(r.date)
        ]
        sales = [self.product_line(s) for s in self.validated_sales_for_barber(barber_id) if in_period(s.date)]

        services_total = money(sum((line.completed_service.price for line in services), 0))
        services_commission = money(sum((line.commission_amount for line in services), 0))
        products_total = money(sum((line.unit_price * line.quantity for line in sales), 0))
        products_commission = money(sum((line.commission_amount for line in sales), 0))
        return SettlementSummary(
            barber_id=barber_id,
            cutoff=self.cutoff(barber_id),
            services=services,
            product_sales=sales,
            services_total=services_total,
            services_commission=services_commission,
            products_total=products_total,
            products_commission=products_commission,
            total_commission=money(services_commission + products_commission),
        )

    # ---- payments -------------------------------------------------------

    def create_payment(self, actor: CurrentUser, data: PaymentCreate) -> Payment:
        get_or_404(self.repo, Barber, data.barber_id, "Barber")
        if data.period_start > data.period_end:
            raise ValidationError("period_start must not be after period_end")

        amount = data.amount
        if amount is None:
            amount = self.summary(data.barber_id, data.period_start, data.period_end).total_commission
            logger.info("Auto-summed payment for barber %s: %s", data.barber_id, amount)

        payment = self.repo.add(
            Payment(
                barber_id=data.barber_id,
                amount=amount,
                period_start=data.period_start,
                period_end=data.period_end,
                status=PaymentStatus.pending,
                notes=data.notes,
            )
        )
        logger.info(
            "Payment %s created for barber %s (%s to %s)",
            payment.id, payment.barber_id, payment.period_start.date(), payment.period_end.date(),
        )
        self.audit.record(
            actor.id,
            "create",
            "payment",
            payment.id,
            {"barber_id": payment.barber_id, "amount": payment.amount, "period_end": payment.period_end},
        )
        return payment

    def mark_paid(self, actor: CurrentUser, payment_id: int) -> Payment:
        payment = get_or_404(self.repo, Payment, payment_id, "Payment")
        if payment.status == PaymentStatus.paid:
            return payment
        payment.status = PaymentStatus.paid
        payment.payment_date = datetime.now()
        self.repo.add(payment)
        logger.info("Payment %s marked as paid by user %s", payment.id, actor.id)
        self.audit.record(actor.id, "update", "payment", payment.id, {"status": "paid"})
        return payment

    def payments(self, barber_id: Optional[int] = None) -> List[Payment]:
        return self.repo.payments(barber_id=barber_id)

    def get_payment(self, current_user: CurrentUser, payment_id: int) -> PaymentDetail:
        payment = get_or_404(self.repo, Payment, payment_id, "Payment")
        if current_user.role != UserRole.admin and payment.barber_id != current_user.barber_id:
            raise Forbidden("You can only view your own payments")
        barber = self.repo.get(Barber, payment.barber_id)
        return PaymentDetail(
            **PaymentPublic.model_validate(payment).model_dump(),
            barber=barber_public(self.repo, barber),
        )
