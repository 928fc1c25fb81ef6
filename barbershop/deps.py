# barbershop/deps.py

from fastapi import Depends

from .auth import get_current_user
from .db import get_repository
from .errors import Forbidden, NotFound
from .repository import Repository
from .schemas import CurrentUser, UserRole
from .services.appointments import AppointmentService
from .services.audit import AuditTrail
from .services.catalog import CatalogService
from .services.clients import ClientService
from .services.completed_services import CompletedServiceRecorder
from .services.invites import InviteService
from .services.people import BarberService, UserService
from .services.product_sales import ProductSaleService
from .services.reports import ReportService
from .services.settlement import SettlementService
from .services.slots import SlotService


def require_roles(*roles: UserRole):
    """Route dependency: the caller must hold one of ``roles``."""
    allowed = set(roles)

    def guard(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise Forbidden("Forbidden")
        return current_user

    return guard


require_admin = require_roles(UserRole.admin)
require_barber = require_roles(UserRole.barber)
require_staff = require_roles(UserRole.admin, UserRole.barber)


def current_barber_id(current_user: CurrentUser = Depends(require_barber)) -> int:
    if current_user.barber_id is None:
        raise NotFound("Barber profile not found")
    return current_user.barber_id


# Service providers; they share the request's repository with get_current_user

def get_user_service(repo: Repository = Depends(get_repository)) -> UserService:
    return UserService(repo)


def get_barber_service(repo: Repository = Depends(get_repository)) -> BarberService:
    return BarberService(repo)


def get_slot_service(repo: Repository = Depends(get_repository)) -> SlotService:
    return SlotService(repo)


def get_appointment_service(repo: Repository = Depends(get_repository)) -> AppointmentService:
    return AppointmentService(repo)


def get_completed_service_recorder(repo: Repository = Depends(get_repository)) -> CompletedServiceRecorder:
    return CompletedServiceRecorder(repo)


def get_settlement_service(repo: Repository = Depends(get_repository)) -> SettlementService:
    return SettlementService(repo)


def get_product_sale_service(repo: Repository = Depends(get_repository)) -> ProductSaleService:
    return ProductSaleService(repo)


def get_catalog_service(repo: Repository = Depends(get_repository)) -> CatalogService:
    return CatalogService(repo)


def get_invite_service(repo: Repository = Depends(get_repository)) -> InviteService:
    return InviteService(repo)


def get_audit_trail(repo: Repository = Depends(get_repository)) -> AuditTrail:
    return AuditTrail(repo)


def get_client_service(repo: Repository = Depends(get_repository)) -> ClientService:
    return ClientService(repo)


def get_report_service(repo: Repository = Depends(get_repository)) -> ReportService:
    return ReportService(repo)
