# barbershop/schemas.py

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field


def _wall_clock(value: datetime) -> datetime:
    # times are shop-local wall clock; drop any offset the client sent
    return value.replace(tzinfo=None) if value.tzinfo else value


LocalDatetime = Annotated[datetime, AfterValidator(_wall_clock)]
Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]
Percentage = Annotated[Decimal, Field(ge=0, le=100, max_digits=5, decimal_places=2)]
# NULL validation flags read as "not validated"
Flag = Annotated[bool, BeforeValidator(bool)]


class UserRole(str, Enum):
    admin = "admin"
    barber = "barber"
    client = "client"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    canceled = "canceled"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"


class PaymentPeriod(str, Enum):
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"


class ProductCategory(str, Enum):
    shampoo = "shampoo"
    conditioner = "conditioner"
    styling = "styling"
    beard = "beard"
    skincare = "skincare"
    equipment = "equipment"
    other = "other"


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- auth & users ---------------------------------------------------------

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class CurrentUser(BaseModel):
    id: int
    email: str
    role: UserRole
    barber_id: Optional[int] = None


class UserCreate(BaseModel):
    username: str = Field(min_length=2)
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: str
    phone: Optional[str] = None


class UserPublic(ORMModel):
    id: int
    username: str
    email: str
    role: UserRole
    full_name: str
    phone: Optional[str] = None
    created_at: datetime


class UserWithPreferences(UserPublic):
    preferences: dict = {}


class ClientCreate(BaseModel):
    full_name: str
    email: str
    phone: Optional[str] = None
    username: Optional[str] = None


# ---- barbers --------------------------------------------------------------

class BarberCreate(BaseModel):
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)
    nif: str
    iban: str
    payment_period: PaymentPeriod = PaymentPeriod.monthly
    active: bool = True
    calendar_visibility: str = "own"


class BarberUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    nif: Optional[str] = None
    iban: Optional[str] = None
    payment_period: Optional[PaymentPeriod] = None
    active: Optional[bool] = None
    calendar_visibility: Optional[str] = None
    profile_image: Optional[str] = None


class BarberProfileUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    nif: Optional[str] = None
    iban: Optional[str] = None
    payment_period: Optional[PaymentPeriod] = None
    calendar_visibility: Optional[str] = None
    profile_image: Optional[str] = None


class BarberPublic(ORMModel):
    id: int
    user_id: int
    nif: str
    iban: str
    payment_period: PaymentPeriod
    active: bool
    calendar_visibility: str
    profile_image: Optional[str] = None
    created_at: datetime
    user: UserPublic


class BarberCard(BaseModel):
    """What guests and clients see of a barber."""

    id: int
    full_name: str
    profile_image: Optional[str] = None
    active: bool


# ---- catalog --------------------------------------------------------------

class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    price: Money
    duration: int = Field(gt=0)
    active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Money] = None
    duration: Optional[int] = Field(default=None, gt=0)
    active: Optional[bool] = None


class ServicePublic(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: int
    active: bool


class CommissionCreate(BaseModel):
    barber_id: int
    service_id: int
    percentage: Percentage


class CommissionUpdate(BaseModel):
    percentage: Percentage


class CommissionPublic(ORMModel):
    id: int
    barber_id: int
    service_id: int
    percentage: Decimal
    created_at: datetime


class ProductCreate(BaseModel):
    name: str
    description: Optional[str] = None
    price: Money
    cost_price: Money
    category: ProductCategory = ProductCategory.other
    sku: str
    stock_quantity: int = Field(default=0, ge=0)
    active: bool = True
    image_url: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Money] = None
    cost_price: Optional[Money] = None
    category: Optional[ProductCategory] = None
    sku: Optional[str] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None
    image_url: Optional[str] = None


class ProductPublic(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    cost_price: Decimal
    category: ProductCategory
    sku: str
    stock_quantity: int
    active: bool
    image_url: Optional[str] = None


class ProductCommissionCreate(BaseModel):
    barber_id: int
    product_id: int
    percentage: Percentage


class ProductCommissionPublic(ORMModel):
    id: int
    barber_id: int
    product_id: int
    percentage: Decimal
    created_at: datetime


# ---- appointments ---------------------------------------------------------

class AppointmentCreate(BaseModel):
    client_id: Optional[int] = None
    # guest booking: the client is looked up (or created) by email
    client_email: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    barber_id: int
    service_id: int
    date: LocalDatetime
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class AppointmentPublic(ORMModel):
    id: int
    client_id: int
    barber_id: int
    service_id: int
    date: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: datetime


class AppointmentDetail(AppointmentPublic):
    client: UserPublic
    barber: BarberCard
    service: ServicePublic


class AvailabilityResponse(BaseModel):
    barber_id: int
    date: str
    available_slots: List[str]


# ---- completed services ---------------------------------------------------

class CompletedServiceCreate(BaseModel):
    barber_id: int
    service_id: int
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    price: Money
    date: LocalDatetime
    appointment_id: Optional[int] = None


class CompletedServicePublic(ORMModel):
    id: int
    barber_id: int
    service_id: int
    client_id: Optional[int] = None
    client_name: str
    price: Decimal
    date: datetime
    appointment_id: Optional[int] = None
    validated_by_admin: Flag = False
    created_at: datetime


class CompletedServiceDetail(CompletedServicePublic):
    barber: BarberPublic
    service: ServicePublic


# ---- payments & settlement ------------------------------------------------

class PaymentCreate(BaseModel):
    barber_id: int
    # omitted: computed from the barber's unsettled validated work in the period
    amount: Optional[Money] = None
    period_start: LocalDatetime
    period_end: LocalDatetime
    notes: Optional[str] = None


class PaymentPublic(ORMModel):
    id: int
    barber_id: int
    amount: Decimal
    period_start: datetime
    period_end: datetime
    status: PaymentStatus
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime


class PaymentDetail(PaymentPublic):
    barber: BarberPublic


class ServiceSettlementLine(BaseModel):
    completed_service: CompletedServicePublic
    service_name: str
    has_commission: bool
    commission_percentage: Decimal
    commission_amount: Decimal


class ProductSettlementLine(BaseModel):
    product_sale_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    date: datetime
    has_commission: bool
    commission_percentage: Decimal
    commission_amount: Decimal


class SettlementSummary(BaseModel):
    barber_id: int
    cutoff: datetime
    services: List[ServiceSettlementLine]
    product_sales: List[ProductSettlementLine]
    services_total: Decimal
    services_commission: Decimal
    products_total: Decimal
    products_commission: Decimal
    total_commission: Decimal


# ---- product sales --------------------------------------------------------

class ProductSaleCreate(BaseModel):
    barber_id: int
    product_id: int
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    quantity: int = Field(default=1, gt=0)
    # defaults to the catalog price
    unit_price: Optional[Money] = None
    date: Optional[LocalDatetime] = None


class ProductSalePublic(ORMModel):
    id: int
    barber_id: int
    product_id: int
    client_id: Optional[int] = None
    client_name: str
    quantity: int
    unit_price: Decimal
    date: datetime
    validated_by_admin: Flag = False
    created_at: datetime


class ProductSaleDetail(ProductSalePublic):
    product: ProductPublic
    commission_amount: Decimal


# ---- invites & audit ------------------------------------------------------

class InviteCreate(BaseModel):
    barber_id: int


class InviteCreated(BaseModel):
    token: str
    expires_at: datetime


class InviteValidation(BaseModel):
    valid: bool
    barber_id: int
    expires_at: datetime


class InviteUse(BaseModel):
    token: str
    username: str
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: str


class ActionLogPublic(ORMModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity: str
    entity_id: Optional[int] = None
    details: Optional[str] = None
    created_at: datetime


# ---- client records -------------------------------------------------------

class ClientProfileUpdate(BaseModel):
    birthdate: Optional[LocalDatetime] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None
    referral_source: Optional[str] = None
    last_visit: Optional[LocalDatetime] = None


class ClientProfilePublic(ORMModel):
    id: int
    user_id: int
    birthdate: Optional[datetime] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None
    referral_source: Optional[str] = None
    last_visit: Optional[datetime] = None
    created_at: datetime


class ClientNoteCreate(BaseModel):
    note: str = Field(min_length=1)
    # required when an admin writes the note
    barber_id: Optional[int] = None
    appointment_id: Optional[int] = None


class ClientNotePublic(ORMModel):
    id: int
    client_id: int
    barber_id: int
    note: str
    appointment_id: Optional[int] = None
    created_at: datetime


class FavoriteServiceCreate(BaseModel):
    service_id: int


class FavoriteServicePublic(ORMModel):
    id: int
    client_id: int
    service_id: int
    created_at: datetime


class FavoriteServiceDetail(FavoriteServicePublic):
    service: ServicePublic


class ClientSummary(UserPublic):
    last_visit: Optional[datetime] = None


class ClientDetail(ClientSummary):
    profile: Optional[ClientProfilePublic] = None
    preferences: dict = {}
    notes: List[ClientNotePublic] = []
    favorite_services: List[FavoriteServiceDetail] = []
    appointments: List[AppointmentPublic] = []


# ---- reports --------------------------------------------------------------

class ReportPeriod(str, Enum):
    day = "day"
    week = "week"
    month = "month"
    year = "year"


class ChartPoint(BaseModel):
    label: str
    amount: Decimal


class EarningsReport(BaseModel):
    barber_id: int
    period: ReportPeriod
    start: datetime
    end: datetime
    total: Decimal
    previous: Decimal
    change: int  # whole percent versus the previous period; 0 when there is none
    chart_data: List[ChartPoint]


class BarberDashboard(BaseModel):
    barber_id: int
    monthly_earnings: Decimal
    services_count: int
    next_payment_date: Optional[datetime] = None
    previous_month_growth: int
    sales_chart: List[ChartPoint]


class DashboardStats(BaseModel):
    sales: Decimal
    appointments: int
    pending_payments: Decimal
    new_clients: int
    sales_trend: int
    appointments_trend: int
    pending_payments_trend: int
    new_clients_trend: int


class Dashboard(BaseModel):
    period: ReportPeriod
    stats: DashboardStats
    sales_chart: List[ChartPoint]


class TopBarber(BaseModel):
    barber: BarberCard
    services_count: int
    revenue: Decimal


class PopularService(BaseModel):
    service: ServicePublic
    times_performed: int
    revenue: Decimal
