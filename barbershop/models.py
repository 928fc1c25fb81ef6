# barbershop/models.py

from typing import Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field

from .schemas import (
    AppointmentStatus,
    PaymentPeriod,
    PaymentStatus,
    ProductCategory,
    UserRole,
)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    password_hash: str = ""  # empty for clients created through guest booking
    role: UserRole = UserRole.client
    full_name: str
    phone: Optional[str] = Field(default=None, index=True)
    metadata_json: Optional[str] = None  # JSON-encoded preferences blob
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Barber(SQLModel, table=True):
    __tablename__ = "barbers"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, unique=True)
    nif: str
    iban: str
    payment_period: PaymentPeriod = PaymentPeriod.monthly
    active: bool = True
    calendar_visibility: str = "own"
    profile_image: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    price: Decimal = Field(max_digits=10, decimal_places=2)
    duration: int  # minutes
    active: bool = True
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Commission(SQLModel, table=True):
    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint("barber_id", "service_id", name="uq_commission_barber_service"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    percentage: Decimal = Field(max_digits=5, decimal_places=2)
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # one live booking per barber and start time; canceled rows free the slot
        Index(
            "uq_appointment_barber_live_slot",
            "barber_id",
            "date",
            unique=True,
            sqlite_where=text("status != 'canceled'"),
            postgresql_where=text("status != 'canceled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="users.id", index=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    date: datetime = Field(index=True, sa_type=DateTime)
    status: AppointmentStatus = AppointmentStatus.pending
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    period_start: datetime = Field(sa_type=DateTime)
    period_end: datetime = Field(sa_type=DateTime)
    status: PaymentStatus = PaymentStatus.pending
    payment_date: Optional[datetime] = Field(default=None, sa_type=DateTime)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class CompletedService(SQLModel, table=True):
    __tablename__ = "completed_services"

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    client_id: Optional[int] = Field(default=None, foreign_key="users.id")
    client_name: str
    price: Decimal = Field(max_digits=10, decimal_places=2)
    date: datetime = Field(index=True, sa_type=DateTime)
    appointment_id: Optional[int] = Field(default=None, foreign_key="appointments.id")
    validated_by_admin: Optional[bool] = False
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    price: Decimal = Field(max_digits=10, decimal_places=2)
    cost_price: Decimal = Field(max_digits=10, decimal_places=2)
    category: ProductCategory = ProductCategory.other
    sku: str = Field(index=True, unique=True)
    stock_quantity: int = 0
    active: bool = True
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class ProductCommission(SQLModel, table=True):
    __tablename__ = "product_commissions"
    __table_args__ = (
        UniqueConstraint("barber_id", "product_id", name="uq_product_commission_barber_product"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    product_id: int = Field(foreign_key="products.id")
    percentage: Decimal = Field(max_digits=5, decimal_places=2)
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class ProductSale(SQLModel, table=True):
    __tablename__ = "product_sales"

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    product_id: int = Field(foreign_key="products.id")
    client_id: Optional[int] = Field(default=None, foreign_key="users.id")
    client_name: str
    quantity: int = 1
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)
    date: datetime = Field(index=True, sa_type=DateTime)
    validated_by_admin: Optional[bool] = False
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class BarberInvite(SQLModel, table=True):
    __tablename__ = "barber_invites"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(index=True, unique=True)
    barber_id: int = Field(foreign_key="barbers.id")
    created_by_id: int = Field(foreign_key="users.id")
    is_used: bool = False
    expires_at: datetime = Field(sa_type=DateTime)
    used_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class ActionLog(SQLModel, table=True):
    """Append-only audit trail; rows are never updated or deleted."""

    __tablename__ = "action_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id")
    action: str
    entity: str = Field(index=True)
    entity_id: Optional[int] = None
    details: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class ClientProfile(SQLModel, table=True):
    __tablename__ = "client_profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, unique=True)
    birthdate: Optional[datetime] = Field(default=None, sa_type=DateTime)
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None
    referral_source: Optional[str] = None
    last_visit: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class ClientNote(SQLModel, table=True):
    __tablename__ = "client_notes"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="users.id", index=True)
    barber_id: int = Field(foreign_key="barbers.id")
    note: str
    appointment_id: Optional[int] = Field(default=None, foreign_key="appointments.id")
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class ClientFavoriteService(SQLModel, table=True):
    __tablename__ = "client_favorite_services"
    __table_args__ = (
        UniqueConstraint("client_id", "service_id", name="uq_client_favorite_service"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="users.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)
