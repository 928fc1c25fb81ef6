"""Storage access for the barbershop domain.

Every service talks to a :class:`Repository`. Two backends implement it:

* :class:`SqlRepository` wraps one SQLModel ``Session`` (production).
* :class:`InMemoryRepository` keeps rows in dictionaries (tests, local demos).

Both expose ``transaction()`` as a unit of work. Scopes nest: only the
outermost one commits, and any exception rolls the whole scope back.
Single ``add``/``delete`` calls made outside a scope run in their own.
"""

import logging
import operator
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from .errors import Conflict
from .models import (
    ActionLog,
    Appointment,
    Barber,
    BarberInvite,
    ClientFavoriteService,
    ClientNote,
    ClientProfile,
    Commission,
    CompletedService,
    Payment,
    Product,
    ProductCommission,
    ProductSale,
    User,
)
from .schemas import AppointmentStatus, UserRole

logger = logging.getLogger(__name__)

# (field, op, value); "not_true" matches False and NULL
Criterion = tuple

OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


class Repository:
    """Backend-neutral queries built on ``_query``/``_get``/``_add``/``_delete``."""

    # ---- unit of work -------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["Repository"]:
        raise NotImplementedError

    # ---- backend primitives -------------------------------------------

    def _get(self, model, pk: int):
        raise NotImplementedError

    def _add(self, obj: SQLModel) -> None:
        raise NotImplementedError

    def _delete(self, obj: SQLModel) -> None:
        raise NotImplementedError

    def _query(
        self,
        model,
        criteria: Sequence[Criterion] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list:
        raise NotImplementedError

    # ---- generic CRUD -------------------------------------------------

    def get(self, model, pk: Optional[int]):
        if pk is None:
            return None
        return self._get(model, pk)

    def add(self, obj):
        """Insert or update ``obj``; its ``id`` is set on return."""
        with self.transaction():
            self._add(obj)
        return obj

    def delete(self, obj) -> None:
        with self.transaction():
            self._delete(obj)

    def first(self, model, criteria: Sequence[Criterion], **kwargs):
        rows = self._query(model, criteria, limit=1, **kwargs)
        return rows[0] if rows else None

    def find(self, model, criteria: Sequence[Criterion] = (), order_by: str = "id", descending: bool = False):
        return self._query(model, criteria, order_by=order_by, descending=descending)

    # ---- users & barbers ----------------------------------------------

    def user_by_email(self, email: str) -> Optional[User]:
        return self.first(User, [("email", "==", email)])

    def user_by_username(self, username: str) -> Optional[User]:
        return self.first(User, [("username", "==", username)])

    def user_by_phone(self, phone: str) -> Optional[User]:
        return self.first(User, [("phone", "==", phone)])

    def users(self, role: Optional[UserRole] = None) -> list[User]:
        criteria = [("role", "==", role)] if role is not None else []
        return self.find(User, criteria)

    def barber_by_user_id(self, user_id: int) -> Optional[Barber]:
        return self.first(Barber, [("user_id", "==", user_id)])

    def barbers(self, active_only: bool = False) -> list[Barber]:
        criteria = [("active", "==", True)] if active_only else []
        return self.find(Barber, criteria)

    # ---- catalog & commissions ----------------------------------------

    def commission_for(self, barber_id: int, service_id: int) -> Optional[Commission]:
        return self.first(Commission, [("barber_id", "==", barber_id), ("service_id", "==", service_id)])

    def product_commission_for(self, barber_id: int, product_id: int) -> Optional[ProductCommission]:
        return self.first(
            ProductCommission, [("barber_id", "==", barber_id), ("product_id", "==", product_id)]
        )

    def product_by_sku(self, sku: str) -> Optional[Product]:
        return self.first(Product, [("sku", "==", sku)])

    # ---- appointments -------------------------------------------------

    def appointments(
        self,
        barber_id: Optional[int] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        exclude_canceled: bool = False,
    ) -> list[Appointment]:
        """Appointments ordered by date; ``start`` inclusive, ``end`` exclusive."""
        criteria = []
        if barber_id is not None:
            criteria.append(("barber_id", "==", barber_id))
        if client_id is not None:
            criteria.append(("client_id", "==", client_id))
        if start is not None:
            criteria.append(("date", ">=", start))
        if end is not None:
            criteria.append(("date", "<", end))
        if exclude_canceled:
            criteria.append(("status", "!=", AppointmentStatus.canceled))
        return self.find(Appointment, criteria, order_by="date")

    def upcoming_appointments(self, now: datetime) -> list[Appointment]:
        return self.find(
            Appointment,
            [("date", ">", now), ("status", "!=", AppointmentStatus.canceled)],
            order_by="date",
        )

    # ---- completed services -------------------------------------------

    def completed_services(
        self,
        barber_id: Optional[int] = None,
        validated: Optional[bool] = None,
        after: Optional[datetime] = None,
        appointment_id: Optional[int] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[CompletedService]:
        criteria = []
        if barber_id is not None:
            criteria.append(("barber_id", "==", barber_id))
        if validated is True:
            criteria.append(("validated_by_admin", "==", True))
        elif validated is False:
            criteria.append(("validated_by_admin", "not_true", None))
        if after is not None:
            criteria.append(("date", ">", after))
        if appointment_id is not None:
            criteria.append(("appointment_id", "==", appointment_id))
        if client_id is not None:
            criteria.append(("client_id", "==", client_id))
        if start is not None:
            criteria.append(("date", ">=", start))
        if end is not None:
            criteria.append(("date", "<", end))
        return self._query(
            CompletedService, criteria, order_by="date", descending=descending, limit=limit, offset=offset
        )

    # ---- product sales ------------------------------------------------

    def product_sales(
        self,
        barber_id: Optional[int] = None,
        validated: Optional[bool] = None,
        after: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        descending: bool = True,
    ) -> list[ProductSale]:
        criteria = []
        if barber_id is not None:
            criteria.append(("barber_id", "==", barber_id))
        if validated is True:
            criteria.append(("validated_by_admin", "==", True))
        elif validated is False:
            criteria.append(("validated_by_admin", "not_true", None))
        if after is not None:
            criteria.append(("date", ">", after))
        if start is not None:
            criteria.append(("date", ">=", start))
        if end is not None:
            criteria.append(("date", "<", end))
        return self.find(ProductSale, criteria, order_by="date", descending=descending)

    # ---- payments -----------------------------------------------------

    def payments(self, barber_id: Optional[int] = None) -> list[Payment]:
        criteria = [("barber_id", "==", barber_id)] if barber_id is not None else []
        return self.find(Payment, criteria, order_by="created_at", descending=True)

    def latest_payment(self, barber_id: int) -> Optional[Payment]:
        return self.first(Payment, [("barber_id", "==", barber_id)], order_by="period_end", descending=True)

    # ---- clients ------------------------------------------------------

    def client_profile_for(self, user_id: int) -> Optional[ClientProfile]:
        return self.first(ClientProfile, [("user_id", "==", user_id)])

    def client_notes(self, client_id: int) -> list[ClientNote]:
        return self.find(ClientNote, [("client_id", "==", client_id)], order_by="created_at", descending=True)

    def client_favorites(self, client_id: int) -> list[ClientFavoriteService]:
        return self.find(ClientFavoriteService, [("client_id", "==", client_id)])

    def favorite_for(self, client_id: int, service_id: int) -> Optional[ClientFavoriteService]:
        return self.first(
            ClientFavoriteService, [("client_id", "==", client_id), ("service_id", "==", service_id)]
        )

    # ---- invites & audit ----------------------------------------------

    def invite_by_token(self, token: str) -> Optional[BarberInvite]:
        return self.first(BarberInvite, [("token", "==", token)])

    def action_logs(
        self, entity: Optional[str] = None, entity_id: Optional[int] = None, limit: Optional[int] = None
    ) -> list[ActionLog]:
        criteria = []
        if entity is not None:
            criteria.append(("entity", "==", entity))
        if entity_id is not None:
            criteria.append(("entity_id", "==", entity_id))
        return self._query(ActionLog, criteria, order_by="created_at", descending=True, limit=limit)


class SqlRepository(Repository):
    def __init__(self, session: Session):
        self.session = session
        self._depth = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("Integrity error, transaction rolled back: %s", exc.orig)
            raise Conflict("Record conflicts with an existing one") from exc
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._depth = 0

    def _get(self, model, pk):
        return self.session.get(model, pk)

    def _add(self, obj):
        self.session.add(obj)
        self.session.flush()  # fills obj.id

    def _delete(self, obj):
        self.session.delete(obj)
        self.session.flush()

    def _query(self, model, criteria=(), order_by=None, descending=False, limit=None, offset=0):
        stmt = select(model)
        for field, op, value in criteria:
            column = getattr(model, field)
            if op == "not_true":
                stmt = stmt.where(or_(column.is_(None), column == False))  # noqa: E712
            else:
                stmt = stmt.where(OPERATORS[op](column, value))
        if order_by:
            column = getattr(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column)
            stmt = stmt.order_by(model.id.desc() if descending else model.id)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.exec(stmt).all())


class MemoryStore:
    """Rows and id counters shared by every InMemoryRepository bound to it.

    ``committed`` holds each row's field values as of its last commit; a
    rolled-back scope restores only the rows it touched from there.
    ``lock`` serialises units of work across threads.
    """

    def __init__(self):
        self.rows = defaultdict(dict)   # model -> {id: obj}
        self.ids = defaultdict(int)     # model -> last id
        self.committed = {}             # (model, id) -> {field: value}
        self.lock = threading.RLock()


def _values(obj) -> dict:
    return {f: getattr(obj, f) for f in type(obj).model_fields}


class InMemoryRepository(Repository):
    def __init__(self, store: Optional[MemoryStore] = None):
        self.store = store if store is not None else MemoryStore()
        self._depth = 0
        self._touched = {}  # (model, id) -> obj written in the open scope

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        with self.store.lock:
            self._depth = 1
            self._touched = {}
            try:
                yield self
            except Exception:
                self._rollback()
                raise
            else:
                self._commit()
            finally:
                self._depth = 0
                self._touched = {}

    def _commit(self):
        for (model, pk), obj in self._touched.items():
            if pk in self.store.rows[model]:
                self.store.committed[(model, pk)] = _values(obj)
            else:
                self.store.committed.pop((model, pk), None)

    def _rollback(self):
        for (model, pk), obj in self._touched.items():
            values = self.store.committed.get((model, pk))
            if values is None:
                self.store.rows[model].pop(pk, None)
                continue
            for field, value in values.items():
                setattr(obj, field, value)
            self.store.rows[model][pk] = obj

    def _get(self, model, pk):
        return self.store.rows[model].get(pk)

    def _add(self, obj):
        model = type(obj)
        if obj.id is None:
            self.store.ids[model] += 1
            obj.id = self.store.ids[model]
        else:
            self.store.ids[model] = max(self.store.ids[model], obj.id)
        self.store.rows[model][obj.id] = obj
        self._touched.setdefault((model, obj.id), obj)

    def _delete(self, obj):
        self.store.rows[type(obj)].pop(obj.id, None)
        self._touched.setdefault((type(obj), obj.id), obj)

    def _query(self, model, criteria=(), order_by=None, descending=False, limit=None, offset=0):
        def matches(obj):
            for field, op, value in criteria:
                current = getattr(obj, field)
                if op == "not_true":
                    if current is True:
                        return False
                elif current is None and op not in ("==", "!="):
                    return False
                elif not OPERATORS[op](current, value):
                    return False
            return True

        rows = [obj for obj in self.store.rows[model].values() if matches(obj)]
        if order_by:
            rows.sort(key=lambda obj: (getattr(obj, order_by), obj.id), reverse=descending)
        rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return rows
