from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Establishment(Base):
    __tablename__ = "establishments"

    id = Column(Integer, primary_key=True, index=True)
    # The owner is the barber that receives every appointment booked here
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    city = Column(String(255), nullable=True)
    deleted_at = Column(DateTime, nullable=True)  # Soft delete
    created_at = Column(DateTime, server_default=func.now())

    owner = relationship("User")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, default=True, nullable=False)


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    creator_establishment_id = Column(Integer, ForeignKey("establishments.id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    billing_cycle = Column(String(20), nullable=False)  # monthly, quarterly, annual
    trial_days = Column(Integer, default=0, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    creator_establishment = relationship("Establishment")
    benefits = relationship("PlanBenefit", back_populates="plan")


class PlanBenefit(Base):
    """Conditional discount attached to a plan, evaluated on every booking"""

    __tablename__ = "plan_benefits"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False, index=True)
    benefit_type = Column(String(30), nullable=False)  # percent_discount, fixed_discount
    # NULL targets every service
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    condition_type = Column(String(30), nullable=False)  # always, first_use, after_n_uses, weekday
    condition_value = Column(Integer, nullable=True)  # N for after_n_uses, 0=Sunday..6 for weekday
    discount_percent = Column(Numeric(5, 2), nullable=True)
    discount_fixed = Column(Numeric(10, 2), nullable=True)
    order = Column("sort_order", Integer, default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    plan = relationship("Plan", back_populates="benefits")
    service = relationship("Service")


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        # One benefit-granting subscription per user and establishment
        Index(
            "uq_subscriptions_user_establishment_live",
            "user_id",
            "establishment_id",
            unique=True,
            postgresql_where=text("status IN ('active', 'free_trial')"),
            sqlite_where=text("status IN ('active', 'free_trial')"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False)
    establishment_id = Column(Integer, ForeignKey("establishments.id"), nullable=False)
    status = Column(String(20), nullable=False)  # active, free_trial, overdue, cancelled
    start_date = Column(Date, nullable=False)
    next_billing_date = Column(Date, nullable=False)
    current_period_price = Column(Numeric(10, 2), nullable=False)  # Locked-in price
    payment_method_id = Column(Integer, nullable=True)
    cancelled_by_user = Column(Boolean, default=False, nullable=False)
    cancellation_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    plan = relationship("Plan")
    establishment = relationship("Establishment")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # A barber's slot is exclusive while the appointment is still live
        Index(
            "uq_appointments_barber_slot",
            "barber_id",
            "scheduled_at",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    barber_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    establishment_id = Column(Integer, ForeignKey("establishments.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed, cancelled
    created_at = Column(DateTime, server_default=func.now())

    establishment = relationship("Establishment")
    payments = relationship("Payment", back_populates="appointment")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    establishment_id = Column(Integer, ForeignKey("establishments.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="BRL", nullable=False)
    payment_method_id = Column(Integer, nullable=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, complete, refunded
    due_date = Column(Date, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment", back_populates="payments")
    subscription = relationship("Subscription")


class ServiceUsage(Base):
    """History of services consumed under a subscription"""

    __tablename__ = "service_usages"

    id = Column(Integer, primary_key=True, index=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False)
    amount_paid = Column(Numeric(10, 2), nullable=False)
    applied_benefit_id = Column(Integer, ForeignKey("plan_benefits.id"), nullable=True)
    used_at = Column(DateTime, server_default=func.now(), nullable=False)
