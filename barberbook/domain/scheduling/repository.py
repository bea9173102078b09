"""Scheduling repository - Database operations for appointments and usage records"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, ServiceUsage
from .status import SLOT_HOLDING_STATUSES


class SchedulingRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID"""
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_client_appointment(db: Session, appointment_id: int, client_id: int) -> Optional[Appointment]:
        """Get an appointment only if it belongs to the client"""
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.client_id == client_id)
            .first()
        )

    @staticmethod
    def find_slot_holder(
        db: Session,
        barber_id: int,
        scheduled_at: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """Live appointment holding the barber's exact slot, if any"""
        query = db.query(Appointment).filter(
            Appointment.barber_id == barber_id,
            Appointment.scheduled_at == scheduled_at,
            Appointment.status.in_(SLOT_HOLDING_STATUSES),
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.first()

    @staticmethod
    def list_busy_slots(db: Session, barber_id: int, day: date) -> list[datetime]:
        """Timestamps held by live appointments of a barber on one calendar day"""
        start = datetime.combine(day, time.min)
        rows = (
            db.query(Appointment.scheduled_at)
            .filter(
                Appointment.barber_id == barber_id,
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < start + timedelta(days=1),
                Appointment.status.in_(SLOT_HOLDING_STATUSES),
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )
        return [row.scheduled_at for row in rows]

    @staticmethod
    def list_client_appointments(db: Session, client_id: int) -> list[Appointment]:
        """Appointments of a client, latest slot first"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.establishment), joinedload(Appointment.payments))
            .filter(Appointment.client_id == client_id)
            .order_by(Appointment.scheduled_at.desc())
            .all()
        )

    @staticmethod
    def add_appointment(db: Session, **appointment_data) -> Appointment:
        """Stage an appointment inside the caller's transaction"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def add_usage(db: Session, **usage_data) -> ServiceUsage:
        """Stage a usage record inside the caller's transaction"""
        usage = ServiceUsage(**usage_data)
        db.add(usage)
        db.flush()
        return usage
