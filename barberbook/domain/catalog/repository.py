"""Catalog repository - Read-only lookups for services, establishments and plans"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Establishment, Plan, Service


class CatalogRepository:
    """Repository for catalog database reads"""

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        """Get a service that can still be booked"""
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.active.is_(True))
            .first()
        )

    @staticmethod
    def list_active_services(db: Session) -> list[Service]:
        """List bookable services by name"""
        return (
            db.query(Service)
            .filter(Service.active.is_(True))
            .order_by(Service.name.asc())
            .all()
        )

    @staticmethod
    def get_establishment(db: Session, establishment_id: int) -> Optional[Establishment]:
        """Get an establishment that has not been soft-deleted"""
        return (
            db.query(Establishment)
            .filter(Establishment.id == establishment_id, Establishment.deleted_at.is_(None))
            .first()
        )

    @staticmethod
    def get_plan(db: Session, plan_id: int) -> Optional[Plan]:
        """Get a plan that has not been soft-deleted"""
        return db.query(Plan).filter(Plan.id == plan_id, Plan.deleted_at.is_(None)).first()

    @staticmethod
    def get_subscribable_plan(db: Session, plan_id: int) -> Optional[Plan]:
        """Get a plan that is active and can take new subscribers"""
        return (
            db.query(Plan)
            .filter(Plan.id == plan_id, Plan.active.is_(True), Plan.deleted_at.is_(None))
            .first()
        )
