"""Integration repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Integration


class IntegrationRepository:
    @staticmethod
    def get_integrations(db: Session) -> list[Integration]:
        return db.query(Integration).order_by(Integration.id.asc()).all()

    @staticmethod
    def get_enabled_integrations(db: Session) -> list[Integration]:
        return db.query(Integration).filter(Integration.enabled.is_(True)).all()

    @staticmethod
    def get_integration(db: Session, integration_id: str) -> Optional[Integration]:
        return db.query(Integration).filter(Integration.id == integration_id).first()

    @staticmethod
    def add_integrations(db: Session, integrations: list[Integration]) -> None:
        db.add_all(integrations)
        db.commit()

    @staticmethod
    def update_integration(db: Session, integration: Integration, **updates) -> Integration:
        for key, value in updates.items():
            if hasattr(integration, key):
                setattr(integration, key, value)
        db.commit()
        db.refresh(integration)
        return integration
