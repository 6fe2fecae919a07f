from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class SiteSettings(Base):
    """Site-wide switches edited from the admin panel. A single row."""
    __tablename__ = "site_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    site_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    maintenance_mode = Column(Boolean, default=False, nullable=False)
    signup_enabled = Column(Boolean, default=True, nullable=False)

    updated_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SiteSettings maintenance={self.maintenance_mode} signup={self.signup_enabled}>"
