"""Per-tenant branding settings."""
from sqlalchemy import Column, String

from .base import BaseModel


class TenantSettings(BaseModel):
    """Branding and email settings for one tenant. Unset fields fall back to defaults."""

    __tablename__ = 'tenant_settings'

    tenant_id = Column(String(64), unique=True, nullable=False, index=True)
    site_name = Column(String(200))
    site_url = Column(String(500))
    message_sign_off = Column(String(200))
    email_from = Column(String(255))
    site_image = Column(String(500))

    EDITABLE_FIELDS = ('site_name', 'site_url', 'message_sign_off', 'email_from', 'site_image')
