"""Tenant branding settings with field-by-field defaults."""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional, Union

from community.models import TenantSettings
from community.models.base import db
from community.services.cache_service import CacheService

logger = logging.getLogger(__name__)

DEFAULT_SITE_NAME = 'The Community Platform'
DEFAULT_SITE_URL = 'https://community.preciousplastic.com'
DEFAULT_MESSAGE_SIGN_OFF = 'One Army'
DEFAULT_EMAIL_FROM = 'hello@onearmy.earth'
DEFAULT_SITE_IMAGE = 'https://community.preciousplastic.com/assets/img/one-army-logo.png'


@dataclass(frozen=True)
class TenantSettingsData:
    """Resolved branding for one tenant."""

    site_name: str = DEFAULT_SITE_NAME
    site_url: str = DEFAULT_SITE_URL
    message_sign_off: str = DEFAULT_MESSAGE_SIGN_OFF
    email_from: str = DEFAULT_EMAIL_FROM
    site_image: str = DEFAULT_SITE_IMAGE

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def build_tenant_settings(row: Optional[Union[TenantSettings, Mapping[str, Any]]]) -> TenantSettingsData:
    """
    Apply defaults to a raw settings row.

    Args:
        row: A ``TenantSettings`` instance, a mapping with the same field
            names, or ``None`` when the tenant has no row

    Returns:
        Settings where every missing or empty field carries its default
    """
    defaults = TenantSettingsData()
    if row is None:
        return defaults

    def pick(field: str) -> str:
        if isinstance(row, Mapping):
            value = row.get(field)
        else:
            value = getattr(row, field, None)
        return value or getattr(defaults, field)

    return TenantSettingsData(
        site_name=pick('site_name'),
        site_url=pick('site_url'),
        message_sign_off=pick('message_sign_off'),
        email_from=pick('email_from'),
        site_image=pick('site_image'),
    )


class TenantSettingsRepository:
    """Loads the settings of a single tenant, optionally through Redis."""

    def __init__(self, tenant_id: str, cache: Optional[CacheService] = None, ttl: int = 300):
        self.tenant_id = tenant_id
        self.cache = cache
        self.ttl = ttl

    @property
    def cache_key(self) -> str:
        return f"tenant_settings:{self.tenant_id}"

    def get_settings(self) -> TenantSettingsData:
        """Return the tenant's settings with defaults applied."""
        if self.cache:
            cached = self.cache.get(self.cache_key)
            if cached:
                return build_tenant_settings(cached)

        row = TenantSettings.query.filter_by(tenant_id=self.tenant_id).first()
        settings = build_tenant_settings(row)

        if self.cache:
            self.cache.set(self.cache_key, settings.to_dict(), ttl=self.ttl)
        return settings

    def update_setting(self, field: str, value: Optional[str]) -> TenantSettingsData:
        """Set one field on the tenant's row, creating the row when missing."""
        if field not in TenantSettings.EDITABLE_FIELDS:
            raise ValueError(f"Unknown tenant setting '{field}'")

        row = TenantSettings.query.filter_by(tenant_id=self.tenant_id).first()
        if row is None:
            row = TenantSettings(tenant_id=self.tenant_id)
            db.session.add(row)
        setattr(row, field, value or None)
        db.session.commit()

        if self.cache:
            self.cache.delete(self.cache_key)
        logger.info(f"Tenant {self.tenant_id} setting {field} updated")
        return build_tenant_settings(row)
