"""Services package."""
from .cache_service import CacheService
from .email_service import EmailService, ResendEmailService, SendResult, get_email_service
from .tenant_service import TenantSettingsData, TenantSettingsRepository, build_tenant_settings
from .message_service import MessageService
from .storage_service import StorageService
from .research_service import ResearchService
from .research_client import ResearchClient

__all__ = [
    'CacheService',
    'EmailService',
    'ResendEmailService',
    'SendResult',
    'get_email_service',
    'TenantSettingsData',
    'TenantSettingsRepository',
    'build_tenant_settings',
    'MessageService',
    'StorageService',
    'ResearchService',
    'ResearchClient'
]
