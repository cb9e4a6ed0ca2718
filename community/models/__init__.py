"""Database models for the Community Platform."""
from .user import User, Profile
from .message import Message
from .tenant import TenantSettings
from .research import ResearchItem, ResearchUpdate

__all__ = [
    'User',
    'Profile',
    'Message',
    'TenantSettings',
    'ResearchItem',
    'ResearchUpdate'
]
