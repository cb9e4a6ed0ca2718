"""API v1 blueprint initialization."""
from . import auth, research

__all__ = ['auth', 'research']
