"""User accounts and community profiles."""
from werkzeug.security import generate_password_hash, check_password_hash
from sqlalchemy import Column, String, Boolean, Text

from .base import BaseModel


class User(BaseModel):
    """Authentication account."""

    __tablename__ = 'users'

    email = Column(String(255), unique=True, index=True)
    username = Column(String(80), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Identifier from the previous identity system, kept while profiles migrate
    auth_id = Column(String(128), unique=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)

    def set_password(self, password):
        """Hash and set password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against hash."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        """Convert user to dictionary."""
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.username}>'


class Profile(BaseModel):
    """Public community profile, addressed by username."""

    __tablename__ = 'profiles'

    username = Column(String(80), unique=True, nullable=False, index=True)
    display_name = Column(String(120))
    about = Column(Text)
    auth_id = Column(String(128), index=True)
    tenant_id = Column(String(64), nullable=False, index=True)

    def to_dict(self):
        """Convert profile to dictionary."""
        return {
            'id': self.id,
            'username': self.username,
            'display_name': self.display_name,
            'about': self.about,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Profile {self.username}>'
