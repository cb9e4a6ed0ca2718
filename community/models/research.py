"""Research items and their updates."""
from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel


class ResearchItem(BaseModel):
    """Research project documented through a series of updates."""

    __tablename__ = 'research_items'

    author_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(200), nullable=False)
    slug = Column(String(220), unique=True, nullable=False, index=True)
    description = Column(Text)
    tenant_id = Column(String(64), nullable=False, index=True)
    deleted = Column(Boolean, default=False, nullable=False)

    author = relationship('User')
    updates = relationship(
        'ResearchUpdate',
        back_populates='research',
        cascade='all, delete-orphan',
        order_by='ResearchUpdate.id'
    )

    def visible_updates(self, viewer_id=None):
        """Non-deleted updates; drafts only for the author."""
        is_author = viewer_id is not None and viewer_id == self.author_id
        return [
            u for u in self.updates
            if not u.deleted and (is_author or not u.is_draft)
        ]

    def to_dict(self, viewer_id=None, include_updates=True):
        """Convert to dictionary."""
        data = {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'description': self.description,
            'author': self.author.username if self.author else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_updates:
            data['updates'] = [u.to_dict() for u in self.visible_updates(viewer_id)]
        return data


class ResearchUpdate(BaseModel):
    """One update of a research item."""

    __tablename__ = 'research_updates'

    research_id = Column(Integer, ForeignKey('research_items.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    images = Column(JSON, default=list)  # [{id, name, url, size}]
    files = Column(JSON, default=list)  # [{id, name, url, size}]
    file_link = Column(String(2000))
    video_url = Column(String(2000))
    is_draft = Column(Boolean, default=False, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)

    research = relationship('ResearchItem', back_populates='updates')

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'research_id': self.research_id,
            'title': self.title,
            'description': self.description,
            'images': self.images or [],
            'files': self.files or [],
            'file_link': self.file_link,
            'video_url': self.video_url,
            'is_draft': self.is_draft,
            'deleted': self.deleted,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
