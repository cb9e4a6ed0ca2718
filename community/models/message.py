"""Direct messages between profiles."""
from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Message(BaseModel):
    """A message sent from one profile to another. Never edited after insert."""

    __tablename__ = 'messages'
    __table_args__ = (
        Index('ix_messages_sender_created', 'sender_id', 'created_at'),
    )

    sender_id = Column(Integer, ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    receiver_id = Column(Integer, ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    message = Column(Text, nullable=False)
    tenant_id = Column(String(64), nullable=False, index=True)

    sender = relationship('Profile', foreign_keys=[sender_id])
    receiver = relationship('Profile', foreign_keys=[receiver_id])

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'receiver_id': self.receiver_id,
            'message': self.message,
            'tenant_id': self.tenant_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
