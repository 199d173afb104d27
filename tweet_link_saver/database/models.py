from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ApiKeyRecord(Base):
    """A user's twitterapi.io key, encrypted at rest, keyed by Firebase uid"""
    __tablename__ = 'api_keys'

    user_id = Column(String(128), primary_key=True)
    encrypted_value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<ApiKeyRecord(user_id={self.user_id}, updated_at={self.updated_at})>"
