# leadfinder/models/user.py
import uuid

from sqlalchemy import Column, String, Boolean, Uuid
from leadfinder.models.base import Base, TimestampMixin

class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255))
    is_active = Column(Boolean, default=True)

    # Profile
    company = Column(String(255))
