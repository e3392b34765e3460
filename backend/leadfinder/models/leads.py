# leadfinder/models/leads.py
import uuid

from sqlalchemy import Column, Integer, String, Text, Float, JSON, ForeignKey, Uuid
from leadfinder.models.base import Base, TimestampMixin


class Lead(Base, TimestampMixin):
    __tablename__ = "leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Company Information
    company = Column(String(255), nullable=False, index=True)
    company_name = Column(String(255))
    legal_form = Column(String(50))
    employee_count = Column(Integer)
    category = Column(String(255))
    industry = Column(String(100), index=True)

    # Contact
    name = Column(String(255))
    email = Column(String(255), index=True)
    phone = Column(String(50))
    website = Column(String(500))

    # Location
    address = Column(String(500))
    street = Column(String(255))
    postal_code = Column(String(20))
    city = Column(String(255), index=True)
    country = Column(String(2), nullable=False, default="AT")

    # Decision maker
    ceo_name = Column(String(255))
    ceo_title = Column(String(50))
    ceo_first_name = Column(String(100))
    ceo_last_name = Column(String(100))
    ceo_gender = Column(String(20))  # herr, frau, divers, unbekannt
    ceo_source = Column(String(100))

    # Google Places
    google_place_id = Column(String(255), index=True)
    google_rating = Column(Float)
    google_reviews_count = Column(Integer)

    # Social profiles
    social_linkedin = Column(String(500))
    social_facebook = Column(String(500))
    social_instagram = Column(String(500))
    social_xing = Column(String(500))
    social_twitter = Column(String(500))
    social_youtube = Column(String(500))
    social_tiktok = Column(String(500))

    # Provenance
    status = Column(String(20), nullable=False, default="new")
    search_query = Column(String(255))
    search_location = Column(String(255))
    search_job_id = Column(Uuid, ForeignKey("search_jobs.id"), index=True)
    raw_data = Column(JSON)

    notes = Column(Text)
