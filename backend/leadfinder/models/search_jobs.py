# leadfinder/models/search_jobs.py
import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Uuid
from leadfinder.models.base import Base, TimestampMixin


class SearchJobStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_STATUSES = (SearchJobStatus.PENDING, SearchJobStatus.RUNNING)

# pending -> running -> completed | failed; a pending job may also be force-failed.
# Only a job that actually ran can complete.
ALLOWED_TRANSITIONS = {
    SearchJobStatus.PENDING: {SearchJobStatus.RUNNING, SearchJobStatus.FAILED},
    SearchJobStatus.RUNNING: {SearchJobStatus.COMPLETED, SearchJobStatus.FAILED},
    SearchJobStatus.COMPLETED: set(),
    SearchJobStatus.FAILED: set(),
}


def can_transition(current, target) -> bool:
    return SearchJobStatus(target) in ALLOWED_TRANSITIONS[SearchJobStatus(current)]


def allowed_sources(target) -> list:
    """States a job may be in for a move to `target`, in table order."""
    target = SearchJobStatus(target)
    return [current for current, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class SearchJob(Base, TimestampMixin):
    __tablename__ = "search_jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Input
    query = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    country = Column(String(2), nullable=False, default="AT")
    company_type = Column(String(20), nullable=False, default="all")

    # State
    status = Column(String(20), nullable=False, default=SearchJobStatus.PENDING.value, index=True)
    results_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
