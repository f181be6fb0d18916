# leaddesk/models/lead.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, Index, Text, func

from leaddesk.db.base import Base

# Column names stay camelCase so existing enroll_leads tables keep working.
LEAD_TABLE = "enroll_leads"
TIMESTAMP_INDEX = "idx_enroll_leads_timestamp"


class EnrollLead(Base):
    __tablename__ = LEAD_TABLE

    id = Column("id", Text, primary_key=True)
    timestamp = Column("timestamp", DateTime(timezone=True), nullable=False, server_default=func.now())

    # Submitted by the enroll form
    full_name = Column("fullName", Text, nullable=False)
    email = Column("email", Text, nullable=False)
    phone = Column("phone", Text, nullable=False)
    experience = Column("experience", Text, nullable=False)
    current_role = Column("currentRole", Text, nullable=False, server_default="")
    goal = Column("goal", Text, nullable=False, server_default="")
    utm_summary = Column("utmSummary", Text, nullable=False, server_default="")

    # Provenance, written once
    source_page = Column("sourcePage", Text, nullable=False, server_default="/enroll")
    client_ip = Column("clientIp", Text, nullable=False, server_default="unknown")
    user_agent = Column("userAgent", Text, nullable=False, server_default="unknown")
    action = Column("action", Text, nullable=False, server_default="request_callback")

    # Added after the first release; provisioned with ADD COLUMN
    lead_source = Column("leadSource", Text, nullable=False, server_default="Meta Ads")
    campaign_name = Column("campaignName", Text, nullable=False, server_default="")
    call_status = Column("callStatus", Text, nullable=False, server_default="Not Called")
    interest_status = Column("interestStatus", Text, nullable=False, server_default="Not Assessed")
    join_timeline = Column("joinTimeline", Text, nullable=False, server_default="")
    join_status = Column("joinStatus", Text, nullable=False, server_default="Pending")
    next_follow_up = Column("nextFollowUp", Text, nullable=False, server_default="")
    call_notes = Column("callNotes", Text, nullable=False, server_default="")
    last_contacted_at = Column("lastContactedAt", DateTime(timezone=True), nullable=True)
    # Nullable so it can be added to populated tables; backfilled from timestamp.
    updated_at = Column("updatedAt", DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(TIMESTAMP_INDEX, "timestamp"),
    )


OPTIONAL_COLUMNS = (
    "leadSource",
    "campaignName",
    "callStatus",
    "interestStatus",
    "joinTimeline",
    "joinStatus",
    "nextFollowUp",
    "callNotes",
    "lastContactedAt",
    "updatedAt",
)
