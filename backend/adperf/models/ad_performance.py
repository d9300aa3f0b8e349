from sqlalchemy import Column, String, DateTime, Text, Float, Index, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import uuid

from adperf.database import Base


NATURAL_KEY_COLUMNS = ("ad_id", "day", "placement", "platform")


class AdPerformanceRecord(Base):
    __tablename__ = "ad_performance_data"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Campaign info
    campaign_name = Column(Text, nullable=False)
    campaign_id = Column(String(64), nullable=False)

    # Ad set info
    ad_set_name = Column(Text, nullable=False, default="")
    ad_set_id = Column(String(64), nullable=False, default="")

    # Ad info
    ad_name = Column(Text, nullable=False)
    ad_id = Column(String(64), nullable=False)

    # Targeting & placement
    placement = Column(String(128), nullable=False, default="")
    platform = Column(String(64), nullable=False, default="")

    # Status & delivery
    delivery_status = Column(String(32), nullable=False, default="")
    delivery_level = Column(String(32), nullable=False, default="")

    # Performance metrics
    reach = Column(Float, default=0)
    impressions = Column(Float, default=0)
    frequency = Column(Float, default=0)
    results = Column(Float, default=0)
    amount_spent = Column(Float, default=0)
    cost_per_result = Column(Float, default=0)
    purchase_roas = Column(Float, default=0)
    ctr_all = Column(Float, default=0)
    result_rate = Column(Float, default=0)

    # Campaign timing
    starts = Column(String(32), nullable=True)
    ends = Column(String(32), nullable=True)
    reporting_starts = Column(String(32), nullable=True)
    reporting_ends = Column(String(32), nullable=True)
    day = Column(String(10), nullable=False)  # YYYY-MM-DD

    # Attribution
    attribution_setting = Column(Text, nullable=True)
    result_type = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(*NATURAL_KEY_COLUMNS, name="uq_ad_performance_natural_key"),
        Index("ix_ad_performance_campaign_id", "campaign_id"),
        Index("ix_ad_performance_ad_set_id", "ad_set_id"),
        Index("ix_ad_performance_ad_id", "ad_id"),
        Index("ix_ad_performance_day", "day"),
        Index("ix_ad_performance_campaign_day", "campaign_id", "day"),
    )

    def __repr__(self):
        return (
            f"<AdPerformanceRecord(ad_id={self.ad_id}, day={self.day}, "
            f"placement={self.placement}, platform={self.platform})>"
        )
