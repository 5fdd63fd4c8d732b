import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, Integer
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from gridpulse.db.base import Base


class OptimizationType(str, enum.Enum):
    power_flow = "power_flow"
    topology = "topology"
    voltage = "voltage"


class NetworkOptimization(Base):
    """A stored rule-evaluation run with its inputs and full result payload."""

    __tablename__ = "network_optimizations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    optimization_type: Mapped[OptimizationType] = mapped_column(
        Enum(OptimizationType, name="optimizationtype"), nullable=False
    )
    input_parameters: Mapped[dict] = mapped_column(JSON, nullable=False)
    output_results: Mapped[dict] = mapped_column(JSON, nullable=False)
    recommendation_count: Mapped[int] = mapped_column(Integer, nullable=False)
    savings_estimated: Mapped[int] = mapped_column(Integer, nullable=False)
    execution_time_ms: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
