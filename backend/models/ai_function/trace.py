import uuid
from sqlalchemy import Column, String, Integer, Boolean, Float, Text, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import UUID

from ..base import Base


class AIFunctionTrace(Base):
    """
    One row per apply call of an AI function: who asked, what was asked,
    and how the batch ended.
    """
    __tablename__ = 'ai_function_traces'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    function_name = Column(String(100), index=True, nullable=False)

    # Background of the apply call
    org_id = Column(Integer, index=True, nullable=True)
    project_id = Column(Integer, index=True, nullable=True)
    user_id = Column(String(64), nullable=True)

    requirement_count = Column(Integer, nullable=False, default=0)
    need_adjust = Column(Boolean, nullable=False, default=False)

    # 'Completed' or 'Failed'
    status = Column(String(20), nullable=False)
    result_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    error_msg = Column(Text, nullable=True)

    # Requirements as received, used to replay a batch by hand
    function_params = Column(JSON, nullable=True)

    duration_seconds = Column(Float, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AIFunctionTrace(id='{self.id}', function='{self.function_name}', status='{self.status}')>"
