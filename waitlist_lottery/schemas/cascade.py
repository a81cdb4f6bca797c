"""
Cascade deletion report
"""

from typing import Dict, List, Optional
from datetime import datetime

from waitlist_lottery.core.saga import SagaStatus, StepStatus
from waitlist_lottery.schemas.base import BaseSchema


class CascadeStepResponse(BaseSchema):
    name: str
    required: bool
    status: StepStatus
    error: Optional[str] = None
    failures: Optional[Dict[str, str]] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class CascadeResponse(BaseSchema):
    saga_id: str
    name: str
    status: SagaStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    steps: List[CascadeStepResponse]
    children: List["CascadeResponse"] = []
