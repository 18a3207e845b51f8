# api/signals/models.py
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SignalType(str, Enum):
    DUPLICATE_FRAME = "duplicate_frame"
    PRICE_OUTLIER = "price_outlier"
    NEGATIVE_STOCK = "negative_stock"


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class Signal(BaseModel):
    type: SignalType
    severity: Severity
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class SignalsResponse(BaseModel):
    signals: list[Signal]
    count: int
