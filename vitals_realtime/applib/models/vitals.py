from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

# === VitalReading ===
# Lenient view of a vital update payload for display. Listeners always receive the raw payload.
class VitalReading(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    type: Optional[str] = None
    practice_id: Optional[int | str] = Field(default=None, alias='practiceId')
    patient_id: Optional[int | str] = Field(default=None, alias='patientId')
    reading_type: Optional[str] = Field(default=None, alias='readingType')
    SYS: Optional[float] = None
    DIA: Optional[float] = None
    PUL: Optional[float] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["VitalReading"]:
        """Return None for payloads that are not JSON objects."""
        if not isinstance(payload, dict):
            return None
        return cls.model_validate(payload)

    def summary(self) -> str:
        parts = []
        if self.SYS is not None and self.DIA is not None:
            parts.append(f"BP {self.SYS:g}/{self.DIA:g}")
        if self.PUL is not None:
            parts.append(f"pulse {self.PUL:g}")
        if self.reading_type:
            parts.append(self.reading_type)
        return ", ".join(parts) or "reading"
