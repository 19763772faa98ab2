from typing import List, Optional

from pydantic import BaseModel, Field

from skillbench.schemas.progress import PrivacySettings


class AnalysisRequest(BaseModel):
    values: List[float] = Field(..., description="Numeric sample to analyze")


class ObservationRequest(BaseModel):
    privacy: PrivacySettings = PrivacySettings()
    region: Optional[str] = Field(None, max_length=64)


class ObservationResponse(BaseModel):
    user_id: str
    recorded: int
