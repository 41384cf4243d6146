from typing import Dict, List, Optional

import pydantic
from pydantic import BaseModel, Field


class SectionRecommendation(BaseModel):
    sectionId: str
    matchScore: float
    matchedKeywords: List[str] = Field(default_factory=list)
    reason: str = ""


class RecommendationAnalysis(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class RecommendationResponse(BaseModel):
    # sectionType -> ranked sections
    recommendations: Dict[str, List[SectionRecommendation]] = Field(default_factory=dict)
    overallMatchScore: float = 0
    suggestedResumeName: str = ""
    analysis: RecommendationAnalysis = Field(default_factory=RecommendationAnalysis)

    model_config = pydantic.ConfigDict(extra="ignore")


class RecommendationRequest(BaseModel):
    jobDescription: str = Field(..., min_length=1)
    resumeId: Optional[str] = None
