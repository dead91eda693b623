from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DiseaseCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    symptoms: str = Field(..., min_length=1)
    causes: Optional[str] = None
    prevention: str = Field(..., min_length=1)
    treatment: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True


class DiseaseUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    symptoms: Optional[str] = None
    causes: Optional[str] = None
    prevention: Optional[str] = None
    treatment: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class CategoryBrief(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class CreatorBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class DiseasesResponse(BaseModel):
    id: int
    name: str
    description: str
    symptoms: str
    causes: Optional[str] = None
    prevention: str
    treatment: str
    category: CategoryBrief
    images: List[str]
    created_by: Optional[int] = None
    creator: Optional[CreatorBrief] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReconcileResponse(BaseModel):
    removed: List[str]
