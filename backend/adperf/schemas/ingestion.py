"""
Upload response schemas.
"""
from pydantic import BaseModel, Field
from typing import List


class RejectedRowInfo(BaseModel):
    line_number: int
    missing_fields: List[str]


class IngestionResponse(BaseModel):
    """Response schema for a CSV upload"""
    outcome: str
    message: str
    total_rows: int
    accepted_rows: int
    rejected_rows: List[RejectedRowInfo] = Field(default_factory=list)
    coerced_values: int = 0
    skipped_existing: int = 0
    written: int = 0
    rejected_by_store: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
