# collection_router/models/records.py

from typing import List, Literal

from pydantic import BaseModel


class SubmissionRecord(BaseModel):
    """
    A recyclables submission as shown in the resident/admin tables.

    `date` is kept as the raw string the table holds (normally YYYY-MM-DD).
    """
    id: str = ""
    date: str
    material: str
    weight: float
    submitted_by: str = ""


SortPreset = Literal[
    "date_desc",
    "date_asc",
    "material_asc",
    "material_desc",
    "weight_desc",
    "weight_asc",
]


class SortRequest(BaseModel):
    records: List[SubmissionRecord]
    preset: SortPreset = "date_desc"


class SortResponse(BaseModel):
    preset: SortPreset
    records: List[SubmissionRecord]
