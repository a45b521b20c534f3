from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

class EvidenceCreate(BaseModel):
    file_url: str = Field(min_length=1)
    public_id: Optional[str] = None
    file_type: Optional[str] = None
    description: Optional[str] = None

class EvidenceResponse(BaseModel):
    id: str
    task_id: str
    user_id: str
    file_url: str
    public_id: Optional[str]
    file_type: Optional[str]
    description: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UploadResponse(BaseModel):
    public_id: str
    secure_url: str
    url: Optional[str] = None
    bytes: Optional[int] = None
    resource_type: Optional[str] = None
