# app/models/request_models.py
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # Accept camelCase (client apps) and snake_case; emit camelCase
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestCreate(_CamelModel):
    full_name: str
    contact_number: str
    room_number: str
    bed_number: Optional[str] = None
    disease: str


class StatusUpdate(_CamelModel):
    status: str


class AssignRequest(_CamelModel):
    responder_id: str = Field(validation_alias=AliasChoices("responderId", "responder_id", "nurseId"))


class AITestRequest(_CamelModel):
    disease: Optional[str] = None


class RequestOut(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    requester_id: Optional[str] = None
    full_name: str
    contact_number: str
    room_number: str
    bed_number: Optional[str] = None
    disease: str
    description: str = ""
    priority: str
    status: str
    assigned_responder_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NewRequestEvent(_CamelModel):
    """Summary pushed to responders when a request is created."""
    request_id: str
    priority: str
    disease: str
    patient_name: str
    room_number: str
    description: str
