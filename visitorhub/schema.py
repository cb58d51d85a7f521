"""API 요청/응답 스키마.

요청 스키마는 입력 검증만 하고, 응답 스키마는 도메인 객체의 속성을 그대로 읽어
(``from_attributes``) 직렬화합니다.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OutSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class RecordOut(OutSchema):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by_id: Optional[str] = None
    updated_by_id: Optional[str] = None


class TenantRecordOut(RecordOut):
    tenant_id: Optional[str] = None
    import_hash: Optional[str] = None


##############################################################################
# Auth
##############################################################################
class SignUpSchema(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=255)
    invitation_token: Optional[str] = None
    tenant_id: Optional[str] = None


class SignInSchema(BaseModel):
    email: str
    password: str
    invitation_token: Optional[str] = None
    tenant_id: Optional[str] = None


class TokenOut(BaseModel):
    token: str


class ChangePasswordSchema(BaseModel):
    old_password: str
    new_password: str = Field(min_length=8, max_length=255)


class EmailSchema(BaseModel):
    email: str


class PasswordResetSchema(BaseModel):
    token: str
    password: str = Field(min_length=8, max_length=255)


class VerifyEmailSchema(BaseModel):
    token: str


##############################################################################
# Tenant / User
##############################################################################
class TenantIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    url: Optional[str] = Field(default=None, max_length=50)


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    url: Optional[str] = Field(default=None, max_length=50)
    plan: Optional[str] = None


class TenantOut(RecordOut):
    name: Optional[str] = None
    url: Optional[str] = None
    plan: str
    plan_status: str


class TenantUserOut(RecordOut):
    tenant_id: str
    user_id: str
    roles: list[str]
    status: str
    invitation_token: Optional[str] = None


class UserOut(RecordOut):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    email_verified: bool = False


class CurrentUserOut(UserOut):
    tenants: list[TenantUserOut] = []


class InviteSchema(BaseModel):
    emails: list[str] = Field(min_length=1)
    roles: list[str] = []


class RolesSchema(BaseModel):
    roles: list[str]


##############################################################################
# Entities
##############################################################################
class AutocompleteOut(BaseModel):
    id: str
    label: str


class VisitorIn(BaseModel):
    first_name: str = Field(min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    middle_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=24)
    picture: Optional[str] = None


class VisitorOut(TenantRecordOut):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    picture: Optional[str] = None


class HostIn(BaseModel):
    first_name: str = Field(min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    middle_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=24)


class HostOut(TenantRecordOut):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class MeetingIn(BaseModel):
    purpose_of_visit: Optional[str] = None
    time_of_visit: Optional[datetime] = None
    visitor_id: Optional[str] = None
    host_id: Optional[str] = None


class MeetingOut(TenantRecordOut):
    purpose_of_visit: Optional[str] = None
    time_of_visit: Optional[datetime] = None
    visitor_id: Optional[str] = None
    host_id: Optional[str] = None


class CDCQuestionnaireIn(BaseModel):
    fever_or_chills: bool = False
    cough: bool = False
    shortbreath: bool = False
    fatigue: bool = False
    muscle_aches: bool = False
    headache: bool = False
    loss_of_taste: bool = False
    sore_throat: bool = False
    congestion: bool = False
    nausea: bool = False
    diarrhea: bool = False
    visitor_id: Optional[str] = None
    meeting_id: Optional[str] = None


class CDCQuestionnaireOut(TenantRecordOut):
    fever_or_chills: bool = False
    cough: bool = False
    shortbreath: bool = False
    fatigue: bool = False
    muscle_aches: bool = False
    headache: bool = False
    loss_of_taste: bool = False
    sore_throat: bool = False
    congestion: bool = False
    nausea: bool = False
    diarrhea: bool = False
    visitor_id: Optional[str] = None
    meeting_id: Optional[str] = None
    has_symptoms: bool = False
