"""도메인 모델.

모든 모델은 ORM과 무관한 ``dataclass`` 이며, :mod:`visitorhub.orm` 에서 테이블에
매핑됩니다. 모든 필드에 기본값이 있으므로 필수 입력 여부는 스키마와 DB 제약 조건으로
검사합니다.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4


def new_id() -> str:
    return str(uuid4())


class Roles:
    """테넌트 내 사용자 역할."""

    ADMIN = "admin"
    CUSTOM = "custom"
    VISITOR = "visitor"
    HOST = "host"

    @classmethod
    def values(cls) -> list[str]:
        return [cls.ADMIN, cls.CUSTOM, cls.VISITOR, cls.HOST]


class Plans:
    """구독 플랜."""

    FREE = "free"
    GROWTH = "growth"
    ENTERPRISE = "enterprise"

    @classmethod
    def values(cls) -> list[str]:
        return [cls.FREE, cls.GROWTH, cls.ENTERPRISE]


class TenantUserStatus:
    ACTIVE = "active"
    INVITED = "invited"
    EMPTY_PERMISSIONS = "empty-permissions"


@dataclass(eq=False)
class Record:
    """모든 엔티티 레코드의 공통 필드(식별자와 감사용 타임스탬프)."""

    id: str = field(default_factory=new_id)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by_id: Optional[str] = None
    updated_by_id: Optional[str] = None


@dataclass(eq=False)
class Tenant(Record):
    class Meta:
        entity_name = "tenant"
        autocomplete_fields = ("name",)

    name: Optional[str] = None
    url: Optional[str] = None
    plan: str = Plans.FREE
    plan_status: str = "active"
    plan_user_id: Optional[str] = None


@dataclass(eq=False)
class User(Record):
    class Meta:
        entity_name = "user"
        autocomplete_fields = ("full_name", "email")

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    password: Optional[str] = None
    email_verified: bool = False
    email_verification_token: Optional[str] = None
    email_verification_token_expires_at: Optional[datetime] = None
    password_reset_token: Optional[str] = None
    password_reset_token_expires_at: Optional[datetime] = None


@dataclass(eq=False)
class TenantUser(Record):
    class Meta:
        entity_name = "tenantUser"

    tenant_id: Optional[str] = None
    user_id: Optional[str] = None
    roles: list[str] = field(default_factory=list)
    status: str = TenantUserStatus.ACTIVE
    invitation_token: Optional[str] = None


@dataclass(eq=False)
class AuditLog:
    id: str = field(default_factory=new_id)
    entity_name: Optional[str] = None
    entity_id: Optional[str] = None
    tenant_id: Optional[str] = None
    action: Optional[str] = None
    values: dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None
    created_by_id: Optional[str] = None
    created_by_email: Optional[str] = None


@dataclass(eq=False)
class TenantRecord(Record):
    """테넌트에 속하는 레코드. 일괄 import 로 생성되었다면 ``import_hash`` 를 가집니다."""

    tenant_id: Optional[str] = None
    import_hash: Optional[str] = None


@dataclass(eq=False)
class Visitor(TenantRecord):
    class Meta:
        entity_name = "visitor"
        autocomplete_fields = ("first_name", "last_name")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    picture: Optional[str] = None
    """사진 URL."""


@dataclass(eq=False)
class Host(TenantRecord):
    class Meta:
        entity_name = "host"
        autocomplete_fields = ("first_name", "last_name")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(eq=False)
class Meeting(TenantRecord):
    class Meta:
        entity_name = "meeting"
        autocomplete_fields = ("purpose_of_visit",)

    purpose_of_visit: Optional[str] = None
    time_of_visit: Optional[datetime] = None
    visitor_id: Optional[str] = None
    host_id: Optional[str] = None


@dataclass(eq=False)
class CDCQuestionnaire(TenantRecord):
    """방문자 건강 문진표."""

    class Meta:
        entity_name = "cdcQuestionnaire"

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

    @property
    def has_symptoms(self) -> bool:
        return any(
            getattr(self, f.name)
            for f in fields(self)
            if f.type == "bool"
        )


def to_dict(record: Any, exclude: tuple[str, ...] = ()) -> dict[str, Any]:
    """레코드를 dict 로 변환합니다. 직렬화에 사용됩니다."""
    return {
        f.name: getattr(record, f.name)
        for f in fields(record)
        if f.name not in exclude
    }
