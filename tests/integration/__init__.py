from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from visitorhub.context import RequestContext
from tests import random_name


def insert_context(session: Session, ctx: RequestContext) -> None:
    """컨텍스트의 테넌트와 사용자를 DB에 저장합니다."""
    assert ctx.current_tenant and ctx.current_user
    session.execute(
        text(
            "INSERT INTO tenant (id, name, url, plan, plan_status)"
            " VALUES (:id, :name, :url, 'free', 'active')"
        ),
        dict(id=ctx.tenant_id, name=ctx.current_tenant.name, url=random_name("url")),
    )
    session.execute(
        text(
            'INSERT INTO "user" (id, email, first_name, email_verified)'
            " VALUES (:id, :email, 'tester', 0)"
        ),
        dict(id=ctx.user_id, email=ctx.current_user.email),
    )
    session.commit()


def insert_visitor(
    session: Session, tenant_id: str, id: str, first_name: str, email: Optional[str] = None
) -> None:
    session.execute(
        text(
            "INSERT INTO visitor (id, tenant_id, first_name, email)"
            " VALUES (:id, :tenant_id, :first_name, :email)"
        ),
        dict(id=id, tenant_id=tenant_id, first_name=first_name, email=email),
    )
    session.commit()


def count_rows(session: Session, table: str) -> int:
    [[count]] = session.execute(text(f"SELECT count(*) FROM {table}"))
    return count
