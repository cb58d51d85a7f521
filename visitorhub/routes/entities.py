"""테넌트 엔티티(방문자, 호스트, 방문 일정, 문진표) CRUD 엔드포인트.

모든 엔티티가 같은 모양의 엔드포인트를 가지므로 :func:`register_entity_routes`
로 한 번에 등록합니다. ``<field>_range=start,end`` 형식의 쿼리 파라메터는 범위
검색으로 처리됩니다.
"""
from datetime import datetime
from typing import Any, Optional, Type

from fastapi import Depends, Query, Request
from pydantic import BaseModel, create_model

from visitorhub.api import app
from visitorhub.context import RequestContext
from visitorhub.core import AbstractUnitOfWork, FindQuery, NotFoundError
from visitorhub.routes.deps import get_uow, require
from visitorhub.schema import (
    AutocompleteOut,
    CDCQuestionnaireIn,
    CDCQuestionnaireOut,
    HostIn,
    HostOut,
    MeetingIn,
    MeetingOut,
    VisitorIn,
    VisitorOut,
)
from visitorhub.services import (
    CDCQuestionnaireService,
    EntityService,
    HostService,
    MeetingService,
    VisitorService,
)

PAGING_PARAMS = ("limit", "offset", "order_by")


def _parse_value(value: str) -> Any:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return value


def parse_filter(params: dict[str, str]) -> dict[str, Any]:
    """쿼리 파라메터를 :class:`FindQuery` 의 필터로 변환합니다."""
    result: dict[str, Any] = {}
    for name, value in params.items():
        if name in PAGING_PARAMS:
            continue
        if name.endswith("_range"):
            start, _, end = value.partition(",")
            result[name] = (_parse_value(start), _parse_value(end))
        else:
            result[name] = value
    return result


def register_entity_routes(
    path: str,
    service_class: Type[EntityService],
    in_schema: Type[BaseModel],
    out_schema: Type[BaseModel],
    permission: str,
) -> None:
    prefix = "/api/tenant/{tenant_id}/" + path
    page_schema = create_model(
        out_schema.__name__.replace("Out", "Page"),
        rows=(list[out_schema], ...),  # type: ignore
        count=(int, ...),
    )
    import_schema = create_model(
        in_schema.__name__.replace("In", "Import"),
        data=(in_schema, ...),
        import_hash=(Optional[str], None),
    )

    @app.post(prefix, status_code=201, response_model=out_schema)
    def create(
        req: in_schema,  # type: ignore
        ctx: RequestContext = Depends(require(f"{permission}Create")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        record = service_class(uow, ctx).create(req.model_dump())
        return out_schema.model_validate(record)

    @app.post(prefix + "/import", status_code=201, response_model=out_schema)
    def import_(
        req: import_schema,  # type: ignore
        ctx: RequestContext = Depends(require(f"{permission}Import")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        record = service_class(uow, ctx).import_(req.data.model_dump(), req.import_hash)
        return out_schema.model_validate(record)

    @app.put(prefix + "/{id}", response_model=out_schema)
    def update(
        id: str,
        req: in_schema,  # type: ignore
        ctx: RequestContext = Depends(require(f"{permission}Edit")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        record = service_class(uow, ctx).update(id, req.model_dump(exclude_unset=True))
        return out_schema.model_validate(record)

    @app.delete(prefix, status_code=204)
    def destroy_all(
        ids: list[str] = Query(...),
        ctx: RequestContext = Depends(require(f"{permission}Destroy")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        service_class(uow, ctx).destroy_all(ids)

    @app.get(prefix + "/autocomplete", response_model=list[AutocompleteOut])
    def autocomplete(
        query: Optional[str] = None,
        limit: Optional[int] = None,
        ctx: RequestContext = Depends(require(f"{permission}Autocomplete")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        return service_class(uow, ctx).find_all_autocomplete(query, limit)

    @app.get(prefix, response_model=page_schema)
    def find_and_count_all(
        request: Request,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: Optional[str] = None,
        ctx: RequestContext = Depends(require(f"{permission}Read")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        query = FindQuery(
            filter=parse_filter(dict(request.query_params)),
            limit=limit,
            offset=offset,
            order_by=order_by,
        )
        rows, count = service_class(uow, ctx).find_and_count_all(query)
        return page_schema(
            rows=[out_schema.model_validate(r) for r in rows], count=count
        )

    @app.get(prefix + "/{id}", response_model=out_schema)
    def find(
        id: str,
        ctx: RequestContext = Depends(require(f"{permission}Read")),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        record = service_class(uow, ctx).find_by_id(id)
        if not record:
            raise NotFoundError(ctx.language)
        return out_schema.model_validate(record)


register_entity_routes("visitor", VisitorService, VisitorIn, VisitorOut, "visitor")
register_entity_routes("host", HostService, HostIn, HostOut, "host")
register_entity_routes("meeting", MeetingService, MeetingIn, MeetingOut, "meeting")
register_entity_routes(
    "cdc-questionnaire",
    CDCQuestionnaireService,
    CDCQuestionnaireIn,
    CDCQuestionnaireOut,
    "cdcQuestionnaire",
)
