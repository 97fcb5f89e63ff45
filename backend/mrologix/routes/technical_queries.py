import logging
import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..auth import get_current_user, get_optional_user
from ..database import get_db
from ..models import utcnow
from ..services import votes
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/technical-queries", tags=["technical-queries"])

SORTABLE = {
    "createdAt": models.TechnicalQuery.created_at,
    "updatedAt": models.TechnicalQuery.updated_at,
    "title": models.TechnicalQuery.title,
    "priority": models.TechnicalQuery.priority,
    "status": models.TechnicalQuery.status,
    "viewCount": models.TechnicalQuery.view_count,
    "upvotes": models.TechnicalQuery.upvotes,
}

RESPONSE_ORDER = (
    models.TechnicalQueryResponse.is_accepted_answer.desc(),
    models.TechnicalQueryResponse.upvotes.desc(),
    models.TechnicalQueryResponse.created_at.asc(),
)


def _query_options():
    return (
        selectinload(models.TechnicalQuery.created_by),
        selectinload(models.TechnicalQuery.resolved_by),
        selectinload(models.TechnicalQuery.responses).selectinload(models.TechnicalQueryResponse.created_by),
    )


def _get_query(db: Session, query_id: UUID) -> models.TechnicalQuery:
    technical_query = (
        db.query(models.TechnicalQuery)
        .options(*_query_options())
        .filter(models.TechnicalQuery.id == query_id)
        .first()
    )
    if not technical_query:
        raise HTTPException(status_code=404, detail="Technical query not found")
    return technical_query


def _ordered_responses(db: Session, query_id: UUID):
    return (
        db.query(models.TechnicalQueryResponse)
        .options(selectinload(models.TechnicalQueryResponse.created_by))
        .filter(models.TechnicalQueryResponse.technical_query_id == query_id)
        .order_by(*RESPONSE_ORDER)
        .all()
    )


def _detail(db: Session, technical_query: models.TechnicalQuery) -> dict:
    data = schemas.serialize(schemas.TechnicalQueryOut, technical_query)
    data["responses"] = schemas.serialize_all(
        schemas.TechnicalQueryResponseOut, _ordered_responses(db, technical_query.id)
    )
    return data


def _require_author(technical_query: models.TechnicalQuery, user: models.User, verb: str):
    if technical_query.created_by_id != user.id:
        raise HTTPException(status_code=403, detail=f"You can only {verb} your own queries")


def _validated(payload: schemas.TechnicalQueryCreate) -> tuple[str, str]:
    title = (payload.title or "").strip()
    description = (payload.description or "").strip()
    if not title or not description:
        raise HTTPException(status_code=400, detail="Title and description are required")
    return title, description


def _vote_type(payload: schemas.VoteRequest) -> str:
    if payload.vote_type not in votes.VOTE_TYPES:
        raise HTTPException(status_code=400, detail="Invalid vote type. Must be UP or DOWN")
    return payload.vote_type


@router.get("")
def list_queries(
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    query = db.query(models.TechnicalQuery)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                models.TechnicalQuery.title.ilike(pattern),
                models.TechnicalQuery.description.ilike(pattern),
            )
        )
    if category:
        query = query.filter(models.TechnicalQuery.category == category)
    if status:
        query = query.filter(models.TechnicalQuery.status == status)
    if priority:
        query = query.filter(models.TechnicalQuery.priority == priority)

    total = query.count()
    column = SORTABLE.get(sort_by, models.TechnicalQuery.created_at)
    ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
    items = (
        query.options(*_query_options())
        .order_by(ordering)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = schemas.Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))
    return {
        "success": True,
        "data": {
            "queries": schemas.serialize_all(schemas.TechnicalQueryOut, items),
            "pagination": pagination.model_dump(by_alias=True),
        },
    }


@router.post("", status_code=201)
def create_query(
    payload: schemas.TechnicalQueryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    title, description = _validated(payload)
    technical_query = models.TechnicalQuery(
        title=title,
        description=description,
        category=payload.category or None,
        priority=payload.priority or "MEDIUM",
        tags=payload.tags,
        created_by_id=current_user.id,
    )
    db.add(technical_query)
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.CREATED_TECHNICAL_QUERY,
        resource_type=activity.TECHNICAL_QUERY,
        resource_id=technical_query.id,
        resource_title=technical_query.title,
        metadata={
            "category": technical_query.category,
            "priority": technical_query.priority,
            "tags": technical_query.tags,
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Technical query created successfully",
        "data": schemas.serialize(schemas.TechnicalQueryOut, _get_query(db, technical_query.id)),
    }


@router.get("/{query_id}")
def get_query(
    query_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    technical_query = _get_query(db, query_id)
    technical_query.view_count = (technical_query.view_count or 0) + 1
    db.commit()
    return {"success": True, "data": _detail(db, technical_query)}


@router.put("/{query_id}")
def update_query(
    query_id: UUID,
    payload: schemas.TechnicalQueryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    technical_query = _get_query(db, query_id)
    _require_author(technical_query, current_user, "edit")
    title, description = _validated(payload)

    technical_query.title = title
    technical_query.description = description
    technical_query.category = payload.category or None
    technical_query.priority = payload.priority or "MEDIUM"
    technical_query.tags = payload.tags
    technical_query.status = payload.status or "OPEN"
    technical_query.is_resolved = payload.is_resolved
    technical_query.resolved_at = utcnow() if payload.is_resolved else None
    technical_query.resolved_by_id = current_user.id if payload.is_resolved else None
    technical_query.updated_by_id = current_user.id
    db.commit()

    activity.log_activity(
        db,
        current_user.id,
        activity.UPDATED_TECHNICAL_QUERY,
        resource_type=activity.TECHNICAL_QUERY,
        resource_id=technical_query.id,
        resource_title=technical_query.title,
        metadata={
            "category": technical_query.category,
            "priority": technical_query.priority,
            "status": technical_query.status,
            "isResolved": technical_query.is_resolved,
        },
        **activity.request_info(request),
    )
    db.expire_all()
    return {
        "success": True,
        "message": "Technical query updated successfully",
        "data": schemas.serialize(schemas.TechnicalQueryOut, _get_query(db, query_id)),
    }


@router.delete("/{query_id}")
def delete_query(
    query_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    technical_query = _get_query(db, query_id)
    _require_author(technical_query, current_user, "delete")
    title = technical_query.title
    try:
        db.delete(technical_query)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    activity.log_activity(
        db,
        current_user.id,
        activity.DELETED_TECHNICAL_QUERY,
        resource_type=activity.TECHNICAL_QUERY,
        resource_id=query_id,
        resource_title=title,
        metadata={},
        **activity.request_info(request),
    )
    return {"success": True, "message": "Technical query deleted successfully"}


@router.post("/{query_id}/vote")
def vote_on_query(
    query_id: UUID,
    payload: schemas.VoteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    technical_query = _get_query(db, query_id)
    result = votes.cast_vote(
        db,
        technical_query,
        models.TechnicalQueryVote,
        "technical_query_id",
        current_user.id,
        _vote_type(payload),
    )

    activity.log_activity(
        db,
        current_user.id,
        activity.QUERY_VOTE_ACTIONS[result.action],
        resource_type=activity.TECHNICAL_QUERY,
        resource_id=query_id,
        resource_title=technical_query.title,
        metadata={
            "voteType": result.vote_type,
            "action": result.action,
            "upvotes": result.upvotes,
            "downvotes": result.downvotes,
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": f"Vote {result.action} successfully",
        "data": schemas.serialize(schemas.VoteOutcome, result),
    }


@router.get("/{query_id}/vote")
def get_my_vote(
    query_id: UUID,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_optional_user),
):
    user_vote = None
    if current_user:
        user_vote = votes.current_vote(
            db, models.TechnicalQueryVote, "technical_query_id", query_id, current_user.id
        )
    return {"success": True, "data": {"userVote": user_vote}}


@router.get("/{query_id}/responses")
def list_responses(
    query_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    responses = _ordered_responses(db, query_id)
    return {"success": True, "data": schemas.serialize_all(schemas.TechnicalQueryResponseOut, responses)}


@router.post("/{query_id}/responses", status_code=201)
def create_response(
    query_id: UUID,
    payload: schemas.ResponseCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    technical_query = _get_query(db, query_id)
    content = (payload.content or "").strip()
    if not content:
        raise HTTPException(status_code=400, detail="Response content is required")

    response = models.TechnicalQueryResponse(
        content=content,
        technical_query_id=query_id,
        created_by_id=current_user.id,
    )
    db.add(response)
    db.commit()
    db.refresh(response)

    activity.log_activity(
        db,
        current_user.id,
        activity.CREATED_TECHNICAL_QUERY_RESPONSE,
        resource_type=activity.TECHNICAL_QUERY_RESPONSE,
        resource_id=response.id,
        resource_title=f"Response to: {technical_query.title}",
        metadata={"technicalQueryId": query_id, "technicalQueryTitle": technical_query.title},
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": "Response created successfully",
        "data": schemas.serialize(schemas.TechnicalQueryResponseOut, response),
    }


@router.post("/{query_id}/responses/{response_id}/vote")
def vote_on_response(
    query_id: UUID,
    response_id: UUID,
    payload: schemas.VoteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    response = (
        db.query(models.TechnicalQueryResponse)
        .filter(
            models.TechnicalQueryResponse.id == response_id,
            models.TechnicalQueryResponse.technical_query_id == query_id,
        )
        .first()
    )
    if not response:
        raise HTTPException(status_code=404, detail="Response not found")

    result = votes.cast_vote(
        db,
        response,
        models.TechnicalQueryResponseVote,
        "response_id",
        current_user.id,
        _vote_type(payload),
    )

    activity.log_activity(
        db,
        current_user.id,
        activity.RESPONSE_VOTE_ACTIONS[result.action],
        resource_type=activity.TECHNICAL_QUERY_RESPONSE,
        resource_id=response_id,
        resource_title=f"Response to: {response.technical_query.title}",
        metadata={
            "voteType": result.vote_type,
            "action": result.action,
            "upvotes": result.upvotes,
            "downvotes": result.downvotes,
        },
        **activity.request_info(request),
    )
    return {
        "success": True,
        "message": f"Vote {result.action} successfully",
        "data": schemas.serialize(schemas.VoteOutcome, result),
    }
