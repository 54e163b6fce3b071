"""Privileged endpoints: user provisioning and private documents."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...schemas.admin import CreatedOperatorModel, CreateOperatorRequest, UserModel
from ...services.admin import users
from ..dependencies import Caller, get_current_user, require_admin
from ..errors import to_http_exception

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/operators", response_model=CreatedOperatorModel, status_code=status.HTTP_201_CREATED)
def create_operator(payload: CreateOperatorRequest, _: Caller = Depends(require_admin)) -> CreatedOperatorModel:
    try:
        created = users.create_operator(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
            status=payload.status,
        )
    except Exception as exc:
        raise to_http_exception(exc, "create operator") from exc
    return CreatedOperatorModel(**created)


@router.get("/users", response_model=list[UserModel])
def list_users(_: Caller = Depends(require_admin)) -> list[UserModel]:
    try:
        return [UserModel(**user) for user in users.list_users()]
    except Exception as exc:
        raise to_http_exception(exc, "list users") from exc


@router.get("/users/{user_id}", response_model=UserModel)
def get_user(user_id: str, _: Caller = Depends(require_admin)) -> UserModel:
    try:
        user = users.get_user(user_id)
    except Exception as exc:
        raise to_http_exception(exc, "load user") from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")
    return UserModel(**user)


@router.get("/files/{path:path}")
def download_file(path: str, _: Caller = Depends(get_current_user)) -> Response:
    try:
        content = users.download_private_file(path)
    except Exception as exc:
        raise to_http_exception(exc, "download file") from exc
    return Response(content=content, media_type="application/octet-stream")
