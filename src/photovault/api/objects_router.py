"""Object storage endpoints: upload grants, registration and downloads."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from ..acl.models import Permission
from ..auth.identity import get_requester_id
from ..storage.paths import LOGICAL_PREFIX
from ..storage.service import ObjectStorageService
from .schemas import (
    GrantRequest,
    ObjectPolicyResponse,
    RegisterObjectRequest,
    RegisteredObjectResponse,
    UploadGrantResponse,
    UploadReceipt,
    VisibilityUpdateRequest,
)


def build_objects_router(service: ObjectStorageService) -> APIRouter:
    router = APIRouter(tags=["objects"])

    @router.post("/api/objects/upload", response_model=UploadGrantResponse)
    def create_upload_grant(_: str = Depends(get_requester_id)) -> UploadGrantResponse:
        return UploadGrantResponse.from_target(service.create_upload_grant())

    @router.put(
        "/uploads/{object_id}",
        response_model=UploadReceipt,
        status_code=status.HTTP_201_CREATED,
    )
    async def receive_upload(
        object_id: str, request: Request, token: str = Query(min_length=1)
    ) -> UploadReceipt:
        size = await service.receive_upload(object_id, token, request.stream())
        return UploadReceipt(object_id=object_id, size=size)

    @router.post(
        "/api/objects",
        response_model=RegisteredObjectResponse,
        status_code=status.HTTP_201_CREATED,
    )
    def register_object(
        payload: RegisterObjectRequest, requester_id: str = Depends(get_requester_id)
    ) -> RegisteredObjectResponse:
        object_path = service.register_object(payload.object_path, requester_id, payload.visibility)
        return RegisteredObjectResponse(object_path=object_path)

    @router.patch("/api/objects/{object_id}", response_model=ObjectPolicyResponse)
    def update_visibility(
        object_id: str,
        payload: VisibilityUpdateRequest,
        requester_id: str = Depends(get_requester_id),
    ) -> ObjectPolicyResponse:
        policy = service.update_visibility(object_id, requester_id, payload.visibility)
        return ObjectPolicyResponse.from_policy(policy)

    @router.post("/api/objects/{object_id}/grants", response_model=ObjectPolicyResponse)
    def grant_permission(
        object_id: str,
        payload: GrantRequest,
        requester_id: str = Depends(get_requester_id),
    ) -> ObjectPolicyResponse:
        policy = service.grant_permission(
            object_id, requester_id, payload.principal, payload.permission
        )
        return ObjectPolicyResponse.from_policy(policy)

    @router.delete("/api/objects/{object_id}", status_code=status.HTTP_204_NO_CONTENT)
    def unregister_object(object_id: str, requester_id: str = Depends(get_requester_id)) -> Response:
        service.unregister_object(object_id, requester_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/objects/{object_path:path}")
    def download_object(
        object_path: str, requester_id: str = Depends(get_requester_id)
    ) -> StreamingResponse:
        return service.authorize_and_stream(
            LOGICAL_PREFIX + object_path, requester_id, Permission.READ
        )

    @router.get("/public-objects/{file_path:path}")
    def download_public_object(file_path: str) -> StreamingResponse:
        return service.serve_public_object(file_path)

    return router


__all__ = ["build_objects_router"]
