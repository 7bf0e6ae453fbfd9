"""
Generic CRUD controller.

``build_crud_router`` returns an APIRouter exposing a registered service:

- GET    ""       paginated listing (filters and page/limit/order in the query)
- GET    /{id}    one document
- POST   ""       create a document
- PATCH  ""       bulk update of every document matching the query
- PATCH  /{id}    update one document
- DELETE ""       bulk delete of every document matching the query
- DELETE /{id}    delete one document
"""

from typing import Any, Dict, Mapping, Optional

from fastapi import APIRouter, Body, Depends, Request, status

from modelservice.api.dependencies import service_dependency
from modelservice.api.serializers import (
    serialize_document,
    serialize_documents,
    serialize_page,
    serialize_update_result,
)
from modelservice.core.errors import NotFoundError, ValidationError
from modelservice.services import ModelService


def build_crud_router(
    service_name: str,
    rights: Optional[Mapping[str, str]] = None
) -> APIRouter:
    """
    Build the CRUD router for one service.

    Args:
        service_name: Name the service is registered under
        rights: Optional map of operation name (get, get_by_id, create_one,
            update, update_by_id, delete, delete_by_id) to the right a user
            must hold to call it

    Returns:
        APIRouter to include under the entity's prefix
    """
    router = APIRouter()
    required_rights = dict(rights or {})
    get_service = service_dependency(service_name)

    def check_access(service: ModelService, operation: str) -> None:
        right = required_rights.get(operation)
        if right:
            service.context.assert_user_and_can(right)

    @router.get("", summary=f"List {service_name}")
    async def list_documents(
        request: Request,
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "get")
        page = await service.get_paginated(dict(request.query_params))
        return serialize_page(page)

    @router.get("/{item_id}", summary=f"Get one of {service_name}")
    async def get_document(
        item_id: str,
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "get_by_id")
        document = await service.get_by_id(item_id)
        if document is None:
            raise NotFoundError("Item not found")
        return serialize_document(document)

    @router.post("", status_code=status.HTTP_201_CREATED, summary=f"Create one of {service_name}")
    async def create_document(
        payload: Dict[str, Any] = Body(...),
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "create_one")
        document = await service.create_one(payload)
        return serialize_document(document)

    @router.patch("", summary=f"Update every matching {service_name}")
    async def update_documents(
        request: Request,
        payload: Optional[Dict[str, Any]] = Body(default=None),
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "update")
        if not payload:
            raise ValidationError("No data to update provided")
        result = await service.update(dict(request.query_params), payload)
        return result.to_dict()

    @router.patch("/{item_id}", summary=f"Update one of {service_name}")
    async def update_document(
        item_id: str,
        payload: Optional[Dict[str, Any]] = Body(default=None),
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "update_by_id")
        result = await service.update_by_id(item_id, payload or {})
        if result.document is None:
            raise NotFoundError("Item not found")
        if result.error is not None:
            raise result.error
        return serialize_update_result(result)

    @router.delete("", summary=f"Delete every matching {service_name}")
    async def delete_documents(
        request: Request,
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "delete")
        deleted = await service.delete(dict(request.query_params))
        return {"deleted": serialize_documents(deleted)}

    @router.delete("/{item_id}", summary=f"Delete one of {service_name}")
    async def delete_document(
        item_id: str,
        service: ModelService = Depends(get_service),
    ) -> Dict[str, Any]:
        check_access(service, "delete_by_id")
        document = await service.delete_by_id(item_id)
        return serialize_document(document)

    return router
