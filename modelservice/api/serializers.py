"""
Document serialization for HTTP responses.

Backends return pydantic documents or ORM instances; both are turned into
JSON-compatible dicts here.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from fastapi.encoders import jsonable_encoder

from modelservice.schemas import Page, UpdateResult


def serialize_document(document: Any) -> Optional[Dict[str, Any]]:
    if document is None:
        return None
    if isinstance(document, Mapping):
        data = dict(document)
    elif hasattr(document, "model_dump"):
        data = document.model_dump()
    elif hasattr(document, "to_dict"):
        data = document.to_dict()
    else:
        raise TypeError(f"cannot serialize {type(document).__name__}")
    return jsonable_encoder(data)


def serialize_documents(documents: Iterable[Any]) -> List[Dict[str, Any]]:
    return [serialize_document(document) for document in documents]


def serialize_page(page: Page) -> Dict[str, Any]:
    """Listing payload: ``docs`` plus total/page/limit/pages."""
    return {"docs": serialize_documents(page.docs), **page.to_metadata()}


def serialize_update_result(result: UpdateResult) -> Dict[str, Any]:
    return {
        "document": serialize_document(result.document),
        "updated": serialize_document(result.updated),
    }
