"""Flat metadata encoding for scalar-only vector stores.

Vector stores such as Chroma or Pinecone only accept ``str`` / ``int`` /
``float`` / ``bool`` metadata values.  :func:`encode_metadata` flattens a
:class:`~content_rag.models.ContentMetadata` into that shape and
:func:`decode_metadata` reverses it.

Encoding (``indexVersion`` 1)::

    contentType, contentId, userId, status, access,
    primaryCategory, language, source, title, text,
    summary, searchableText                          -> plain strings
    createdAt, updatedAt                             -> ISO-8601 strings
    version, chunkIndex, totalChunks                 -> decimal strings
    isFirstChunk                                     -> "true" | "false"
    sharedWith, categories, secondaryCategories,
    tags, keywords, relatedIds, references           -> comma-joined strings
    (commas inside reference ids are stored as "%2C")
    document | note | activity                       -> JSON (camelCase keys)
    _system                                          -> JSON {lastIndexed,
                                                        indexVersion,
                                                        vectorQuality}

Only the payload of the record's own content type is written.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from content_rag.models import (
    ActivityDetails,
    ContentMetadata,
    ContentType,
    DocumentDetails,
    NoteDetails,
    utc_now,
)
from content_rag.retrieval.models import ScalarValue

INDEX_VERSION = 1
VECTOR_QUALITY = 0.9
LIST_DELIMITER = ","
SYSTEM_KEY = "_system"

_PAYLOAD_MODELS: dict[ContentType, type[DocumentDetails | NoteDetails | ActivityDetails]] = {
    ContentType.DOCUMENT: DocumentDetails,
    ContentType.NOTE: NoteDetails,
    ContentType.ACTIVITY: ActivityDetails,
}

_STRING_FIELDS = (
    "status",
    "access",
    "primaryCategory",
    "language",
    "source",
    "title",
    "text",
    "summary",
    "searchableText",
)
_LIST_FIELDS = (
    "sharedWith",
    "categories",
    "secondaryCategories",
    "tags",
    "keywords",
    "relatedIds",
    "references",
)
_INT_FIELDS = ("version", "chunkIndex", "totalChunks")


def join_list(values: list[str]) -> str:
    return LIST_DELIMITER.join(values)


def split_list(value: Any) -> list[str]:
    if not value:
        return []
    return [v for v in str(value).split(LIST_DELIMITER) if v]


def escape_reference(reference_id: str) -> str:
    """Percent-encode the list delimiter so a reference id survives joining."""
    return reference_id.replace(LIST_DELIMITER, "%2C")


def encode_payload(payload: DocumentDetails | NoteDetails | ActivityDetails) -> str:
    return payload.model_dump_json(by_alias=True)


def decode_payload(content_type: ContentType | str, raw: str) -> DocumentDetails | NoteDetails | ActivityDetails:
    model = _PAYLOAD_MODELS[ContentType(content_type)]
    return model.model_validate_json(raw)


def encode_metadata(metadata: ContentMetadata, *, indexed_at: datetime | None = None) -> dict[str, ScalarValue]:
    """Flatten *metadata* into scalar-only values."""
    data = metadata.model_dump(by_alias=True, mode="json")
    flat: dict[str, ScalarValue] = {
        "contentType": metadata.content_type.value,
        "contentId": metadata.content_id,
        "userId": metadata.user_id,
        "createdAt": metadata.created_at.isoformat(),
        "updatedAt": metadata.updated_at.isoformat(),
        "isFirstChunk": "true" if metadata.is_first_chunk else "false",
    }
    for key in _INT_FIELDS:
        flat[key] = str(data[key])
    for key in _STRING_FIELDS:
        flat[key] = data[key] or ""
    for key in _LIST_FIELDS:
        flat[key] = join_list(data[key])
    flat["references"] = join_list([escape_reference(r) for r in metadata.references])

    payload = metadata.payload
    if payload is not None:
        flat[metadata.content_type.value] = encode_payload(payload)

    flat[SYSTEM_KEY] = json.dumps(
        {
            "lastIndexed": (indexed_at or utc_now()).isoformat(),
            "indexVersion": INDEX_VERSION,
            "vectorQuality": VECTOR_QUALITY,
        }
    )
    return flat


def decode_metadata(flat: dict[str, Any]) -> ContentMetadata:
    """Rebuild a :class:`ContentMetadata` from its flat encoding."""
    content_type = ContentType(flat["contentType"])
    data: dict[str, Any] = {
        "contentType": content_type,
        "contentId": flat["contentId"],
        "userId": flat["userId"],
        "createdAt": flat["createdAt"],
        "updatedAt": flat["updatedAt"],
        "isFirstChunk": str(flat.get("isFirstChunk", "")).lower() == "true",
    }
    for key in _INT_FIELDS:
        if key in flat:
            data[key] = int(flat[key])
    for key in _STRING_FIELDS:
        if flat.get(key):
            data[key] = flat[key]
    for key in _LIST_FIELDS:
        data[key] = split_list(flat.get(key))
    if not data["categories"]:
        data["categories"] = [flat.get("primaryCategory") or "general"]

    raw_payload = flat.get(content_type.value)
    if raw_payload:
        data[content_type.value] = decode_payload(content_type, raw_payload)
    return ContentMetadata.model_validate(data)


def decode_system(flat: dict[str, Any]) -> dict[str, Any]:
    """Return the ``_system`` bookkeeping block, or ``{}`` when absent."""
    raw = flat.get(SYSTEM_KEY)
    return json.loads(raw) if raw else {}
