"""Decoding of AdmissionReview request bodies."""

from __future__ import annotations

import copy
import json
import types
from dataclasses import dataclass, field
from typing import Any

from .errors import EmptyBody, InvalidContentType, MalformedEnvelope

JSON_CONTENT_TYPE = "application/json"
DEFAULT_REVIEW_API_VERSION = "admission.k8s.io/v1"


@dataclass(frozen=True)
class MutationRequest:
    uid: str
    object: types.MappingProxyType = field(repr=False)
    api_version: str = DEFAULT_REVIEW_API_VERSION
    kind: str = ""
    namespace: str = ""
    operation: str = ""

    def pod(self) -> dict[str, Any]:
        """Return a fresh, mutable copy of the submitted object."""
        return copy.deepcopy(dict(self.object))


def is_json_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == JSON_CONTENT_TYPE


def validate_review_structure(review: Any) -> None:
    """Validate the structure of an incoming AdmissionReview"""
    if not isinstance(review, dict):
        raise MalformedEnvelope("AdmissionReview must be a JSON object")

    request = review.get("request")
    if not isinstance(request, dict):
        raise MalformedEnvelope("AdmissionReview must contain a 'request' object")

    if not isinstance(request.get("object"), dict):
        raise MalformedEnvelope("AdmissionReview 'request.object' must be a JSON object")

    metadata = request["object"].get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise MalformedEnvelope("Request object 'metadata' field must be a JSON object")


def decode_request(body: bytes | None, content_type: str | None) -> MutationRequest:
    """
    Parse a raw AdmissionReview body into a ``MutationRequest``.

    Args:
        body: The raw HTTP request body.
        content_type: The value of the Content-Type header, if any.

    Raises:
        InvalidContentType: The content type is not ``application/json``.
        EmptyBody: The body is missing or zero length.
        MalformedEnvelope: The body is not an AdmissionReview.
    """
    if not is_json_content_type(content_type):
        raise InvalidContentType(content_type)

    if not body:
        raise EmptyBody()

    try:
        review = json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise MalformedEnvelope(f"Could not decode request body: {exc}") from exc

    validate_review_structure(review)

    request = review["request"]
    kind = request.get("kind")
    return MutationRequest(
        uid=str(request.get("uid") or ""),
        object=types.MappingProxyType(request["object"]),
        api_version=review.get("apiVersion") or DEFAULT_REVIEW_API_VERSION,
        kind=kind.get("kind", "") if isinstance(kind, dict) else "",
        namespace=request.get("namespace") or "",
        operation=request.get("operation") or "",
    )
