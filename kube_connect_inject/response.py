"""Mutation results and the AdmissionReview response envelope."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from .patch import PatchOperation, serialize_patch
from .request import DEFAULT_REVIEW_API_VERSION

PATCH_TYPE_JSON = "JSONPatch"


@dataclass
class MutationResponse:
    allowed: bool
    patch: list[PatchOperation] = field(default_factory=list)
    message: str | None = None


def allow() -> MutationResponse:
    """Allow the object through unmodified."""
    return MutationResponse(allowed=True)


def allow_with_patch(ops: list[PatchOperation]) -> MutationResponse:
    return MutationResponse(allowed=True, patch=list(ops))


def deny(message: str) -> MutationResponse:
    return MutationResponse(allowed=False, message=message)


def to_admission_review(
    response: MutationResponse,
    uid: str,
    api_version: str = DEFAULT_REVIEW_API_VERSION,
) -> dict[str, Any]:
    """
    Wrap a ``MutationResponse`` in an AdmissionReview envelope.

    The patch is serialized to JSON and base64 encoded as the API server
    expects. An empty patch is left out entirely.
    """
    body: dict[str, Any] = {"uid": uid, "allowed": response.allowed}

    if response.patch:
        body["patchType"] = PATCH_TYPE_JSON
        body["patch"] = base64.b64encode(serialize_patch(response.patch)).decode("utf-8")

    if response.message:
        body["status"] = {"message": response.message}

    return {
        "apiVersion": api_version,
        "kind": "AdmissionReview",
        "response": body,
    }
