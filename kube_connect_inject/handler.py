"""
Entry point of the injection engine.

``Handler`` runs one admission request through eligibility, annotation
resolution, injection and patch generation. It keeps no per-request state, so a
single instance can serve any number of concurrent requests.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .eligibility import Decision, check_eligibility
from .errors import TransportError, UnexpectedPatchOperation, ValidationError
from .injector import DEFAULT_IMAGE, DEFAULT_SIDECAR_NAME, inject
from .patch import OP_ADD, PatchOperation, create_patch
from .request import MutationRequest, decode_request
from .resolver import default_annotations, resolve_config
from .response import MutationResponse, allow, allow_with_patch, deny, to_admission_review

logger = logging.getLogger(__name__)


def require_additive(ops: list[PatchOperation]) -> list[PatchOperation]:
    """Injection only ever adds; anything else means the diff went wrong."""
    for op in ops:
        if op.op != OP_ADD:
            raise UnexpectedPatchOperation(op.op, op.path)
    return ops


@dataclass(frozen=True)
class Handler:
    image: str = DEFAULT_IMAGE
    sidecar_name: str = DEFAULT_SIDECAR_NAME

    def mutate(self, request: MutationRequest) -> MutationResponse:
        """Decide on and build the patch for a single request.

        Validation errors are reported as a denied response, not raised.
        """
        original = request.pod()

        if check_eligibility(original, request.namespace) is Decision.SKIP_UNCHANGED:
            return allow()

        # Defaults only feed the sidecar arguments and are not persisted.
        resolved = request.pod()
        try:
            default_annotations(resolved)
        except ValidationError as exc:
            return self._reject(request, f"error defaulting annotations: {exc}")
        config = resolve_config(resolved)

        mutated = request.pod()
        try:
            inject(mutated, config, image=self.image, name=self.sidecar_name)
        except ValidationError as exc:
            return self._reject(request, f"error injecting sidecar: {exc}")

        try:
            ops = require_additive(create_patch(original, mutated, additive=True))
        except ValidationError as exc:
            return self._reject(request, f"error creating patch: {exc}")

        logger.info(f"Request {request.uid}: patching pod with {len(ops)} operations")
        return allow_with_patch(ops)

    def handle(self, body: bytes | None, content_type: str | None) -> tuple[int, dict[str, Any]]:
        """
        Process a raw HTTP request body.

        Returns the HTTP status code and the JSON document to send back. Bad
        requests yield 400 with an ``error`` message; everything else yields
        200 with an AdmissionReview.
        """
        try:
            request = decode_request(body, content_type)
        except TransportError as exc:
            logger.warning(f"Rejecting call: {exc}")
            return 400, {"error": str(exc)}

        try:
            response = self.mutate(request)
        except Exception as exc:
            logger.exception(f"Unexpected error handling request {request.uid}")
            response = deny(f"error handling request: {exc}")

        return 200, to_admission_review(response, request.uid, request.api_version)

    def _reject(self, request: MutationRequest, message: str) -> MutationResponse:
        logger.warning(f"Request {request.uid} denied: {message}")
        return deny(message)
