"""Decides whether a Pod is considered for injection at all."""

import enum
import logging
from typing import Any

from .annotations import ANNOTATION_INJECT, ANNOTATION_STATUS, STATUS_INJECTED, get_annotations

logger = logging.getLogger(__name__)

SYSTEM_NAMESPACE = "kube-system"

# Values of the inject annotation that opt a Pod out. Everything else opts in.
FALSE_VALUES = frozenset({"0", "false", "f", "False", "FALSE"})


class Decision(enum.Enum):
    PROCEED = "proceed"
    SKIP_UNCHANGED = "skip-unchanged"


def injection_disabled(value: str | None) -> bool:
    """Tolerant parse of the inject annotation. Absent means enabled."""
    return value is not None and value in FALSE_VALUES


def check_eligibility(pod: dict[str, Any], namespace: str | None = None) -> Decision:
    """
    Return whether the Pod should be injected.

    ``namespace`` is the namespace from the admission request and is used when
    the object itself does not carry one.
    """
    pod_namespace = (pod.get("metadata") or {}).get("namespace") or namespace or ""
    if pod_namespace == SYSTEM_NAMESPACE:
        logger.info(f"Skipping pod in {SYSTEM_NAMESPACE} namespace")
        return Decision.SKIP_UNCHANGED

    annotations = get_annotations(pod)
    if annotations.get(ANNOTATION_STATUS) == STATUS_INJECTED:
        logger.info("Skipping pod that is already injected")
        return Decision.SKIP_UNCHANGED

    if injection_disabled(annotations.get(ANNOTATION_INJECT)):
        logger.info(f"Skipping pod with {ANNOTATION_INJECT}={annotations[ANNOTATION_INJECT]}")
        return Decision.SKIP_UNCHANGED

    return Decision.PROCEED
