"""
Annotation keys recognized on Pods.

These keys are read by downstream tooling as well, so their values must not
change.
"""

from typing import Any

# Set to a false value to opt a Pod out of injection.
ANNOTATION_INJECT = "consul.hashicorp.com/connect-inject"

# Written on successful injection.
ANNOTATION_STATUS = "consul.hashicorp.com/connect-inject-status"
STATUS_INJECTED = "injected"

ANNOTATION_SERVICE = "consul.hashicorp.com/connect-service"
ANNOTATION_PORT = "consul.hashicorp.com/connect-service-port"

# Comma separated list of "name:port" pairs.
ANNOTATION_UPSTREAMS = "consul.hashicorp.com/connect-service-upstreams"


def get_annotations(pod: dict[str, Any]) -> dict[str, str]:
    """Return the Pod's annotation mapping, or an empty dict when there is none."""
    annotations = (pod.get("metadata") or {}).get("annotations")
    return annotations if isinstance(annotations, dict) else {}


def ensure_annotations(pod: dict[str, Any]) -> dict[str, str]:
    """Return the Pod's annotation mapping, creating it in place when missing."""
    metadata = pod.get("metadata")
    if not isinstance(metadata, dict):
        metadata = pod["metadata"] = {}
    annotations = metadata.get("annotations")
    if not isinstance(annotations, dict):
        annotations = metadata["annotations"] = {}
    return annotations


def get_containers(pod: dict[str, Any]) -> list[dict[str, Any]]:
    containers = (pod.get("spec") or {}).get("containers")
    return containers if isinstance(containers, list) else []
