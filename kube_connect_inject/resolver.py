"""
Resolution of per-Pod injection settings.

All defaults for the sidecar are computed here, from the Pod's annotations and,
where those are missing, from the Pod's own containers.
"""

from dataclasses import dataclass, field
from typing import Any

from .annotations import (
    ANNOTATION_INJECT,
    ANNOTATION_PORT,
    ANNOTATION_SERVICE,
    ANNOTATION_UPSTREAMS,
    ensure_annotations,
    get_annotations,
    get_containers,
)
from .eligibility import injection_disabled
from .errors import NoContainers


@dataclass
class InjectConfig:
    service: str
    port: str | None = None
    upstreams: list[str] = field(default_factory=list)
    enabled: bool = True


def default_annotations(pod: dict[str, Any]) -> None:
    """
    Fill in the service and port annotations in place when they are unset.

    The service defaults to the name of the first container. The port defaults
    to the name of the first port declared by that container; when it declares
    no named port, no port annotation is added.

    Raises:
        NoContainers: The Pod has no containers.
    """
    containers = get_containers(pod)
    if not containers:
        raise NoContainers()

    annotations = ensure_annotations(pod)
    first = containers[0]

    if ANNOTATION_SERVICE not in annotations:
        annotations[ANNOTATION_SERVICE] = first.get("name", "")

    if ANNOTATION_PORT not in annotations:
        for port in first.get("ports") or []:
            if port.get("name"):
                annotations[ANNOTATION_PORT] = port["name"]
                break


def port_value(pod: dict[str, Any], raw: str) -> str:
    """Resolve a named container port to its number; other values pass through."""
    if raw.isdigit():
        return raw

    for container in get_containers(pod):
        for port in container.get("ports") or []:
            if port.get("name") == raw and port.get("containerPort"):
                return str(port["containerPort"])

    return raw


def parse_upstreams(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


def resolve_config(pod: dict[str, Any]) -> InjectConfig:
    """Build the ``InjectConfig`` for a Pod whose annotations were defaulted."""
    annotations = get_annotations(pod)

    port = annotations.get(ANNOTATION_PORT)
    return InjectConfig(
        service=annotations.get(ANNOTATION_SERVICE, ""),
        port=port_value(pod, port) if port else None,
        upstreams=parse_upstreams(annotations.get(ANNOTATION_UPSTREAMS)),
        enabled=not injection_disabled(annotations.get(ANNOTATION_INJECT)),
    )
