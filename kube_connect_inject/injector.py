"""Construction of the proxy sidecar and its attachment to a Pod."""

import logging
from typing import Any

from .annotations import ANNOTATION_STATUS, STATUS_INJECTED, ensure_annotations, get_containers
from .errors import ContainerNameConflict
from .resolver import InjectConfig

logger = logging.getLogger(__name__)

DEFAULT_IMAGE = "consul:1.2.2"
DEFAULT_SIDECAR_NAME = "consul-connect-proxy"

PROXY_COMMAND = ["consul", "connect", "proxy"]


def sidecar_command(config: InjectConfig) -> list[str]:
    """
    Build the proxy command line for ``config``.

    The port is used verbatim; named ports are resolved by ``resolve_config``.
    Registration flags are never emitted.
    """
    command = [*PROXY_COMMAND, f"-service={config.service}"]
    if config.port:
        command.append(f"-service-addr=127.0.0.1:{config.port}")
    for upstream in config.upstreams:
        command.append(f"-upstream={upstream}")
    return command


def container_sidecar(
    config: InjectConfig,
    image: str = DEFAULT_IMAGE,
    name: str = DEFAULT_SIDECAR_NAME,
) -> dict[str, Any]:
    return {
        "name": name,
        "image": image,
        "command": sidecar_command(config),
    }


def inject(
    pod: dict[str, Any],
    config: InjectConfig,
    image: str = DEFAULT_IMAGE,
    name: str = DEFAULT_SIDECAR_NAME,
) -> dict[str, Any]:
    """
    Append the sidecar to ``pod`` in place and mark it as injected.

    Returns the sidecar container that was added.

    Raises:
        ContainerNameConflict: The Pod already has a container called ``name``.
    """
    containers = get_containers(pod)
    if any(container.get("name") == name for container in containers):
        raise ContainerNameConflict(name)

    sidecar = container_sidecar(config, image=image, name=name)
    spec = pod.setdefault("spec", {})
    spec["containers"] = [*containers, sidecar]

    ensure_annotations(pod)[ANNOTATION_STATUS] = STATUS_INJECTED
    logger.info(f"Injected {name} for service {config.service}")
    return sidecar
