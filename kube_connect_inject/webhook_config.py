"""Webhook configuration generation utilities."""

from __future__ import annotations

import re
from typing import Iterable

from .eligibility import SYSTEM_NAMESPACE

NAMESPACE_NAME_LABEL = "kubernetes.io/metadata.name"


def _render_list(values: Iterable[str], indent: int) -> list[str]:
    space = " " * indent
    return [f"{space}- {value}" for value in values]


def _webhook_name(name: str) -> str:
    webhook_name = re.sub(r"[^a-z0-9.-]", "-", name.lower()).strip("-")
    return webhook_name or "connect-injector"


def _render_namespace_selector(excluded: list[str]) -> list[str]:
    if not excluded:
        return []
    return [
        "    namespaceSelector:",
        "      matchExpressions:",
        f"        - key: {NAMESPACE_NAME_LABEL}",
        "          operator: NotIn",
        "          values:",
        *_render_list(excluded, 12),
    ]


def generate_webhook_configuration_yaml(
    *,
    url: str,
    name: str = "connect-injector",
    ca_bundle: str | None = None,
    exclude_namespaces: Iterable[str] = (SYSTEM_NAMESPACE,),
    failure_policy: str = "Ignore",
) -> str:
    """
    Generate the MutatingWebhookConfiguration that routes Pod creation here.

    Args:
        url: Webhook URL reachable by the Kubernetes API server.
        name: metadata.name of the generated resource.
        ca_bundle: Optional base64-encoded CA bundle.
        exclude_namespaces: Namespaces the API server should not send at all.
            Pods in kube-system are skipped by the injector regardless.
        failure_policy: ``Ignore`` or ``Fail``.
    """
    if failure_policy not in {"Ignore", "Fail"}:
        raise ValueError("failure_policy must be one of: Ignore, Fail")

    webhook_name = _webhook_name(name)
    excluded = sorted({namespace.strip() for namespace in exclude_namespaces if namespace.strip()})

    lines = [
        "apiVersion: admissionregistration.k8s.io/v1",
        "kind: MutatingWebhookConfiguration",
        "metadata:",
        f"  name: {webhook_name}",
        "webhooks:",
        f"  - name: {webhook_name}.consul.hashicorp.com",
        "    admissionReviewVersions:",
        "      - v1",
        "      - v1beta1",
        "    sideEffects: None",
        f"    failurePolicy: {failure_policy}",
        "    reinvocationPolicy: Never",
        "    timeoutSeconds: 10",
        "    clientConfig:",
        f"      url: {url}",
    ]

    if ca_bundle:
        lines.append(f"      caBundle: {ca_bundle}")

    lines.extend(
        [
            "    rules:",
            "      - operations:",
            "          - CREATE",
            "        apiGroups:",
            '          - ""',
            "        apiVersions:",
            "          - v1",
            "        resources:",
            "          - pods",
            *_render_namespace_selector(excluded),
        ]
    )
    return "\n".join(lines) + "\n"
