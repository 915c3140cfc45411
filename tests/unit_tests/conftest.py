"""Shared fixtures for unit tests."""

import json

import pytest


@pytest.fixture
def pod_factory():
    """Factory for creating Pod objects with different configurations"""
    def _create_pod(
        name="web-pod",
        namespace="default",
        annotations=None,
        containers=None,
    ):
        if containers is None:
            containers = [{"name": "web", "image": "nginx:alpine"}]

        metadata = {"name": name, "namespace": namespace}
        if annotations is not None:
            metadata["annotations"] = annotations

        return {
            "kind": "Pod",
            "apiVersion": "v1",
            "metadata": metadata,
            "spec": {"containers": containers},
        }

    return _create_pod


@pytest.fixture
def review_factory():
    """Factory for AdmissionReview documents wrapping a Pod"""
    def _create_review(pod, uid="test-uid-123", api_version="admission.k8s.io/v1"):
        return {
            "apiVersion": api_version,
            "kind": "AdmissionReview",
            "request": {
                "uid": uid,
                "kind": {"group": "", "version": "v1", "kind": "Pod"},
                "operation": "CREATE",
                "namespace": (pod.get("metadata") or {}).get("namespace", ""),
                "object": pod,
            },
        }

    return _create_review


@pytest.fixture
def encode_review(review_factory):
    """Serialize a Pod into the raw bytes of an AdmissionReview body"""
    def _encode(pod, **kwargs):
        return json.dumps(review_factory(pod, **kwargs)).encode("utf-8")

    return _encode
