"""
Kubernetes Connect Sidecar Injector Package

This package provides a mutating admission webhook that injects a service
mesh proxy sidecar into Pods, driven by annotations on the Pod.
"""

from .handler import Handler
from .request import MutationRequest, decode_request
from .response import MutationResponse

__all__ = [
    'Handler',
    'MutationRequest',
    'MutationResponse',
    'decode_request',
]
