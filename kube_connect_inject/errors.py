"""Exceptions raised while handling an admission request.

Two families exist. ``TransportError`` covers a call that could not be turned
into a mutation request at all and is answered with HTTP 400.
``ValidationError`` covers a well-formed request for a Pod that cannot be
injected and is answered with ``allowed: false``.
"""


class InjectError(Exception):
    """Base class for every error raised by the injector."""


class TransportError(InjectError, ValueError):
    """The HTTP call itself was unusable."""


class InvalidContentType(TransportError):
    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(
            f"Invalid content-type: {content_type!r}, expected 'application/json'"
        )


class EmptyBody(TransportError):
    def __init__(self):
        super().__init__("Request body is empty")


class MalformedEnvelope(TransportError):
    pass


class ValidationError(InjectError, ValueError):
    """The Pod cannot be mutated as requested."""


class NoContainers(ValidationError):
    def __init__(self):
        super().__init__("pod has no containers to derive a service name from")


class ContainerNameConflict(ValidationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"pod already has a container named {name!r}")


class UnexpectedPatchOperation(ValidationError):
    def __init__(self, op: str, path: str):
        self.op = op
        self.path = path
        super().__init__(f"refusing to emit {op!r} operation at {path!r}")
