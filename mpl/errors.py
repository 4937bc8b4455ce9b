from __future__ import annotations


class LabelerError(Exception):
    """Base class for every failure raised by this package."""


# Fatal, raised before the reconcile loop starts.


class ConfigError(LabelerError):
    pass


class ClientBootstrapError(LabelerError):
    pass


# Primary resolution. Recoverable: logged, retried on the next tick.


class ResolveError(LabelerError):
    pass


class ConnectError(ResolveError):
    pass


class PingError(ResolveError):
    pass


class HandshakeError(ResolveError):
    pass


class IdentityParseError(ResolveError):
    pass


# Label synchronization. Recoverable.


class SyncError(LabelerError):
    pass


class ListError(SyncError):
    pass


class PrimaryNotFoundError(SyncError):
    def __init__(self, primary: str, namespace: str, selector: str):
        super().__init__(
            f"primary not found: pod {primary!r} is not among pods in namespace {namespace!r} "
            f"matching selector {selector!r}"
        )
        self.primary = primary
        self.namespace = namespace
        self.selector = selector


class PatchError(SyncError):
    """A label patch failed. Patches for pods earlier in the pass are already applied."""

    def __init__(self, pod: str, cause: BaseException):
        super().__init__(f"patch pod {pod!r} primary label: {cause}")
        self.pod = pod
        self.cause = cause
