"""Resolve the current primary of a MongoDB replica set to a pod name.

Pod names are derived from the member's advertised address by dropping the port and
keeping the first DNS label, i.e. members must advertise the StatefulSet stable network
identity (``mongo-1.mongo.db.svc.cluster.local:27017`` -> ``mongo-1``). Any other naming
yields a plausible but wrong pod name rather than an error; the labeler then reports
"primary not found" because no candidate pod carries that name.
"""

from __future__ import annotations

import logging
from typing import Protocol

import pymongo
from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.errors import OperationFailure, PyMongoError

from .errors import ConnectError, HandshakeError, IdentityParseError, PingError
from .models import HelloResult

# Server error code for an unknown command; pre-4.4 servers only know isMaster.
COMMAND_NOT_FOUND = 59


class PrimaryResolver(Protocol):
    def resolve(self) -> str: ...


def split_host_port(hostport: str) -> tuple[str, str]:
    """Split ``host:port`` or ``[v6addr]:port``. The port is mandatory."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise IdentityParseError(f"invalid primary host {hostport!r}: missing ']' in address")
        host, rest = hostport[1:end], hostport[end + 1 :]
        if not rest.startswith(":"):
            raise IdentityParseError(f"invalid primary host {hostport!r}: missing port in address")
        return host, rest[1:]

    host, sep, port = hostport.rpartition(":")
    if not sep:
        raise IdentityParseError(f"invalid primary host {hostport!r}: missing port in address")
    if ":" in host:
        raise IdentityParseError(f"invalid primary host {hostport!r}: too many colons in address")
    return host, port


def pod_name_from_host(hostport: str) -> str:
    host, _ = split_host_port(hostport)
    name = host.split(".", 1)[0]
    if not name:
        raise IdentityParseError(f"unable to derive primary pod name from host {host!r}")
    return name


class MongoPrimaryResolver:
    """Asks any reachable member who the primary is, over a direct connection."""

    def __init__(self, address: str, timeout_s: float = 20.0, logger: logging.Logger | None = None):
        self.address = address
        self.timeout_s = float(timeout_s)
        self.log = logger or logging.getLogger(__name__)

    def resolve(self) -> str:
        timeout_ms = int(self.timeout_s * 1000)
        try:
            client = MongoClient(
                f"mongodb://{self.address}",
                directConnection=True,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
                timeoutMS=timeout_ms,
            )
        except (PyMongoError, ValueError, TypeError) as e:
            raise ConnectError(f"connect to mongo at {self.address!r}: {e}") from e

        try:
            with pymongo.timeout(self.timeout_s):
                try:
                    client.admin.command("ping")
                except PyMongoError as e:
                    raise PingError(f"ping mongo at {self.address!r}: {e}") from e

                hello = self._hello(client)
        finally:
            try:
                client.close()
            except PyMongoError as e:
                self.log.debug("unable to close mongo connection to %s: %s", self.address, e)

        primary_host = hello.primary_host()
        if not primary_host:
            raise HandshakeError(f"mongo at {self.address!r} did not report a primary")
        return pod_name_from_host(primary_host)

    def _hello(self, client: MongoClient) -> HelloResult:
        try:
            try:
                reply = client.admin.command("hello")
            except OperationFailure as e:
                if e.code != COMMAND_NOT_FOUND:
                    raise
                reply = client.admin.command("isMaster")
        except PyMongoError as e:
            raise HandshakeError(f"run hello command on mongo at {self.address!r}: {e}") from e

        try:
            return HelloResult.model_validate(dict(reply))
        except ValidationError as e:
            raise HandshakeError(f"decode hello reply from mongo at {self.address!r}: {e}") from e


class StaticPrimaryResolver:
    """Deterministic resolver: always returns ``name`` or raises ``error``."""

    def __init__(self, name: str | None = None, error: BaseException | None = None):
        if name is None and error is None:
            raise ValueError("StaticPrimaryResolver needs a name or an error")
        self.name = name
        self.error = error
        self.calls = 0

    def resolve(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        assert self.name is not None
        return self.name
