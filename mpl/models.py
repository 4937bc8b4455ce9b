from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PRIMARY_LABEL = "primary"


class HelloResult(BaseModel):
    """The fields of a ``hello`` / legacy ``isMaster`` reply we act on."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    primary: str | None = Field(None, description="host:port of the current primary, if known")
    is_writable_primary: bool = Field(False, alias="isWritablePrimary")
    ismaster: bool = Field(False, description="Legacy isMaster flag (pre-5.0 servers)")
    me: str | None = Field(None, description="host:port of the answering member")

    def primary_host(self) -> str | None:
        """Return the primary's host:port.

        A member answering a direct handshake on the primary itself may omit ``primary``,
        so fall back to its own address when it reports being writable.
        """
        if self.primary:
            return self.primary
        if self.is_writable_primary or self.ismaster:
            return self.me or None
        return None


@dataclass(frozen=True)
class PodCandidate:
    name: str
    primary_label: str | None = None


class LabelIntent(Enum):
    SET_TRUE = "true"
    SET_FALSE = "false"
    REMOVE = "remove"

    @property
    def label_value(self) -> str | None:
        # None deletes the key under strategic-merge semantics.
        if self is LabelIntent.REMOVE:
            return None
        return self.value

    @classmethod
    def for_pod(cls, pod_name: str, primary: str, label_all: bool) -> "LabelIntent":
        if pod_name == primary:
            return cls.SET_TRUE
        if label_all:
            return cls.SET_FALSE
        return cls.REMOVE


@dataclass(frozen=True)
class LabelPatch:
    pod: str
    intent: LabelIntent

    def body(self) -> dict[str, Any]:
        return {"metadata": {"labels": {PRIMARY_LABEL: self.intent.label_value}}}
