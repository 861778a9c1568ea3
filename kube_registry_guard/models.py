"""Data carried through a single admission review."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_API_VERSION = "admission.k8s.io/v1"
DEFAULT_KIND = "AdmissionReview"


@dataclass(frozen=True)
class ReviewRequest:
    uid: str
    api_version: str
    kind: str
    raw_object: Any = None  # the embedded object exactly as it was received
    operation: str = ""
    namespace: str = ""
    name: str = ""
    object_kind: str = ""


@dataclass(frozen=True)
class Container:
    image: str
    name: str = ""


@dataclass(frozen=True)
class WorkloadSpec:
    containers: tuple[Container, ...] = ()

    @property
    def images(self) -> list[str]:
        return [container.image for container in self.containers]


@dataclass(frozen=True)
class Decision:
    allowed: bool
    code: int
    message: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True, code=200)

    @classmethod
    def deny(cls, code: int, message: str) -> "Decision":
        return cls(allowed=False, code=code, message=message)


@dataclass(frozen=True)
class ReviewResponse:
    api_version: str = DEFAULT_API_VERSION
    kind: str = DEFAULT_KIND
    uid: str = ""
    decision: Decision = field(default_factory=Decision.allow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "response": {
                "uid": self.uid,
                "allowed": self.decision.allowed,
                "status": {
                    "code": self.decision.code,
                    "message": self.decision.message,
                },
            },
        }
