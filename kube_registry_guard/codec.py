"""
AdmissionReview envelope codec.

Decodes the review envelope the API server posts to the webhook, extracts the
pod's containers from the embedded object and encodes the response envelope.
Only structurally required fields are enforced; anything else in the payload
is ignored so newer API servers keep working.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

from .models import (
    DEFAULT_API_VERSION,
    DEFAULT_KIND,
    Container,
    ReviewRequest,
    ReviewResponse,
    WorkloadSpec,
)


class EnvelopeError(ValueError):
    """Base class for codec failures."""


class DecodeError(EnvelopeError):
    """The inbound envelope could not be decoded."""

    def __init__(self, message: str, api_version: str = "", kind: str = ""):
        super().__init__(message)
        self.api_version = api_version
        self.kind = kind


class ExtractError(EnvelopeError):
    """The embedded object is not a usable pod specification."""


class EncodeError(EnvelopeError):
    """The outbound envelope could not be serialized."""


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _optional_string(mapping: dict[str, Any], key: str) -> str:
    value = mapping.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class EnvelopeCodec:
    # used for the response when the inbound envelope didn't say
    default_api_version: str = DEFAULT_API_VERSION
    default_kind: str = DEFAULT_KIND

    def decode(self, body: bytes) -> ReviewRequest:
        """Decode raw request bytes into a ReviewRequest, raising DecodeError."""
        try:
            document = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
            raise DecodeError(f"couldn't decode body: {exc}") from exc

        if not isinstance(document, dict):
            raise DecodeError(
                f"AdmissionReview must be a JSON object, got {_json_type(document)}"
            )

        api_version = _optional_string(document, "apiVersion")
        kind = _optional_string(document, "kind")
        if not api_version:
            raise DecodeError("AdmissionReview is missing 'apiVersion'", kind=kind)
        if not kind:
            raise DecodeError("AdmissionReview is missing 'kind'", api_version=api_version)

        request = document.get("request")
        if not isinstance(request, dict):
            raise DecodeError(
                "AdmissionReview must contain a 'request' object", api_version, kind
            )
        uid = request.get("uid")
        if not isinstance(uid, str):
            raise DecodeError("AdmissionReview request must contain a string 'uid'", api_version, kind)

        object_kind = request.get("kind")
        return ReviewRequest(
            uid=uid,
            api_version=api_version,
            kind=kind,
            raw_object=request.get("object"),
            operation=_optional_string(request, "operation"),
            namespace=_optional_string(request, "namespace"),
            name=_optional_string(request, "name"),
            object_kind=_optional_string(object_kind, "kind") if isinstance(object_kind, dict) else "",
        )

    def extract_workload(self, review: ReviewRequest) -> WorkloadSpec:
        """Read the container list out of the reviewed pod."""
        pod = review.raw_object
        if pod is None:
            raise ExtractError("request contains no object to review")
        if not isinstance(pod, dict):
            raise ExtractError(f"object must be a JSON object, got {_json_type(pod)}")

        spec = pod.get("spec")
        if spec is None:
            return WorkloadSpec()
        if not isinstance(spec, dict):
            raise ExtractError(f"object 'spec' must be a JSON object, got {_json_type(spec)}")

        entries = spec.get("containers")
        if entries is None:
            return WorkloadSpec()
        if not isinstance(entries, list):
            raise ExtractError(
                f"spec 'containers' must be a JSON array, got {_json_type(entries)}"
            )

        containers = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ExtractError(
                    f"spec.containers[{index}] must be a JSON object, got {_json_type(entry)}"
                )
            image = entry.get("image", "")
            if not isinstance(image, str):
                raise ExtractError(
                    f"spec.containers[{index}].image must be a string, got {_json_type(image)}"
                )
            name = entry.get("name", "")
            containers.append(Container(image=image, name=name if isinstance(name, str) else ""))
        return WorkloadSpec(containers=tuple(containers))

    def encode(self, response: ReviewResponse) -> bytes:
        try:
            return json.dumps(response.to_dict(), separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodeError(f"couldn't encode response: {exc}") from exc
