"""
Admission request handling.

The handler checks the transport preconditions, decodes the AdmissionReview,
dispatches on the URL path and always answers with a well-formed review
envelope once the preconditions hold.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

from .codec import DecodeError, EncodeError, EnvelopeCodec, ExtractError
from .evaluator import evaluate
from .models import Decision, ReviewRequest, ReviewResponse
from .policy import Policy

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

VALIDATE_PATH = "/validate"
MUTATE_PATH = "/mutate"

BAD_REQUEST = 400
NOT_FOUND = 404
INTERNAL_SERVER_ERROR = 500


@dataclass(frozen=True)
class HandlerResponse:
    status: int
    body: bytes
    content_type: str = JSON_CONTENT_TYPE

    @classmethod
    def error(cls, status: int, message: str) -> "HandlerResponse":
        return cls(status=status, body=f"{message}\n".encode("utf-8"), content_type=TEXT_CONTENT_TYPE)


def _content_type(headers: Mapping[str, Any]) -> str | None:
    for key, value in headers.items():
        if key.lower() == "content-type":
            return value
    return None


class AdmissionHandler:
    def __init__(self, policy: Policy, codec: EnvelopeCodec | None = None):
        self.policy = policy
        self.codec = codec if codec is not None else EnvelopeCodec()
        self.routes: dict[str, Callable[[ReviewRequest], Decision]] = {
            VALIDATE_PATH: self.validate,
            MUTATE_PATH: self.mutate,
        }

    def validate(self, review: ReviewRequest) -> Decision:
        logger.info(
            "AdmissionReview for Kind=%s, Namespace=%s, Name=%s, UID=%s, Operation=%s",
            review.object_kind, review.namespace, review.name, review.uid, review.operation,
        )
        try:
            workload = self.codec.extract_workload(review)
        except ExtractError as exc:
            logger.error("Can't read pod from request %s: %s", review.uid, exc)
            return Decision.deny(BAD_REQUEST, str(exc))
        logger.debug("checking images %s against %s", workload.images, self.policy)
        return evaluate(workload, self.policy)

    def mutate(self, review: ReviewRequest) -> Decision:
        """Let the object through unchanged; no mutating policy is implemented."""
        logger.debug("mutate pass-through for UID=%s", review.uid)
        return Decision.allow()

    def handle(
        self,
        method: str,
        path: str,
        headers: Mapping[str, Any],
        body: bytes | None,
    ) -> HandlerResponse:
        """Turn one HTTP request into the HTTP response to write back."""
        if not body:
            logger.error("empty data body")
            return HandlerResponse.error(BAD_REQUEST, "empty data body")

        content_type = _content_type(headers)
        if content_type != JSON_CONTENT_TYPE:
            logger.error("Content-Type is %s, but expect %s", content_type, JSON_CONTENT_TYPE)
            return HandlerResponse.error(
                BAD_REQUEST, f"Content-Type invalid, expect {JSON_CONTENT_TYPE}"
            )

        route_path = urlsplit(path).path
        route = self.routes.get(route_path)
        if route is None:
            logger.error("%s %s: no admission pipeline for this path", method, route_path)
            return HandlerResponse.error(NOT_FOUND, f"no admission pipeline for path {route_path}")

        try:
            review = self.codec.decode(body)
        except DecodeError as exc:
            logger.error("Can't decode body: %s", exc)
            response = ReviewResponse(
                api_version=exc.api_version or self.codec.default_api_version,
                kind=exc.kind or self.codec.default_kind,
                decision=Decision.deny(INTERNAL_SERVER_ERROR, str(exc)),
            )
        else:
            response = ReviewResponse(
                api_version=review.api_version,
                kind=review.kind,
                uid=review.uid,
                decision=route(review),
            )

        logger.info(
            "sending response: uid=%s allowed=%s code=%s message=%r",
            response.uid, response.decision.allowed, response.decision.code, response.decision.message,
        )
        try:
            payload = self.codec.encode(response)
        except EncodeError as exc:
            logger.error("Can't encode response: %s", exc)
            return HandlerResponse.error(BAD_REQUEST, str(exc))
        return HandlerResponse(status=200, body=payload)
