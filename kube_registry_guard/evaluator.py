"""Whitelist evaluation of a pod's container images."""

import logging

from .models import Decision, WorkloadSpec
from .policy import Policy

logger = logging.getLogger(__name__)

FORBIDDEN = 403


def evaluate(workload: WorkloadSpec, policy: Policy) -> Decision:
    """
    Decide whether every container image comes from a whitelisted registry.

    Containers are checked in order and evaluation stops at the first image
    that matches no prefix of the policy. A pod without containers is
    allowed; an empty policy denies every image.
    """
    for container in workload.containers:
        if not policy.allows(container.image):
            logger.info("container %r uses untrusted image %s", container.name, container.image)
            return Decision.deny(
                FORBIDDEN,
                f"{container.image} image comes from an untrusted registry! "
                f"Only images from {policy} are allowed.",
            )
    return Decision.allow()
