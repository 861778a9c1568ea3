"""
Kubernetes Registry Whitelist Admission Webhook

This package provides a validating admission webhook that only admits pods
whose container images come from an operator-supplied list of registries.
"""

from .codec import EnvelopeCodec
from .evaluator import evaluate
from .handler import AdmissionHandler
from .policy import Policy

__all__ = [
    'AdmissionHandler',
    'EnvelopeCodec',
    'Policy',
    'evaluate'
]
