"""Shared fixtures for unit tests."""

import json

import pytest


@pytest.fixture
def admission_review_factory():
    """Factory for creating AdmissionReview documents for a Pod"""
    def _create_admission_review(
        images=("docker.io/library/nginx:1.21",),
        uid="705ab4f5-6393-11e8-b7cc-42010a800002",
        api_version="admission.k8s.io/v1",
        kind="AdmissionReview",
        pod=None,
    ):
        if pod is None:
            pod = {
                "apiVersion": "v1",
                "kind": "Pod",
                "metadata": {"name": "test-pod", "namespace": "default"},
                "spec": {
                    "containers": [
                        {"name": f"c{index}", "image": image}
                        for index, image in enumerate(images)
                    ]
                },
            }
        return {
            "apiVersion": api_version,
            "kind": kind,
            "request": {
                "uid": uid,
                "kind": {"group": "", "version": "v1", "kind": "Pod"},
                "resource": {"group": "", "version": "v1", "resource": "pods"},
                "namespace": "default",
                "name": "test-pod",
                "operation": "CREATE",
                "userInfo": {"username": "admin"},
                "object": pod,
                "dryRun": False,
            },
        }

    return _create_admission_review


@pytest.fixture
def encode_review():
    def _encode(review):
        return json.dumps(review).encode("utf-8")

    return _encode
