"""Webhook configuration generation utilities."""

from __future__ import annotations

import re

from .handler import MUTATE_PATH, VALIDATE_PATH

MODES = ("validating", "mutating", "both")


def _render_list(values: list[str], indent: int) -> list[str]:
    space = " " * indent
    return [f"{space}- {value}" for value in values]


def _join_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + path


def _render_webhook_config(
    *,
    config_kind: str,
    name: str,
    url: str,
    ca_bundle: str | None,
) -> str:
    webhook_name = re.sub(r"[^a-z0-9.-]", "-", name.lower()).strip("-")
    webhook_name = webhook_name or "registry-guard"

    lines = [
        "apiVersion: admissionregistration.k8s.io/v1",
        f"kind: {config_kind}",
        "metadata:",
        f"  name: {webhook_name}",
        "webhooks:",
        f"  - name: {webhook_name}.registry-guard.local",
        "    admissionReviewVersions:",
        "      - v1",
        "    sideEffects: None",
        "    failurePolicy: Fail",
        "    timeoutSeconds: 10",
        "    clientConfig:",
        f"      url: {url}",
    ]

    if ca_bundle:
        lines.append(f"      caBundle: {ca_bundle}")

    lines.extend(
        [
            "    rules:",
            "      - operations:",
            *_render_list(["CREATE"], 10),
            "        apiGroups:",
            *_render_list(['""'], 10),
            "        apiVersions:",
            *_render_list(["v1"], 10),
            "        resources:",
            *_render_list(["pods"], 10),
        ]
    )
    return "\n".join(lines)


def generate_webhook_configuration_yaml(
    *,
    url: str,
    name: str = "registry-guard",
    mode: str = "validating",
    ca_bundle: str | None = None,
) -> str:
    """
    Generate the webhook configuration YAML routing pod creation to this server.

    Args:
        url: Base URL of the webhook server reachable by the API server; the
            /validate and /mutate paths are appended.
        name: Base metadata.name for generated resources.
        mode: One of validating, mutating, or both.
        ca_bundle: Optional base64-encoded CA bundle.
    """
    normalized_mode = mode.strip().lower()
    if normalized_mode not in MODES:
        raise ValueError("mode must be one of: validating, mutating, both")

    documents: list[str] = []

    if normalized_mode in {"validating", "both"}:
        documents.append(
            _render_webhook_config(
                config_kind="ValidatingWebhookConfiguration",
                name=f"{name}-validating",
                url=_join_url(url, VALIDATE_PATH),
                ca_bundle=ca_bundle,
            )
        )

    if normalized_mode in {"mutating", "both"}:
        documents.append(
            _render_webhook_config(
                config_kind="MutatingWebhookConfiguration",
                name=f"{name}-mutating",
                url=_join_url(url, MUTATE_PATH),
                ca_bundle=ca_bundle,
            )
        )

    return "\n---\n".join(documents) + "\n"
