import pytest

from kube_registry_guard.webhook_config import generate_webhook_configuration_yaml


def test_validating_configuration_targets_validate_path():
    """Test the default validating configuration for pods"""
    output = generate_webhook_configuration_yaml(url="https://webhook.example.com:8443/")

    assert "kind: ValidatingWebhookConfiguration" in output
    assert "kind: MutatingWebhookConfiguration" not in output
    assert "url: https://webhook.example.com:8443/validate" in output
    assert "- pods" in output
    assert "- CREATE" in output
    assert '- ""' in output


def test_both_modes_generate_two_documents():
    output = generate_webhook_configuration_yaml(
        url="https://webhook.example.com:8443",
        name="Registry Guard",
        mode="both",
        ca_bundle="Q0EtQlVORExF",
    )

    documents = output.split("\n---\n")
    assert len(documents) == 2
    assert "url: https://webhook.example.com:8443/mutate" in documents[1]
    assert "name: registry-guard-validating" in documents[0]
    assert output.count("caBundle: Q0EtQlVORExF") == 2


def test_invalid_mode_raises():
    with pytest.raises(ValueError, match="mode must be one of"):
        generate_webhook_configuration_yaml(url="https://x", mode="sideways")
