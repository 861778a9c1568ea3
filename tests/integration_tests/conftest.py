"""Pytest fixtures for integration tests."""

import datetime
import ipaddress

import pytest

from kube_registry_guard.codec import EnvelopeCodec
from kube_registry_guard.config import Settings
from kube_registry_guard.handler import AdmissionHandler
from kube_registry_guard.policy import Policy
from kube_registry_guard.server import WebhookServer


WHITELIST = ("docker.io/library/", "gcr.io/myorg/")
MAX_BODY_BYTES = 16 * 1024


@pytest.fixture(scope="session")
def webhook_certs(tmp_path_factory):
    """Generate self-signed certificates for webhook server."""
    from cryptography import x509
    from cryptography.x509.oid import NameOID
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.asymmetric import rsa
    from cryptography.hazmat.primitives import serialization

    cert_dir = tmp_path_factory.mktemp("certs")

    # Generate private key
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )

    subject = issuer = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Registry Guard Test"),
            x509.NameAttribute(NameOID.COMMON_NAME, "webhook-server"),
        ]
    )
    now = datetime.datetime.now(datetime.timezone.utc)

    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName(
                [
                    x509.DNSName("localhost"),
                    x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
                ]
            ),
            critical=False,
        )
        .sign(private_key, hashes.SHA256())
    )

    key_file = cert_dir / "tls.key"
    cert_file = cert_dir / "tls.crt"

    with open(key_file, "wb") as f:
        f.write(
            private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )

    with open(cert_file, "wb") as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))

    return {
        "cert_file": str(cert_file),
        "key_file": str(key_file),
    }


@pytest.fixture(scope="session")
def webhook_server(webhook_certs):
    """Start a TLS webhook server on an ephemeral port."""
    settings = Settings(
        host="127.0.0.1",
        port=0,
        cert_file=webhook_certs["cert_file"],
        key_file=webhook_certs["key_file"],
        whitelist=WHITELIST,
        max_body_bytes=MAX_BODY_BYTES,
    )
    server = WebhookServer(settings, AdmissionHandler(settings.policy(), EnvelopeCodec()))

    server.start()

    yield server

    server.stop()


@pytest.fixture(scope="session")
def plain_webhook_server():
    """Start a plain HTTP webhook server with an empty whitelist."""
    settings = Settings(host="127.0.0.1", port=0, cert_file=None, key_file=None)
    server = WebhookServer(settings, AdmissionHandler(Policy()))

    server.start()

    yield server

    server.stop()
