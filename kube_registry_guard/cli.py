"""Command line utilities for kube-registry-guard."""

from __future__ import annotations

import argparse
import logging
from typing import Callable

from .codec import EnvelopeCodec
from .config import (
    DEFAULT_LOG_LEVEL,
    LOG_LEVELS,
    WHITELIST_ENV_VAR,
    load_settings,
    parse_body_limit,
    parse_port,
)
from .handler import AdmissionHandler
from .server import WebhookServer
from .webhook_config import MODES, generate_webhook_configuration_yaml

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _checked(converter: Callable[[str], int]) -> Callable[[str], int]:
    """Turn a config converter's ValueError into an argparse usage error."""
    def convert(value: str) -> int:
        try:
            return converter(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    return convert


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="registry-guard")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the admission webhook server.",
    )
    serve_parser.add_argument("--host", default=None, help="Address to listen on.")
    serve_parser.add_argument("--port", type=_checked(parse_port), default=None, help="Port to listen on.")
    serve_parser.add_argument("--tls-cert-file", default=None, help="TLS certificate file.")
    serve_parser.add_argument("--tls-key-file", default=None, help="TLS private key file.")
    serve_parser.add_argument(
        "--max-body-bytes",
        type=_checked(parse_body_limit),
        default=None,
        help="Largest request body accepted.",
    )
    serve_parser.add_argument(
        "--whitelist",
        action="append",
        default=None,
        metavar="PREFIX",
        help=f"Allowed registry prefix, may be repeated (default: ${WHITELIST_ENV_VAR}).",
    )
    serve_parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=list(LOG_LEVELS),
        default=None,
        help=f"Logging level (default: {DEFAULT_LOG_LEVEL}).",
    )

    generate_parser = subparsers.add_parser(
        "generate-webhook",
        help="Generate Kubernetes webhook configuration YAML for this server.",
    )
    generate_parser.add_argument("--url", required=True, help="Webhook service base URL.")
    generate_parser.add_argument(
        "--name",
        default="registry-guard",
        help="Base name for generated webhook configuration resources.",
    )
    generate_parser.add_argument(
        "--mode",
        choices=list(MODES),
        default="validating",
        help="Which webhook configuration type(s) to generate.",
    )
    generate_parser.add_argument(
        "--ca-bundle",
        default=None,
        help="Optional base64-encoded CA bundle.",
    )
    return parser


def _serve(args: argparse.Namespace) -> int:
    settings = load_settings(
        host=args.host,
        port=args.port,
        cert_file=args.tls_cert_file,
        key_file=args.tls_key_file,
        whitelist=args.whitelist,
        log_level=args.log_level,
        max_body_bytes=args.max_body_bytes,
    )
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    policy = settings.policy()
    logger.info("Allowed registries: %s", policy)

    handler = AdmissionHandler(policy, EnvelopeCodec())
    WebhookServer(settings, handler).serve_forever()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return _serve(args)

    if args.command == "generate-webhook":
        yaml_output = generate_webhook_configuration_yaml(
            url=args.url,
            name=args.name,
            mode=args.mode,
            ca_bundle=args.ca_bundle,
        )
        print(yaml_output, end="")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
