"""Command line utilities for connect-inject."""

from __future__ import annotations

import argparse
import logging

from .handler import Handler
from .injector import DEFAULT_IMAGE, DEFAULT_SIDECAR_NAME
from .server import WebhookServer
from .webhook_config import generate_webhook_configuration_yaml

logger = logging.getLogger(__name__)


def parse_listen(value: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host means all interfaces."""
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise argparse.ArgumentTypeError(f"invalid listen address {value!r}, expected host:port")
    return host or "0.0.0.0", int(port)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="connect-inject")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the mutating admission webhook server.",
    )
    serve_parser.add_argument(
        "--listen",
        type=parse_listen,
        default=":8080",
        help="Address to bind the listener to, as host:port.",
    )
    serve_parser.add_argument("--tls-cert-file", default=None, help="PEM encoded TLS certificate.")
    serve_parser.add_argument("--tls-key-file", default=None, help="PEM encoded TLS private key.")
    serve_parser.add_argument(
        "--image",
        default=DEFAULT_IMAGE,
        help="Container image for the injected proxy sidecar.",
    )
    serve_parser.add_argument(
        "--sidecar-name",
        default=DEFAULT_SIDECAR_NAME,
        help="Container name for the injected proxy sidecar.",
    )
    serve_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level.",
    )

    generate_parser = subparsers.add_parser(
        "generate-webhook",
        help="Generate the Kubernetes MutatingWebhookConfiguration YAML.",
    )
    generate_parser.add_argument("--url", required=True, help="Webhook service URL.")
    generate_parser.add_argument(
        "--name",
        default="connect-injector",
        help="Name for the generated webhook configuration resource.",
    )
    generate_parser.add_argument(
        "--ca-bundle",
        default=None,
        help="Optional base64-encoded CA bundle.",
    )
    generate_parser.add_argument(
        "--exclude-namespace",
        action="append",
        default=None,
        help="Namespace the API server should never send. May be repeated. Defaults to kube-system.",
    )
    generate_parser.add_argument(
        "--failure-policy",
        choices=["Ignore", "Fail"],
        default="Ignore",
        help="What the API server does when the webhook cannot be reached.",
    )
    return parser


def _serve(args: argparse.Namespace) -> int:
    if bool(args.tls_cert_file) != bool(args.tls_key_file):
        logger.error("--tls-cert-file and --tls-key-file must be given together")
        return 1

    host, port = args.listen
    server = WebhookServer(
        host=host,
        port=port,
        cert_file=args.tls_cert_file,
        key_file=args.tls_key_file,
        handler=Handler(image=args.image, sidecar_name=args.sidecar_name),
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        logging.basicConfig(
            level=getattr(logging, args.log_level),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return _serve(args)

    if args.command == "generate-webhook":
        yaml_output = generate_webhook_configuration_yaml(
            url=args.url,
            name=args.name,
            ca_bundle=args.ca_bundle,
            exclude_namespaces=args.exclude_namespace or ["kube-system"],
            failure_policy=args.failure_policy,
        )
        print(yaml_output, end="")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
