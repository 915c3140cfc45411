"""Fixtures that run the injector against a local kind cluster."""

import base64
import datetime
import ipaddress
import os
import shutil
import subprocess
import time
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from kube_connect_inject.server import WebhookServer

CLUSTER_NAME = "connect-inject-test"
WEBHOOK_PORT = 8443
WEBHOOK_NAME = "connect-inject-test-webhook"
TEST_NAMESPACE = "connect-inject-test"

SETUP_SCRIPT = Path(__file__).parent / "scripts" / "setup_kind.sh"


def _require_tools() -> None:
    missing = [tool for tool in ("docker", "kind", "kubectl") if shutil.which(tool) is None]
    if missing:
        pytest.skip(f"integration tests need {', '.join(missing)}")
    if subprocess.run(["docker", "info"], capture_output=True).returncode != 0:
        pytest.skip("integration tests need a running docker daemon")


def _host_seen_from_cluster() -> str:
    """Address at which pods in the kind cluster reach this test process."""
    host = os.environ.get("KIND_WEBHOOK_HOST")
    if host:
        return host
    result = subprocess.run(
        ["docker", "network", "inspect", "kind", "--format", "{{(index .IPAM.Config 0).Gateway}}"],
        capture_output=True,
        text=True,
    )
    return result.stdout.strip() or "host.docker.internal"


@pytest.fixture(scope="session")
def kind_cluster():
    """Session-wide kind cluster. Remove it with 'kind delete cluster --name connect-inject-test'."""
    _require_tools()

    setup = subprocess.run(
        ["bash", str(SETUP_SCRIPT)],
        env={**os.environ, "CLUSTER_NAME": CLUSTER_NAME},
        capture_output=True,
        text=True,
    )
    if setup.returncode != 0:
        pytest.fail(f"kind setup failed: {setup.stderr}")

    config.load_kube_config(context=f"kind-{CLUSTER_NAME}")
    return CLUSTER_NAME


@pytest.fixture(scope="session")
def webhook_host(kind_cluster):
    return _host_seen_from_cluster()


@pytest.fixture(scope="session")
def webhook_certs(tmp_path_factory, webhook_host):
    """Self-signed serving certificate whose SAN matches the webhook host."""
    key = ec.generate_private_key(ec.SECP256R1())
    try:
        san = x509.IPAddress(ipaddress.ip_address(webhook_host))
    except ValueError:
        san = x509.DNSName(webhook_host)

    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "connect-injector")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(hours=6))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName("localhost"), san]), critical=False)
        .sign(key, hashes.SHA256())
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)

    cert_dir = tmp_path_factory.mktemp("certs")
    cert_file = cert_dir / "tls.crt"
    key_file = cert_dir / "tls.key"
    cert_file.write_bytes(cert_pem)
    key_file.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )

    return {
        "cert_file": str(cert_file),
        "key_file": str(key_file),
        "ca_bundle_b64": base64.b64encode(cert_pem).decode(),
    }


@pytest.fixture(scope="session")
def webhook_server(webhook_certs):
    server = WebhookServer(
        host="0.0.0.0",
        port=WEBHOOK_PORT,
        cert_file=webhook_certs["cert_file"],
        key_file=webhook_certs["key_file"],
    )
    server.start()
    yield server
    server.stop()


@pytest.fixture(scope="session")
def k8s_client(kind_cluster):
    return {
        "core": client.CoreV1Api(),
        "admission": client.AdmissionregistrationV1Api(),
    }


@pytest.fixture(scope="session")
def test_namespace(k8s_client):
    namespace = client.V1Namespace(metadata=client.V1ObjectMeta(name=TEST_NAMESPACE))
    try:
        k8s_client["core"].create_namespace(namespace)
    except ApiException as e:
        if e.status != 409:
            raise
    return TEST_NAMESPACE


@pytest.fixture
def webhook_configured(k8s_client, webhook_certs, webhook_host, webhook_server):
    """Register the injector for Pods in the test namespace for one test."""
    admission_api = k8s_client["admission"]
    webhook = client.V1MutatingWebhook(
        name="connect-inject.test.consul.hashicorp.com",
        client_config=client.AdmissionregistrationV1WebhookClientConfig(
            url=f"https://{webhook_host}:{WEBHOOK_PORT}/mutate",
            ca_bundle=webhook_certs["ca_bundle_b64"],
        ),
        rules=[
            client.V1RuleWithOperations(
                operations=["CREATE"], api_groups=[""], api_versions=["v1"], resources=["pods"]
            )
        ],
        namespace_selector=client.V1LabelSelector(
            match_labels={"kubernetes.io/metadata.name": TEST_NAMESPACE}
        ),
        admission_review_versions=["v1"],
        side_effects="None",
        timeout_seconds=10,
        failure_policy="Fail",
    )
    configuration = client.V1MutatingWebhookConfiguration(
        metadata=client.V1ObjectMeta(name=WEBHOOK_NAME), webhooks=[webhook]
    )

    try:
        admission_api.create_mutating_webhook_configuration(configuration)
    except ApiException as e:
        if e.status != 409:
            raise
        admission_api.patch_mutating_webhook_configuration(WEBHOOK_NAME, configuration)

    # The API server picks up new webhook configurations asynchronously.
    time.sleep(3)
    yield configuration

    try:
        admission_api.delete_mutating_webhook_configuration(WEBHOOK_NAME)
    except ApiException as e:
        if e.status != 404:
            raise
