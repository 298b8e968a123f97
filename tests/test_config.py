from pathlib import Path

import pytest

from shipwire import ClientConfig, ConfigurationError, resolve_descriptor
from shipwire.config import DEFAULT_ENDPOINT, load_tls_material


def make_cert_dir(tmp_path: Path, *names: str) -> Path:
    for name in names:
        (tmp_path / name).write_text("-----BEGIN PLACEHOLDER-----\n")
    return tmp_path


def test_default_endpoint_is_local_socket() -> None:
    descriptor = resolve_descriptor(ClientConfig())
    assert DEFAULT_ENDPOINT == "unix:///var/run/docker.sock"
    assert descriptor.is_unix
    assert descriptor.path == "/var/run/docker.sock"


def test_from_env_reads_docker_variables(tmp_path: Path) -> None:
    cert_dir = make_cert_dir(tmp_path, "cert.pem", "key.pem", "ca.pem")
    config = ClientConfig.from_env(
        {
            "DOCKER_HOST": "tcp://10.0.0.5:2376",
            "DOCKER_CERT_PATH": str(cert_dir),
            "DOCKER_TLS_VERIFY": "1",
        }
    )
    assert config.endpoint == "tcp://10.0.0.5:2376"
    assert config.tls_verify is True
    descriptor = resolve_descriptor(config)
    assert (descriptor.host, descriptor.port) == ("10.0.0.5", 2376)
    assert descriptor.tls is not None
    assert descriptor.tls.ca_file == cert_dir / "ca.pem"


def test_from_env_without_variables_uses_defaults() -> None:
    config = ClientConfig.from_env({})
    assert config.endpoint is None
    assert config.tls_cert_dir is None
    assert config.tls_verify is False


def test_from_env_accepts_overrides() -> None:
    config = ClientConfig.from_env({"DOCKER_HOST": "tcp://a:1"}, timeout=5.0)
    assert config.timeout == 5.0


def test_unix_endpoint_from_env() -> None:
    descriptor = resolve_descriptor(ClientConfig.from_env({"DOCKER_HOST": "unix:///docker.sock"}))
    assert descriptor.path == "/docker.sock"


@pytest.mark.parametrize(
    ("endpoint", "scheme", "host", "port"),
    [
        ("tcp://localhost:2375", "tcp", "localhost", 2375),
        ("http://localhost:8000", "http", "localhost", 8000),
        ("https://engine.internal", "https", "engine.internal", 443),
        ("tcp://engine.internal", "tcp", "engine.internal", 80),
        ("127.0.0.1:2375", "tcp", "127.0.0.1", 2375),
    ],
)
def test_tcp_family_endpoints(endpoint: str, scheme: str, host: str, port: int) -> None:
    descriptor = resolve_descriptor(ClientConfig(endpoint=endpoint))
    assert (descriptor.scheme, descriptor.host, descriptor.port) == (scheme, host, port)
    assert descriptor.tls is None


@pytest.mark.parametrize("endpoint", ["ftp://engine:21", "npipe:////./pipe/docker_engine", "tcp://:2375", "unix://"])
def test_unsupported_or_malformed_endpoints_fail_eagerly(endpoint: str) -> None:
    with pytest.raises(ConfigurationError):
        resolve_descriptor(ClientConfig(endpoint=endpoint))


def test_missing_cert_dir_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        resolve_descriptor(ClientConfig(endpoint="tcp://a:2376", tls_cert_dir=str(tmp_path / "absent")))


def test_ca_only_required_when_verifying(tmp_path: Path) -> None:
    cert_dir = make_cert_dir(tmp_path, "cert.pem", "key.pem")
    material = load_tls_material(str(cert_dir), verify=False)
    assert material.ca_file is None
    with pytest.raises(ConfigurationError):
        load_tls_material(str(cert_dir), verify=True)


def test_descriptor_is_immutable() -> None:
    descriptor = resolve_descriptor(ClientConfig(endpoint="tcp://a:1"))
    with pytest.raises(AttributeError):
        descriptor.port = 2  # type: ignore[misc]
