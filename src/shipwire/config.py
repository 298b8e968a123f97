"""Connection configuration and endpoint resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping
from urllib.parse import urlparse

from .errors import ConfigurationError
from .logger import LogLevel

DEFAULT_ENDPOINT = "unix:///var/run/docker.sock"

ENV_HOST = "DOCKER_HOST"
ENV_CERT_PATH = "DOCKER_CERT_PATH"
ENV_TLS_VERIFY = "DOCKER_TLS_VERIFY"

CERT_FILE = "cert.pem"
KEY_FILE = "key.pem"
CA_FILE = "ca.pem"

Scheme = Literal["unix", "tcp", "http", "https"]

_TCP_SCHEMES = {"tcp", "http", "https"}


@dataclass
class ClientConfig:
    """Connection options, resolved once into a ``ConnectionDescriptor``.

    ``tls_verify`` only applies together with ``tls_cert_dir``: it decides
    whether the directory's ``ca.pem`` is enforced or the server certificate
    is accepted as presented. An ``https://`` endpoint without a certificate
    directory always verifies against the system trust store.
    """

    endpoint: str | None = None
    tls_cert_dir: str | None = None
    tls_verify: bool = False
    timeout: float | None = None
    default_headers: Mapping[str, str] | None = None
    logger: object | None = None
    log_level: LogLevel = "info"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> "ClientConfig":
        """Build a config from the conventional DOCKER_* variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "endpoint": env.get(ENV_HOST) or None,
            "tls_cert_dir": env.get(ENV_CERT_PATH) or None,
            "tls_verify": bool(env.get(ENV_TLS_VERIFY)),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


@dataclass(frozen=True)
class TlsMaterial:
    cert_file: Path
    key_file: Path
    ca_file: Path | None = None


@dataclass(frozen=True)
class ConnectionDescriptor:
    scheme: Scheme
    host: str | None = None
    port: int | None = None
    path: str | None = None
    tls: TlsMaterial | None = None
    verify: bool = False

    @property
    def is_unix(self) -> bool:
        return self.scheme == "unix"

    def __str__(self) -> str:
        if self.is_unix:
            return f"unix://{self.path}"
        return f"{self.scheme}://{self.host}:{self.port}"


def resolve_descriptor(config: ClientConfig) -> ConnectionDescriptor:
    endpoint = (config.endpoint or DEFAULT_ENDPOINT).strip()
    if "://" not in endpoint:
        endpoint = f"tcp://{endpoint}"

    parsed = urlparse(endpoint)
    scheme = parsed.scheme.lower()

    if scheme == "unix":
        path = parsed.path or parsed.netloc
        if not path:
            raise ConfigurationError(f"Unix endpoint has no socket path: {endpoint}", context=endpoint)
        return ConnectionDescriptor(scheme="unix", path=path)

    if scheme not in _TCP_SCHEMES:
        raise ConfigurationError(f"Unsupported scheme: {scheme}", context=endpoint)

    host = parsed.hostname
    if not host:
        raise ConfigurationError(f"Endpoint has no host: {endpoint}", context=endpoint)
    try:
        port = parsed.port
    except ValueError as exc:
        raise ConfigurationError(f"Invalid port in endpoint: {endpoint}", context=endpoint) from exc
    if port is None:
        port = 443 if scheme == "https" else 80

    tls = load_tls_material(config.tls_cert_dir, verify=config.tls_verify) if config.tls_cert_dir else None
    return ConnectionDescriptor(
        scheme=scheme,  # type: ignore[arg-type]
        host=host,
        port=port,
        tls=tls,
        verify=config.tls_verify,
    )


def load_tls_material(cert_dir: str, *, verify: bool) -> TlsMaterial:
    base = Path(cert_dir).expanduser()
    if not base.is_dir():
        raise ConfigurationError(f"TLS certificate directory not found: {base}", context=str(base))

    cert_file = base / CERT_FILE
    key_file = base / KEY_FILE
    ca_file = base / CA_FILE if verify else None

    for required in (cert_file, key_file, ca_file):
        if required is not None and not required.is_file():
            raise ConfigurationError(f"Missing TLS material: {required}", context=str(required))
    return TlsMaterial(cert_file=cert_file, key_file=key_file, ca_file=ca_file)


__all__ = [
    "ClientConfig",
    "ConnectionDescriptor",
    "DEFAULT_ENDPOINT",
    "TlsMaterial",
    "load_tls_material",
    "resolve_descriptor",
]
