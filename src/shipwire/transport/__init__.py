"""Transport implementations and backend selection."""

from __future__ import annotations

import httpx

from ..config import ConnectionDescriptor
from ..errors import ConfigurationError
from ..logger import BoundLogger, create_logger
from .base import Transport, TransportKind
from .tcp import TcpTransport
from .tls import EncryptedTcpTransport, build_ssl_context
from .unix import UnixSocketTransport, unix_sockets_supported


def select_transport(
    descriptor: ConnectionDescriptor,
    *,
    timeout: float | None = None,
    client: httpx.Client | None = None,
    logger: BoundLogger | None = None,
) -> Transport:
    """Pick the single backend that serves ``descriptor``.

    Selection happens once per client. Domain sockets win when the scheme asks
    for them; TCP endpoints become TLS when certificate material is configured
    or the scheme is ``https``, and plain TCP otherwise.
    """
    log = logger or create_logger()

    if descriptor.is_unix:
        if not descriptor.path:
            raise ConfigurationError("Unix descriptor without a socket path", context=descriptor)
        log.info("Using unix socket transport at %s", descriptor.path)
        return UnixSocketTransport(descriptor.path, timeout=timeout, client=client, logger=log)

    if not descriptor.host or descriptor.port is None:
        raise ConfigurationError(f"Incomplete TCP descriptor: {descriptor}", context=descriptor)

    if descriptor.tls is not None or descriptor.scheme == "https":
        log.info("Using TLS transport to %s:%s", descriptor.host, descriptor.port)
        return EncryptedTcpTransport(
            descriptor.host,
            descriptor.port,
            material=descriptor.tls,
            verify=descriptor.verify,
            timeout=timeout,
            client=client,
            logger=log,
        )

    log.info("Using tcp transport to %s:%s", descriptor.host, descriptor.port)
    return TcpTransport(descriptor.host, descriptor.port, timeout=timeout, client=client, logger=log)


__all__ = [
    "EncryptedTcpTransport",
    "TcpTransport",
    "Transport",
    "TransportKind",
    "UnixSocketTransport",
    "build_ssl_context",
    "select_transport",
    "unix_sockets_supported",
]
