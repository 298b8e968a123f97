"""Public surface for the shipwire container engine client."""

from .auth import RegistryAuth
from .client import EngineClient, json_body, with_query
from .config import ClientConfig, ConnectionDescriptor, resolve_descriptor
from .demux import Frame, FrameDemultiplexer, StreamTag, encode_frame
from .errors import (
    ConfigurationError,
    Fault,
    InvalidFrameError,
    NetworkError,
    SerializationError,
    ShipwireError,
    TruncatedStreamError,
    UpgradeRejected,
)
from .executor import Request, RequestExecutor
from .streams import ChunkStream, JSONValueStream, LineStream
from .transport import EncryptedTcpTransport, TcpTransport, UnixSocketTransport, select_transport
from .types import ExecuteResult
from .upgrade import UpgradeChannel
from .version import __version__

__all__ = [
    "__version__",
    "ChunkStream",
    "ClientConfig",
    "ConfigurationError",
    "ConnectionDescriptor",
    "EncryptedTcpTransport",
    "EngineClient",
    "ExecuteResult",
    "Fault",
    "Frame",
    "FrameDemultiplexer",
    "InvalidFrameError",
    "JSONValueStream",
    "LineStream",
    "NetworkError",
    "RegistryAuth",
    "Request",
    "RequestExecutor",
    "SerializationError",
    "ShipwireError",
    "StreamTag",
    "TcpTransport",
    "TruncatedStreamError",
    "UnixSocketTransport",
    "UpgradeChannel",
    "UpgradeRejected",
    "encode_frame",
    "json_body",
    "resolve_descriptor",
    "select_transport",
    "with_query",
]
