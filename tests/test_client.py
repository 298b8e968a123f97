import json

import httpx
import pytest

from shipwire import (
    ClientConfig,
    EngineClient,
    EncryptedTcpTransport,
    Fault,
    Frame,
    RegistryAuth,
    SerializationError,
    StreamTag,
    TcpTransport,
    UnixSocketTransport,
    UpgradeRejected,
    encode_frame,
    json_body,
    with_query,
)


class Router:
    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes.get((request.method, request.url.path), httpx.Response(404, json={"message": "page not found"}))


def client_for(router: Router, **kwargs) -> EngineClient:
    http_client = httpx.Client(transport=httpx.MockTransport(router))
    return EngineClient(endpoint="tcp://engine:2375", http_client=http_client, **kwargs)


def test_ping_and_version() -> None:
    router = Router(
        {
            ("GET", "/_ping"): httpx.Response(200, content=b"OK"),
            ("GET", "/version"): httpx.Response(200, json={"ApiVersion": "1.41"}),
        }
    )
    client = client_for(router)
    assert client.ping() == "OK"
    assert client.version() == {"ApiVersion": "1.41"}


def test_fault_is_raised_for_unknown_route() -> None:
    client = client_for(Router({}))
    with pytest.raises(Fault) as info:
        client.get("/containers/nope/json")
    assert info.value.status == 404
    assert info.value.message == "page not found"


def test_request_safe_wraps_faults() -> None:
    result = client_for(Router({})).request_safe("GET", "/nope")
    assert result.ok is False
    assert isinstance(result.error, Fault)
    ok = client_for(Router({("GET", "/info"): httpx.Response(200, content=b"{}")})).request_safe("GET", "/info")
    assert ok.ok is True
    assert ok.data == "{}"


def test_post_json_sends_json_body() -> None:
    router = Router({("POST", "/containers/create"): httpx.Response(201, json={"Id": "abc"})})
    client = client_for(router)
    created = client.post_json("/containers/create", body=json_body({"Image": "alpine"}))
    assert created == {"Id": "abc"}
    assert json.loads(router.requests[0].content) == {"Image": "alpine"}
    assert router.requests[0].headers["content-type"] == "application/json"


def test_delete_json_with_empty_body_returns_none() -> None:
    client = client_for(Router({("DELETE", "/volumes/data"): httpx.Response(204)}))
    assert client.delete_json("/volumes/data") is None


def test_get_json_rejects_malformed_body() -> None:
    client = client_for(Router({("GET", "/info"): httpx.Response(200, content=b"{not json")}))
    with pytest.raises(SerializationError):
        client.get_json("/info")


def test_default_headers_carry_registry_auth() -> None:
    auth = RegistryAuth(username="robot", password="s3cret")
    router = Router({("POST", "/images/create"): httpx.Response(200, content=b"")})
    client = client_for(router, default_headers=auth.headers())
    client.post("/images/create?fromImage=alpine")
    assert router.requests[0].headers["x-registry-auth"] == auth.serialize()


def test_stream_values_yields_progress_documents() -> None:
    body = iter([b'{"status":"Pulling fs layer"}\r\n{"status":"Downloading"}', b'{"status":"Pull complete"}'])
    router = Router({("POST", "/images/create"): httpx.Response(200, content=body)})
    values = client_for(router).stream_values("POST", "/images/create?fromImage=alpine")
    assert [value["status"] for value in values] == ["Pulling fs layer", "Downloading", "Pull complete"]


def test_stream_frames_splits_logs() -> None:
    wire = encode_frame(StreamTag.STDOUT, b"booting\n") + encode_frame(StreamTag.STDERR, b"warn\n")
    router = Router({("GET", "/containers/abc/logs"): httpx.Response(200, content=iter([wire[:3], wire[3:]]))})
    frames = client_for(router).stream_frames("GET", "/containers/abc/logs?stdout=1&stderr=1")
    assert list(frames) == [Frame(StreamTag.STDOUT, b"booting\n"), Frame(StreamTag.STDERR, b"warn\n")]


def test_stream_fault_raises_before_streaming() -> None:
    router = Router({("GET", "/containers/abc/logs"): httpx.Response(409, json={"message": "container not running"})})
    with pytest.raises(Fault) as info:
        client_for(router).stream_frames("GET", "/containers/abc/logs")
    assert info.value.message == "container not running"


def test_events_decodes_line_delimited_feed() -> None:
    feed = iter([b'{"Type":"container","Action":"start"}\n{"Type":"net', b'work","Action":"connect"}\n'])
    router = Router({("GET", "/events"): httpx.Response(200, content=feed)})
    client = client_for(router)
    events = list(client.events({"since": 10, "until": None}))
    assert [event["Action"] for event in events] == ["start", "connect"]
    assert router.requests[0].url.query == b"since=10"


def test_events_rejects_malformed_line() -> None:
    router = Router({("GET", "/events"): httpx.Response(200, content=iter([b"garbage\n"]))})
    with pytest.raises(SerializationError):
        list(client_for(router).events())


def test_stream_post_upgrade_rejected_on_plain_ok() -> None:
    router = Router({("POST", "/containers/abc/attach"): httpx.Response(200)})
    with pytest.raises(UpgradeRejected):
        client_for(router).stream_post_upgrade("/containers/abc/attach?stream=1")


def test_transport_selection_based_on_endpoint() -> None:
    assert isinstance(EngineClient(endpoint="unix:///var/run/docker.sock").transport, UnixSocketTransport)
    assert isinstance(EngineClient(endpoint="tcp://127.0.0.1:2375").transport, TcpTransport)
    assert isinstance(EngineClient(endpoint="https://127.0.0.1:2376").transport, EncryptedTcpTransport)


def test_from_env_uses_docker_host() -> None:
    client = EngineClient.from_env({"DOCKER_HOST": "tcp://10.1.2.3:2375"})
    assert isinstance(client.transport, TcpTransport)
    assert client.descriptor.host == "10.1.2.3"
    client.close()


def test_config_object_is_accepted() -> None:
    with EngineClient(ClientConfig(endpoint="unix:///run/user/1000/docker.sock")) as client:
        assert client.descriptor.path == "/run/user/1000/docker.sock"


def test_with_query_skips_missing_values() -> None:
    assert with_query("/containers/json", {"all": "true", "limit": None}) == "/containers/json?all=true"
    assert with_query("/logs?stdout=1", {"tail": 10}) == "/logs?stdout=1&tail=10"
    assert with_query("/info", None) == "/info"
