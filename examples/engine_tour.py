"""End-to-end tour of the transport layer against a live engine."""

from __future__ import annotations

import itertools
import os
import sys
import time

from shipwire import EngineClient, Fault, NetworkError, StreamTag, UpgradeRejected, json_body, with_query

IMAGE = os.getenv("SHIPWIRE_DEMO_IMAGE", "alpine:3.19")
LOG_LEVEL = os.getenv("SHIPWIRE_CLIENT_LOG", "info")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def ensure_engine(client: EngineClient) -> None:
    result = client.request_safe("GET", "/_ping")
    if not result.ok:
        raise NetworkError(f"Cannot reach {client.descriptor}: {result.error}")


def pull_image(client: EngineClient, image: str) -> None:
    path = with_query("/images/create", {"fromImage": image})
    for progress in client.stream_values("POST", path, reassemble=True):
        status = progress.get("status", "")
        layer = progress.get("id")
        print(f"  {layer + ': ' if layer else ''}{status}")


def run_container(client: EngineClient, image: str) -> str:
    create_body = {
        "Image": image,
        "Cmd": ["sh", "-c", "echo to-stdout; echo to-stderr 1>&2; sleep 30"],
        "AttachStdout": True,
        "AttachStderr": True,
    }
    created = client.post_json("/containers/create", body=json_body(create_body))
    container_id = created["Id"]
    client.post(f"/containers/{container_id}/start")
    time.sleep(1)
    return container_id


def print_logs(client: EngineClient, container_id: str) -> None:
    path = with_query(f"/containers/{container_id}/logs", {"stdout": 1, "stderr": 1})
    with client.stream_frames("GET", path) as frames:
        for frame in frames:
            label = "err" if frame.tag is StreamTag.STDERR else "out"
            print(f"  [{label}] {frame.as_text().rstrip()}")


def interactive_exec(client: EngineClient, container_id: str) -> None:
    exec_spec = {"Cmd": ["cat"], "AttachStdin": True, "AttachStdout": True, "AttachStderr": True}
    created = client.post_json(f"/containers/{container_id}/exec", body=json_body(exec_spec))
    try:
        channel = client.stream_post_upgrade(
            f"/exec/{created['Id']}/start",
            body=json_body({"Detach": False, "Tty": False}),
        )
    except UpgradeRejected as exc:
        print(f"→ Engine refused the upgrade: {exc}")
        return
    with channel:
        channel.write(b"echo over the upgraded connection\n")
        for frame in itertools.islice(channel.frames(), 1):
            print(f"  [{frame.tag.name.lower()}] {frame.as_text().rstrip()}")


def main() -> None:
    log_section("shipwire: transport tour")
    client = EngineClient.from_env(log_level=LOG_LEVEL)
    print(f"Connecting to {client.descriptor} via {client.transport!r}")
    ensure_engine(client)

    log_section("Step 1: Engine version")
    version = client.version()
    print(f"→ Engine {version.get('Version')} (API {version.get('ApiVersion')})")

    log_section(f"Step 2: Pull {IMAGE}")
    pull_image(client, IMAGE)

    log_section("Step 3: Run a container and read its multiplexed logs")
    container_id = run_container(client, IMAGE)
    print(f"→ Container {container_id[:12]} started")
    print_logs(client, container_id)

    log_section("Step 4: Interactive exec over a protocol upgrade")
    try:
        interactive_exec(client, container_id)
    except Fault as exc:
        print(f"→ Exec failed ({exc.status}): {exc.message}")

    log_section("Step 5: Clean up")
    client.delete(with_query(f"/containers/{container_id}", {"force": "true"}))
    print(f"→ Removed {container_id[:12]}")
    client.close()


if __name__ == "__main__":
    try:
        main()
    except (Fault, NetworkError) as exc:
        print(f"tour aborted: {exc}", file=sys.stderr)
        sys.exit(1)
