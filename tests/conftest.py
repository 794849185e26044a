"""
Shared fixtures: a fake remote origin, a recording host and a wired manager.
"""

import asyncio
import json
import textwrap

import httpx
import pytest

from powerspoons.bootstrap import create_manager
from powerspoons.config import ManagerConfig

MANIFEST_URL = "https://example.test/manifest.json"


def source_url(package_id: str) -> str:
    return f"https://example.test/packages/{package_id}.py"


def package_entry(package_id: str, version: str = "1", **extra) -> dict:
    entry = {
        "id": package_id,
        "name": package_id.capitalize(),
        "version": version,
        "source": source_url(package_id),
        "description": f"The {package_id} package",
    }
    entry.update(extra)
    return entry


def package_source(version: str = "1", start_body: str = "pass", stop_body: str = "pass") -> str:
    """Python source of a package that counts its start/stop calls."""
    return textwrap.dedent(
        f"""
        VERSION = {version!r}


        class Package:
            def __init__(self, manager):
                self.manager = manager
                self.version = VERSION
                self.start_calls = 0
                self.stop_calls = 0

            def start(self):
                self.start_calls += 1
                {start_body}

            def stop(self):
                self.stop_calls += 1
                {stop_body}

            def get_menu_items(self):
                return [{{"title": "Version " + VERSION}}]


        def create(manager):
            return Package(manager)
        """
    )


class FakeRemote:
    """In-memory HTTP origin serving the manifest and package sources."""

    def __init__(self):
        self.routes: dict[str, tuple[int, str]] = {}
        self.requests: list[str] = []
        self.gate: asyncio.Event | None = None

    def set(self, url: str, body: str, status: int = 200) -> None:
        self.routes[url] = (status, body)

    def publish(self, packages: list[dict]) -> None:
        self.set(MANIFEST_URL, json.dumps({"packages": packages}))

    def serve_package(self, package_id: str, source: str, status: int = 200) -> None:
        self.set(source_url(package_id), source, status)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if self.gate is not None:
            await self.gate.wait()
        status, body = self.routes.get(url, (404, ""))
        return httpx.Response(status, text=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class RecordingHost:
    """Host that remembers notifications and sounds."""

    def __init__(self):
        self.notifications: list[tuple[str, str]] = []
        self.sounds: list[str] = []

    def notify(self, title: str, text: str = "", **options) -> None:
        self.notifications.append((title, text))

    def play_sound(self, kind: str) -> None:
        self.sounds.append(kind)

    def texts(self) -> list[str]:
        return [text for _, text in self.notifications]


@pytest.fixture
def remote():
    """Fake manifest/package origin."""
    return FakeRemote()


@pytest.fixture
def host():
    """Recording host surface."""
    return RecordingHost()


@pytest.fixture
def config(tmp_path):
    """Configuration rooted in a temporary directory."""
    return ManagerConfig(manifest_url=MANIFEST_URL, base_dir=tmp_path / "powerspoons")


@pytest.fixture
def manager(config, remote, host):
    """Manager wired to the fake remote and recording host."""
    return create_manager(config, host=host, http=remote.client())


@pytest.fixture
def controller(manager):
    return manager.controller
