"""Manifest payloads and a fake HTTP server for template registry tests."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

CODEWIND_URL = "https://templates.example.test/codewind/index.json"
APPSODY_URL = "https://templates.example.test/appsody/index.json"
STYLED_URL = "https://templates.example.test/styled/manifest.json"
NOT_JSON_URL = "https://www.example.test/"
WRONG_SHAPE_URL = "https://api.example.test/status.json"
UNREACHABLE_URL = "https://unreachable.example.test/index.json"
SERVER_ERROR_URL = "https://broken.example.test/index.json"

CODEWIND_INDEX: list[dict[str, typ.Any]] = [
    {
        "displayName": "Go",
        "description": "Sample Go application.",
        "language": "go",
        "projectType": "docker",
        "location": "https://github.com/example/goTemplate",
    },
    {
        "displayName": "Node.js Express",
        "description": "Express web application.",
        "language": "nodejs",
        "projectType": "nodejs",
        "location": "https://github.com/example/nodeExpressTemplate",
    },
]

APPSODY_INDEX: list[dict[str, typ.Any]] = [
    {
        "displayName": "Appsody Node.js",
        "description": "Appsody Node.js stack.",
        "language": "nodejs",
        "projectType": "appsodyExtension",
        "projectStyle": "Appsody",
        "location": "https://github.com/example/appsody-nodejs.tar.gz",
    },
]

STYLED_MANIFEST: dict[str, list[dict[str, typ.Any]]] = {
    "Codewind": [CODEWIND_INDEX[0]],
    "Appsody": [
        {
            "displayName": "Appsody Java",
            "location": "https://github.com/example/appsody-java.tar.gz",
            "language": "java",
        }
    ],
}

WRONG_SHAPE_PAYLOAD: dict[str, typ.Any] = {"status": "ok", "uptime": 1234}


@dataclasses.dataclass(slots=True)
class FakeManifestServer:
    """Serve canned responses keyed by URL and record every request."""

    routes: dict[str, httpx.Response] = dataclasses.field(default_factory=dict)
    unreachable: set[str] = dataclasses.field(default_factory=set)
    requested: list[str] = dataclasses.field(default_factory=list)

    def serve_json(self, url: str, payload: object) -> None:
        """Serve ``payload`` as JSON at ``url``."""
        self.routes[url] = httpx.Response(200, json=payload)

    def serve_text(self, url: str, body: str, *, status_code: int = 200) -> None:
        """Serve a plain-text body at ``url``."""
        self.routes[url] = httpx.Response(
            status_code, text=body, headers={"Content-Type": "text/html"}
        )

    def handle(self, request: httpx.Request) -> httpx.Response:
        """Answer a request from the route table."""
        url = str(request.url)
        self.requested.append(url)
        if url in self.unreachable:
            msg = f"connection refused: {url}"
            raise httpx.ConnectError(msg, request=request)
        response = self.routes.get(url)
        if response is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(
            response.status_code,
            content=response.content,
            headers=response.headers,
        )


def default_server() -> FakeManifestServer:
    """Return a server with the standard test manifests registered."""
    server = FakeManifestServer()
    server.serve_json(CODEWIND_URL, CODEWIND_INDEX)
    server.serve_json(APPSODY_URL, APPSODY_INDEX)
    server.serve_json(STYLED_URL, STYLED_MANIFEST)
    server.serve_text(NOT_JSON_URL, "<html><body>Search</body></html>")
    server.serve_json(WRONG_SHAPE_URL, WRONG_SHAPE_PAYLOAD)
    server.serve_text(SERVER_ERROR_URL, "oops", status_code=500)
    server.unreachable.add(UNREACHABLE_URL)
    return server
