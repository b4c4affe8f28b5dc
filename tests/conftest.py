"""Shared pytest fixtures for scanstore tests."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import create_engine

from scanstore.model import (
    CopyrightFinding,
    Hash,
    Identifier,
    LicenseFinding,
    Package,
    Provenance,
    RemoteArtifact,
    ScannerDetails,
    ScanResult,
    ScanSummary,
    TextLocation,
    VcsInfo,
)
from scanstore.storages import ArtifactoryStorage, PostgresStorage

ARTIFACT = RemoteArtifact(
    url="https://repo.example.org/lib-1.0-sources.jar",
    hash=Hash(value="da39a3ee5e6b4b0d3255bfef95601890afd80709", algorithm="SHA-1"),
)

VCS = VcsInfo(
    type="Git",
    url="https://github.com/example/lib.git",
    revision="v1.0",
    resolved_revision="0123456789abcdef0123456789abcdef01234567",
)

API_TOKEN = "secret-token"

RAW_RESULT = {"headers": [{"tool_name": "scancode-toolkit"}], "files": []}


@pytest.fixture
def artifact():
    return ARTIFACT


@pytest.fixture
def vcs():
    return VCS


@pytest.fixture
def identifier():
    return Identifier(type="Maven", namespace="org.example", name="lib", version="1.0")


@pytest.fixture
def package(identifier):
    return Package(id=identifier, source_artifact=ARTIFACT, vcs=VCS, vcs_processed=VCS)


@pytest.fixture
def scanner_v1():
    return ScannerDetails(name="ScanCode", version="3.0.2", configuration="--copyright --license")


@pytest.fixture
def make_result(scanner_v1):
    """Factory for scan results; defaults produce a storable result."""

    def _make(
        *,
        file_count: int = 3,
        raw_result: object = RAW_RESULT,
        source_artifact: RemoteArtifact | None = ARTIFACT,
        vcs_info: VcsInfo | None = None,
        original_vcs_info: VcsInfo | None = None,
        scanner: ScannerDetails | None = None,
        licenses: tuple[str, ...] = ("Apache-2.0",),
    ) -> ScanResult:
        findings = [
            LicenseFinding(
                license=license_id,
                locations=[TextLocation(path="LICENSE", start_line=1, end_line=20)],
                copyrights=[
                    CopyrightFinding(
                        statement="Copyright (C) 2019 Example Inc.",
                        locations=[TextLocation(path="LICENSE", start_line=1, end_line=1)],
                    )
                ],
            )
            for license_id in licenses
        ]
        return ScanResult(
            provenance=Provenance(
                download_time=datetime(2019, 5, 1, 12, 0, tzinfo=timezone.utc),
                source_artifact=source_artifact,
                vcs_info=vcs_info,
                original_vcs_info=original_vcs_info,
            ),
            scanner=scanner or scanner_v1,
            summary=ScanSummary(
                start_time=datetime(2019, 5, 1, 12, 1, tzinfo=timezone.utc),
                end_time=datetime(2019, 5, 1, 12, 2, tzinfo=timezone.utc),
                file_count=file_count,
                license_findings=findings,
            ),
            raw_result=raw_result,
        )

    return _make


# ── Relational storage ──


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'scan-results.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def postgres_storage(sqlite_engine):
    storage = PostgresStorage(sqlite_engine)
    storage.init()
    return storage


# ── Object storage ──


class FakeArtifactory:
    """In-memory Artifactory speaking the subset of the REST API the storage uses."""

    def __init__(self, repository: str = "scans", token: str = API_TOKEN) -> None:
        self.repository = repository
        self.token = token
        self.blobs: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.fail_puts = False

    @staticmethod
    def etag(body: bytes) -> str:
        return '"' + hashlib.sha1(body).hexdigest() + '"'

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("X-JFrog-Art-Api") != self.token:
            return httpx.Response(401)

        path = request.url.path
        if request.method == "POST" and path == "/artifactory/api/search/aql":
            return self._aql(request.content.decode())

        prefix = f"/artifactory/{self.repository}/"
        if not path.startswith(prefix):
            return httpx.Response(404)
        # Keep percent-encoding of path components as sent.
        key = request.url.raw_path.decode().split("?", 1)[0][len(prefix) :]

        if request.method == "GET":
            body = self.blobs.get(key)
            if body is None:
                return httpx.Response(404)
            etag = self.etag(body)
            if request.headers.get("If-None-Match") == etag:
                return httpx.Response(304, headers={"ETag": etag})
            return httpx.Response(200, content=body, headers={"ETag": etag})

        if request.method == "PUT":
            if self.fail_puts:
                return httpx.Response(500)
            self.blobs[key] = request.content
            return httpx.Response(201)

        return httpx.Response(405)

    def _aql(self, query: str) -> httpx.Response:
        if f'"repo": "{self.repository}"' not in query:
            return httpx.Response(400)
        results = [
            {
                "repo": self.repository,
                "path": key.rsplit("/", 1)[0],
                "name": key.rsplit("/", 1)[1],
                "type": "file",
            }
            for key in sorted(self.blobs)
            if key.startswith("scan-results/") and key.endswith("/scan-results.yml")
        ]
        return httpx.Response(200, content=json.dumps({"results": results}))


@pytest.fixture
def fake_artifactory():
    return FakeArtifactory()


@pytest.fixture
def artifactory_storage(fake_artifactory):
    storage = ArtifactoryStorage(
        "https://example.com/artifactory",
        fake_artifactory.repository,
        API_TOKEN,
        transport=httpx.MockTransport(fake_artifactory),
    )
    yield storage
    storage.close()
