"""Object storage for scan results: one YAML blob per identifier in an Artifactory repository."""

from __future__ import annotations

import tempfile
from collections import OrderedDict
from pathlib import Path

import httpx
import structlog
import yaml
from pydantic import ValidationError

from scanstore.exceptions import StorageError
from scanstore.model import (
    CompatibilityPolicy,
    Identifier,
    LicenseFinding,
    ScanResult,
    ScanResultContainer,
    ScanSummary,
)
from scanstore.serialization import container_from_yaml, container_to_yaml
from scanstore.storages.base import FetchResult, FetchStatus, ScanResultsStorage

log = structlog.get_logger("scanstore.storage")

API_TOKEN_HEADER = "X-JFrog-Art-Api"
SCAN_RESULTS_PREFIX = "scan-results"
SCAN_RESULTS_FILE = "scan-results.yml"

DEFAULT_CACHE_SIZE = 256

SCANCODE = "ScanCode"
_LICENSE_REF = "LicenseRef-"
_SCANCODE_LICENSE_REF = "LicenseRef-scancode-"


def storage_path(id: Identifier) -> str:
    return f"{SCAN_RESULTS_PREFIX}/{id.to_path()}/{SCAN_RESULTS_FILE}"


class ResponseCache:
    """Least recently used map of storage path to the (ETag, body) of its last download."""

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: OrderedDict[str, tuple[str, bytes]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def get(self, path: str) -> tuple[str, bytes] | None:
        entry = self._entries.get(path)
        if entry is not None:
            self._entries.move_to_end(path)
        return entry

    def put(self, path: str, etag: str, body: bytes) -> None:
        if path in self._entries:
            self._entries.move_to_end(path)
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[path] = (etag, body)

    def discard(self, path: str) -> None:
        self._entries.pop(path, None)


def patch_scancode_license_refs(results: list[ScanResult]) -> list[ScanResult]:
    """Namespace bare ``LicenseRef-`` ids found by ScanCode as ``LicenseRef-scancode-``.

    Older stored results predate the namespaced license ids. The patch is
    applied to read responses only.
    """
    patched: list[ScanResult] = []
    for result in results:
        if result.scanner.name != SCANCODE:
            patched.append(result)
            continue

        findings: list[LicenseFinding] = []
        for finding in result.summary.license_findings:
            name = finding.license
            if name.startswith(_LICENSE_REF) and not name.startswith(_SCANCODE_LICENSE_REF):
                name = _SCANCODE_LICENSE_REF + name[len(_LICENSE_REF) :]
                log.info("artifactory.patched_license", original=finding.license, patched=name)
                finding = finding.model_copy(update={"license": name})
            findings.append(finding)

        summary = ScanSummary(**{**dict(result.summary), "license_findings": findings})
        patched.append(result.model_copy(update={"summary": summary}))
    return patched


class ArtifactoryStorage(ScanResultsStorage):
    """
    Scan results stored as ``scan-results/<type>/<namespace>/<name>/<version>/scan-results.yml``.
    Adding a result rewrites the whole blob, so two concurrent writers for the
    same identifier can lose one of the additions.
    """

    def __init__(
        self,
        url: str,
        repository: str,
        api_token: str,
        *,
        compatibility: CompatibilityPolicy | None = None,
        timeout: float = 30.0,
        cache_size: int = DEFAULT_CACHE_SIZE,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(compatibility)
        self.url = url.rstrip("/")
        self.repository = repository.strip("/")
        self._api_token = api_token
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, transport=transport)
        self._response_cache = ResponseCache(cache_size)

    @property
    def name(self) -> str:
        return "artifactory"

    # ── lifecycle ──

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ── internal ──

    def _headers(self, **extra: str) -> dict[str, str]:
        return {API_TOKEN_HEADER: self._api_token, **extra}

    def _blob_url(self, path: str) -> str:
        return f"{self.url}/{self.repository}/{path}"

    def _download(self, path: str) -> tuple[int, bytes | None]:
        """GET *path*, revalidating against the local response cache."""
        headers = self._headers(**{"Cache-Control": "max-age=0"})
        cached = self._response_cache.get(path)
        if cached is not None:
            headers["If-None-Match"] = cached[0]

        response = self._client.get(self._blob_url(path), headers=headers)

        if response.status_code == httpx.codes.NOT_MODIFIED and cached is not None:
            log.info("artifactory.cache_hit", path=path)
            return httpx.codes.OK, cached[1]

        if response.status_code == httpx.codes.OK:
            etag = response.headers.get("ETag")
            if etag:
                self._response_cache.put(path, etag, response.content)
            log.info("artifactory.downloaded", path=path)
            return response.status_code, response.content

        log.info(
            "artifactory.download_failed",
            path=path,
            status=response.status_code,
            reason=response.reason_phrase,
        )
        return response.status_code, None

    # ── storage operations ──

    def _fetch(self, id: Identifier) -> FetchResult:
        path = storage_path(id)
        log.info("artifactory.read", id=id.to_coordinates(), path=path)

        try:
            status, body = self._download(path)
        except httpx.HTTPError as exc:
            return FetchResult.failed(id, exc)

        if status == httpx.codes.NOT_FOUND:
            return FetchResult.missing(id)
        if body is None:
            return FetchResult.failed(id, StorageError(f"GET {path} returned HTTP {status}"))

        try:
            container = container_from_yaml(body)
        except (yaml.YAMLError, ValidationError, ValueError) as exc:
            return FetchResult.failed(id, exc)

        return FetchResult.found(ScanResultContainer(id=id, results=container.results))

    def _patch_results(self, results: list[ScanResult]) -> list[ScanResult]:
        return patch_scancode_license_refs(results)

    def _store(self, id: Identifier, scan_result: ScanResult) -> bool:
        existing = self._fetch(id)
        if existing.status is FetchStatus.FAILED:
            # Overwriting now would replace the stored results with just this one.
            raise StorageError(
                f"could not read existing scan results for {id.to_coordinates()}"
            ) from existing.error

        container = existing.container.appended(scan_result)
        path = storage_path(id)
        log.info("artifactory.write", id=id.to_coordinates(), path=path)

        with tempfile.TemporaryDirectory(prefix="scanstore-") as tmpdir:
            tmp_file = Path(tmpdir) / SCAN_RESULTS_FILE
            with tmp_file.open("w", encoding="utf-8") as f:
                container_to_yaml(container, f)

            try:
                with tmp_file.open("rb") as body:
                    response = self._client.put(
                        self._blob_url(path), content=body, headers=self._headers()
                    )
            except httpx.HTTPError as exc:
                raise StorageError(f"could not upload {path}") from exc

        if not response.is_success:
            log.warning(
                "artifactory.upload_failed",
                path=path,
                status=response.status_code,
                reason=response.reason_phrase,
            )
            return False

        self._response_cache.discard(path)
        log.info("artifactory.uploaded", path=path)
        return True

    def list_packages(self) -> list[Identifier]:
        query = (
            "items.find({"
            f'"type": "file", "repo": "{self.repository}", '
            f'"path": {{"$match": "{SCAN_RESULTS_PREFIX}/*"}}, '
            f'"name": "{SCAN_RESULTS_FILE}"'
            "})"
        )
        try:
            response = self._client.post(
                f"{self.url}/api/search/aql",
                content=query.encode(),
                headers=self._headers(**{"Content-Type": "text/plain"}),
            )
        except httpx.HTTPError as exc:
            raise StorageError("could not fetch package list") from exc

        if response.status_code != httpx.codes.OK:
            raise StorageError(
                f"could not fetch package list: {response.status_code} - {response.reason_phrase}"
            )

        try:
            items = response.json()["results"]
            return sorted({Identifier.from_path(item["path"]) for item in items})
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageError("could not parse package list") from exc
