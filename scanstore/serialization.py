"""JSON and YAML encodings of stored scan results."""

from __future__ import annotations

from typing import IO, Any

import yaml

from scanstore.model import ScanResult, ScanResultContainer


def scan_result_to_payload(result: ScanResult) -> dict[str, Any]:
    """JSON-compatible mapping of *result*, as stored in a JSON column."""
    return result.model_dump(mode="json")


def scan_result_from_payload(payload: str | bytes | dict[str, Any]) -> ScanResult:
    """Decode a stored payload; drivers may already hand back a decoded dict."""
    if isinstance(payload, dict):
        return ScanResult.model_validate(payload)
    return ScanResult.model_validate_json(payload)


def container_to_yaml(container: ScanResultContainer, stream: IO[str] | None = None) -> str | None:
    """Encode *container* as YAML, into *stream* if given."""
    return yaml.safe_dump(
        container.model_dump(mode="json"),
        stream,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def container_from_yaml(text: str | bytes) -> ScanResultContainer:
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("scan results document is not a mapping")
    return ScanResultContainer.model_validate(data)
