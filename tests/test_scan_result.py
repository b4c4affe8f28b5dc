"""Tests for the scan result model and its JSON / YAML encodings."""

from __future__ import annotations

import json

from scanstore.model import (
    CopyrightFinding,
    LicenseFinding,
    ScanResultContainer,
    ScanSummary,
    TextLocation,
    VcsInfo,
)
from scanstore.serialization import (
    container_from_yaml,
    container_to_yaml,
    scan_result_from_payload,
    scan_result_to_payload,
)


def _loc(path: str, start: int = 1, end: int = 1) -> TextLocation:
    return TextLocation(path=path, start_line=start, end_line=end)


class TestFindings:
    def test_findings_are_sorted_and_unique(self):
        summary = ScanSummary(
            file_count=2,
            license_findings=[
                LicenseFinding(license="MIT", locations=[_loc("b.c")]),
                LicenseFinding(license="Apache-2.0", locations=[_loc("a.c")]),
                LicenseFinding(license="MIT", locations=[_loc("b.c")]),
            ],
        )
        assert [f.license for f in summary.license_findings] == ["Apache-2.0", "MIT"]
        assert summary.licenses == {"Apache-2.0", "MIT"}

    def test_locations_are_sorted(self):
        finding = LicenseFinding(license="MIT", locations=[_loc("z.c"), _loc("a.c", 5, 9), _loc("a.c")])
        assert [(loc.path, loc.start_line) for loc in finding.locations] == [
            ("a.c", 1),
            ("a.c", 5),
            ("z.c", 1),
        ]


class TestFilterPath:
    def test_keeps_findings_below_path_and_license_files(self, make_result, vcs):
        result = make_result(vcs_info=vcs, original_vcs_info=vcs).model_copy(
            update={
                "summary": ScanSummary(
                    file_count=4,
                    license_findings=[
                        LicenseFinding(
                            license="MIT",
                            locations=[_loc("sub/a.c"), _loc("other/b.c")],
                            copyrights=[
                                CopyrightFinding(statement="(C) A", locations=[_loc("sub/a.c")]),
                                CopyrightFinding(statement="(C) B", locations=[_loc("other/b.c")]),
                            ],
                        ),
                        LicenseFinding(license="GPL-2.0-only", locations=[_loc("other/c.c")]),
                        LicenseFinding(license="Apache-2.0", locations=[_loc("LICENSE")]),
                    ],
                )
            }
        )

        filtered = result.filter_path("sub")

        assert [f.license for f in filtered.summary.license_findings] == ["Apache-2.0", "MIT"]
        mit = filtered.summary.license_findings[1]
        assert [loc.path for loc in mit.locations] == ["sub/a.c"]
        assert [c.statement for c in mit.copyrights] == ["(C) A"]
        assert filtered.summary.file_count == 2
        assert filtered.provenance.vcs_info.path == "sub"
        assert filtered.provenance.original_vcs_info.path == "sub"
        assert filtered.raw_result is None

    def test_does_not_modify_original(self, make_result):
        result = make_result()
        result.filter_path("sub")
        assert result.summary.file_count == 3
        assert result.raw_result is not None


class TestJson:
    def test_roundtrip_through_text(self, make_result):
        result = make_result()
        assert scan_result_from_payload(json.dumps(scan_result_to_payload(result))) == result

    def test_decodes_driver_dicts(self, make_result):
        result = make_result()
        assert scan_result_from_payload(scan_result_to_payload(result)) == result

    def test_missing_raw_result_is_omitted(self, make_result):
        data = scan_result_to_payload(make_result(raw_result=None))
        assert "raw_result" not in data
        assert scan_result_from_payload(data).raw_result is None

    def test_snake_case_keys(self, make_result):
        data = scan_result_to_payload(make_result())
        assert set(data) == {"provenance", "scanner", "summary", "raw_result"}
        assert "file_count" in data["summary"]
        assert "license_findings" in data["summary"]


class TestYaml:
    def test_container_roundtrip(self, identifier, make_result, vcs):
        container = ScanResultContainer(
            id=identifier,
            results=[make_result(), make_result(source_artifact=None, vcs_info=vcs)],
        )
        text = container_to_yaml(container)
        assert text.startswith("id: Maven:org.example:lib:1.0\n")
        assert container_from_yaml(text) == container

    def test_appended_keeps_order(self, identifier, make_result):
        first, second = make_result(licenses=("MIT",)), make_result(licenses=("BSD-3-Clause",))
        container = ScanResultContainer(id=identifier).appended(first).appended(second)
        assert container.results == (first, second)

    def test_vcs_info_defaults(self):
        assert VcsInfo().is_empty()
