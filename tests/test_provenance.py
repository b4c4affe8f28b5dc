"""Tests for Provenance.matches against a package's current source location."""

from __future__ import annotations

from scanstore.model import Hash, Package, Provenance, RemoteArtifact, VcsInfo


def _pkg(identifier, **kwargs):
    return Package(id=identifier, **kwargs)


class TestSourceArtifact:
    def test_same_artifact_matches(self, identifier, artifact):
        provenance = Provenance(source_artifact=artifact)
        assert provenance.matches(_pkg(identifier, source_artifact=artifact))

    def test_different_url_does_not_match(self, identifier, artifact):
        provenance = Provenance(source_artifact=artifact)
        other = artifact.model_copy(update={"url": "https://repo.example.org/lib-1.1-sources.jar"})
        assert not provenance.matches(_pkg(identifier, source_artifact=other))

    def test_different_hash_does_not_match(self, identifier, artifact):
        provenance = Provenance(source_artifact=artifact)
        other = RemoteArtifact(url=artifact.url, hash=Hash(value="ffff", algorithm="SHA-1"))
        assert not provenance.matches(_pkg(identifier, source_artifact=other))

    def test_artifact_takes_precedence_over_vcs(self, identifier, artifact, vcs):
        provenance = Provenance(source_artifact=artifact, vcs_info=vcs)
        assert not provenance.matches(_pkg(identifier, vcs=vcs, vcs_processed=vcs))


class TestVcs:
    def test_same_checkout_matches(self, identifier, vcs):
        provenance = Provenance(vcs_info=vcs, original_vcs_info=vcs)
        assert provenance.matches(_pkg(identifier, vcs=vcs, vcs_processed=vcs))

    def test_original_vcs_info_matches_declared_location(self, identifier, vcs):
        declared = VcsInfo(type="git", url="git://github.com/example/lib", revision="v1.0")
        provenance = Provenance(vcs_info=vcs, original_vcs_info=declared)
        assert provenance.matches(_pkg(identifier, vcs=declared))

    def test_resolved_revision_matches_processed_revision(self, identifier, vcs):
        processed = VcsInfo(
            type="Git", url="https://github.com/example/lib", revision=vcs.resolved_revision
        )
        provenance = Provenance(vcs_info=vcs)
        assert provenance.matches(_pkg(identifier, vcs_processed=processed))

    def test_url_normalization(self, identifier, vcs):
        processed = vcs.model_copy(update={"url": "https://github.com/example/lib/"})
        assert Provenance(vcs_info=vcs).matches(_pkg(identifier, vcs_processed=processed))

    def test_other_revision_does_not_match(self, identifier, vcs):
        processed = vcs.model_copy(update={"revision": "v2.0", "resolved_revision": None})
        assert not Provenance(vcs_info=vcs).matches(_pkg(identifier, vcs_processed=processed))

    def test_other_repository_does_not_match(self, identifier, vcs):
        processed = vcs.model_copy(update={"url": "https://github.com/fork/lib.git"})
        assert not Provenance(vcs_info=vcs).matches(_pkg(identifier, vcs_processed=processed))

    def test_other_path_does_not_match(self, identifier, vcs):
        processed = vcs.model_copy(update={"path": "sub/module"})
        assert not Provenance(vcs_info=vcs).matches(_pkg(identifier, vcs_processed=processed))

    def test_package_without_vcs_does_not_match(self, identifier, vcs):
        assert not Provenance(vcs_info=vcs).matches(_pkg(identifier))


class TestNoSource:
    def test_empty_provenance_never_matches(self, package):
        provenance = Provenance()
        assert not provenance.has_source()
        assert not provenance.matches(package)


class TestVcsRevision:
    def test_requested_revision_must_match_recorded_one(self, identifier):
        recorded = VcsInfo(
            type="Git",
            url="https://github.com/example/lib.git",
            revision="y",
            resolved_revision="aaa",
        )
        processed = recorded.model_copy(update={"revision": "x"})
        assert not Provenance(vcs_info=recorded).matches(_pkg(identifier, vcs_processed=processed))

    def test_branch_moved_to_another_commit(self, identifier, vcs):
        processed = vcs.model_copy(
            update={"resolved_revision": "fedcba9876543210fedcba9876543210fedcba98"}
        )
        provenance = Provenance(vcs_info=vcs, original_vcs_info=vcs)
        assert not provenance.matches(_pkg(identifier, vcs=vcs, vcs_processed=processed))

    def test_unresolved_package_matches_recorded_revision(self, identifier, vcs):
        processed = vcs.model_copy(update={"resolved_revision": None})
        assert Provenance(vcs_info=vcs).matches(_pkg(identifier, vcs_processed=processed))

    def test_blank_processed_revision_does_not_match(self, identifier, vcs):
        processed = vcs.model_copy(update={"revision": "", "resolved_revision": None})
        assert not Provenance(vcs_info=vcs).matches(_pkg(identifier, vcs_processed=processed))
