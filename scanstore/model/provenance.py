"""Provenance: which exact source code a scan result was produced from."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from scanstore.model.package import Package, RemoteArtifact, VcsInfo


class Provenance(BaseModel):
    """Origin of scanned source code.

    At least one of ``source_artifact`` or ``vcs_info`` must be set for a
    scan result to be storable. ``original_vcs_info`` keeps the VCS location
    as it was declared before the downloader resolved it.
    """

    model_config = ConfigDict(frozen=True)

    download_time: datetime | None = None
    source_artifact: RemoteArtifact | None = None
    vcs_info: VcsInfo | None = None
    original_vcs_info: VcsInfo | None = None

    def has_source(self) -> bool:
        return self.source_artifact is not None or self.vcs_info is not None

    def matches(self, pkg: Package) -> bool:
        """Return True if this provenance describes the current source of *pkg*.

        A recorded source artifact must equal the package's artifact (URL and
        hash). A recorded VCS checkout matches when the declared location is
        unchanged, or when the processed location points at the same
        repository and path and its revision is the recorded revision or
        resolved commit. Two different resolved commits never match.
        """
        if self.source_artifact is not None:
            return self.source_artifact == pkg.source_artifact

        if self.vcs_info is None:
            return False

        processed = pkg.vcs_processed
        recorded_commit = self.vcs_info.resolved_revision
        # Same branch or tag name, but checked out at another commit.
        if (
            recorded_commit
            and processed.resolved_revision
            and recorded_commit != processed.resolved_revision
        ):
            return False

        if self.original_vcs_info is not None and not pkg.vcs.is_empty():
            if self.original_vcs_info == pkg.vcs:
                return True

        if processed.is_empty():
            return False

        return (
            self.vcs_info.type.lower() == processed.type.lower()
            and self.vcs_info.normalized_url() == processed.normalized_url()
            and self.vcs_info.path == processed.path
            and processed.revision in self.vcs_info.effective_revisions()
        )
