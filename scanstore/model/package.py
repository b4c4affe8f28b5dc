"""Source location model shared with the analysis pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from scanstore.model.identifier import Identifier


class Hash(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str = ""
    algorithm: str = ""


class RemoteArtifact(BaseModel):
    """A downloadable source artifact and its checksum."""

    model_config = ConfigDict(frozen=True)

    url: str
    hash: Hash = Field(default_factory=Hash)

    def is_empty(self) -> bool:
        return not self.url.strip()


class VcsInfo(BaseModel):
    """A version-controlled source location.

    ``revision`` is what was requested (a tag, a branch, a commit),
    ``resolved_revision`` is the commit it pointed to when downloaded.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    url: str = ""
    revision: str = ""
    resolved_revision: str | None = None
    path: str = ""

    def is_empty(self) -> bool:
        return not self.url.strip()

    def normalized_url(self) -> str:
        url = self.url.strip().rstrip("/")
        if url.endswith(".git"):
            url = url[:-4]
        return url

    def effective_revisions(self) -> set[str]:
        """Revisions that identify the same checkout as this entry."""
        return {r for r in (self.revision, self.resolved_revision) if r}


class Package(BaseModel):
    """The subset of a resolved package that storage lookups depend on.

    ``vcs`` is the location as declared by the package metadata,
    ``vcs_processed`` the normalized location the downloader used.
    """

    model_config = ConfigDict(frozen=True)

    id: Identifier
    source_artifact: RemoteArtifact | None = None
    vcs: VcsInfo = VcsInfo()
    vcs_processed: VcsInfo = VcsInfo()
