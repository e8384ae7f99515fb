"""Build configuration models — the artifact list a run is seeded from."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ArtifactConfig(BaseModel):
    """A buildable artifact, identified by its image name."""

    model_config = ConfigDict(frozen=True)

    image_name: str
    context: str = "."


class BuildConfig(BaseModel):
    """Artifacts configured for a pipeline.

    The image names become the keys of ``BuildState.artifacts``.
    """

    model_config = ConfigDict(frozen=True)

    artifacts: list[ArtifactConfig] = []

    @property
    def image_names(self) -> list[str]:
        return [a.image_name for a in self.artifacts]
