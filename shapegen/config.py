"""shapegen configuration.

Typed, validated settings for a generation run.  Pydantic v2 models so the
configuration can be built from keyword arguments, JSON files or environment
variables and serialised back without boiler-plate.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from shapegen.generators.form_gen import FormOptions
from shapegen.generators.store_gen import StoreOptions


class ArtifactKind(str, Enum):
    """The three generated artifacts, in emission order."""

    SCHEMA = "schema"
    STORE = "store"
    FORM = "form"


_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class GeneratorConfig(BaseModel):
    """Settings shared by every backend in one run.

    ``storage_key`` overrides the persistence key of every generated store;
    leave it unset when generating more than one store so each gets its own
    ``<name>-storage`` key.
    """

    persist: bool = Field(default=True, description="Wrap generated stores in persist()")
    storage_key: Optional[str] = Field(default=None, description="Explicit persistence key")
    submit_label: str = Field(default="Submit")
    cancel_label: str = Field(default="Cancel")
    targets: list[ArtifactKind] = Field(
        default_factory=lambda: list(ArtifactKind),
        description="Which artifacts to generate",
    )

    # ------------------------------------------------------------------
    # Backend option views
    # ------------------------------------------------------------------

    def store_options(self) -> StoreOptions:
        return StoreOptions(persist=self.persist, storage_key=self.storage_key)

    def form_options(self) -> FormOptions:
        return FormOptions(submit_label=self.submit_label, cancel_label=self.cancel_label)

    def wants(self, kind: ArtifactKind) -> bool:
        return kind in self.targets

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file; parent directories are created.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            SHAPEGEN_PERSIST, SHAPEGEN_STORAGE_KEY, SHAPEGEN_SUBMIT_LABEL,
            SHAPEGEN_CANCEL_LABEL, SHAPEGEN_TARGETS (comma-separated).
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SHAPEGEN_PERSIST"):
            kwargs["persist"] = os.environ["SHAPEGEN_PERSIST"].strip().lower() not in _FALSE_VALUES
        if os.environ.get("SHAPEGEN_STORAGE_KEY"):
            kwargs["storage_key"] = os.environ["SHAPEGEN_STORAGE_KEY"]
        if os.environ.get("SHAPEGEN_SUBMIT_LABEL"):
            kwargs["submit_label"] = os.environ["SHAPEGEN_SUBMIT_LABEL"]
        if os.environ.get("SHAPEGEN_CANCEL_LABEL"):
            kwargs["cancel_label"] = os.environ["SHAPEGEN_CANCEL_LABEL"]
        if os.environ.get("SHAPEGEN_TARGETS"):
            kwargs["targets"] = [
                t.strip().lower() for t in os.environ["SHAPEGEN_TARGETS"].split(",") if t.strip()
            ]
        return cls(**kwargs)
