"""
Package catalog models — layered package groups per profile.

A profile (``basic``, ``global``) holds tiers: ``shared`` across all
platforms, one tier per platform, and optional extension tiers such
as ``arch_aur`` or ``macos_cask``. Tier members are free text: one or
more package names per line, ``#`` comments allowed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class PackageGroup(BaseModel):
    """One tier of package names, as written in the catalog."""

    tier: str
    members: list[str] = Field(default_factory=list)

    @field_validator("members", mode="before")
    @classmethod
    def _split_text(cls, value: Any) -> Any:
        # A YAML block scalar arrives as one string; keep it line-based.
        if isinstance(value, str):
            return value.splitlines()
        if value is None:
            return []
        return value


class PackageProfile(BaseModel):
    """A named set of tiers installed together in one bulk run."""

    name: str = ""
    description: str = ""
    upgrade: bool = False           # also upgrade already-installed packages
    tiers: dict[str, PackageGroup] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _wrap_tiers(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        tiers = data.get("tiers")
        if isinstance(tiers, dict):
            wrapped = {}
            for tier, members in tiers.items():
                if isinstance(members, (str, list)) or members is None:
                    wrapped[tier] = {"tier": tier, "members": members}
                else:
                    wrapped[tier] = members
            data = {**data, "tiers": wrapped}
        return data

    def group(self, tier: str) -> PackageGroup | None:
        """Look up a tier by name."""
        return self.tiers.get(tier)

    @property
    def tier_names(self) -> list[str]:
        return list(self.tiers.keys())


class PackageCatalog(BaseModel):
    """All known profiles, keyed by name."""

    profiles: dict[str, PackageProfile] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _name_profiles(self) -> PackageCatalog:
        for key, profile in self.profiles.items():
            if not profile.name:
                profile.name = key
        return self

    def get_profile(self, name: str) -> PackageProfile | None:
        return self.profiles.get(name)

    @property
    def profile_names(self) -> list[str]:
        return list(self.profiles.keys())
