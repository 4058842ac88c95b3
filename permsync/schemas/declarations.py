"""Pydantic schemas for code-declared permissions."""

from pydantic import BaseModel, Field, field_validator


class PermissionGroup(BaseModel):
    """
    A group of permissions sharing a menu and a default prefix.

    Typically one per router/controller.
    """

    menu_code: str = Field(description="Menu code the group belongs to")
    menu_name: str = Field(description="Menu display name")
    prefix: str = Field(default="", description="Default code prefix for the group")

    @field_validator("prefix", mode="before")
    @classmethod
    def normalize_prefix(cls, v: str | None) -> str:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v


class PermissionDeclaration(BaseModel):
    """
    One permission declaration inside a group.

    values and names are parallel lists. high_priority is True for
    declarations attached to a single endpoint and False for declarations
    attached to the whole group.
    """

    values: list[str] = Field(default_factory=list, description="Raw permission values")
    names: list[str] = Field(default_factory=list, description="Display names")
    prefix: str = Field(default="", description="Overrides the group prefix when set")
    ignore_prefix: bool = False
    high_priority: bool = False

    @field_validator("prefix", mode="before")
    @classmethod
    def normalize_prefix(cls, v: str | None) -> str:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v


class DeclarationSite(BaseModel):
    """A group together with its declarations, in declaration order."""

    group: PermissionGroup
    declarations: list[PermissionDeclaration] = Field(default_factory=list)
