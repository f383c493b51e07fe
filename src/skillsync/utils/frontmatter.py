"""Parsing of SKILL.md descriptors (YAML frontmatter + markdown body)."""

import logging
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from skillsync.core.exceptions import ParseError

logger = logging.getLogger(__name__)

DESCRIPTOR_FILENAME = "SKILL.md"


class SkillDescriptor(BaseModel):
    """Fields read from a skill's descriptor frontmatter."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    version: str | None = None
    tags: list[str] = Field(default_factory=list)
    target_tools: list[str] = Field(default_factory=list)
    body: str = ""

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> str | None:
        # YAML reads `version: 1.2` as a float
        return None if v is None else str(v)

    @field_validator("tags", "target_tools", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return [str(item) for item in v]


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """
    Split YAML frontmatter from the markdown body.

    Args:
        content: Raw file content

    Returns:
        (frontmatter dict, body). The dict is empty when there is no
        frontmatter block.

    Raises:
        ParseError: If the frontmatter block is not valid YAML or not a mapping
    """
    text = content.lstrip("\ufeff").replace("\r\n", "\n")
    if not text.startswith("---\n"):
        return {}, text

    end_delimiter = text.find("\n---", 3)
    if end_delimiter == -1:
        return {}, text

    frontmatter_text = text[4:end_delimiter]
    rest = text[end_delimiter + 4 :]
    body = rest[1:] if rest.startswith("\n") else rest

    try:
        raw = yaml.safe_load(frontmatter_text) or {}
    except yaml.YAMLError as e:
        raise ParseError(f"invalid frontmatter: {e}") from e
    if not isinstance(raw, dict):
        raise ParseError("frontmatter must be a mapping")
    return raw, body


def parse_descriptor(content: str, def_id: str) -> SkillDescriptor:
    """
    Parse a SKILL.md into a SkillDescriptor.

    Args:
        content: Raw SKILL.md content
        def_id: Directory name, used for error messages

    Raises:
        ParseError: If frontmatter is missing, malformed, or lacks a name
    """
    frontmatter, body = parse_frontmatter(content)
    if not frontmatter:
        raise ParseError(f"Skill '{def_id}' has no frontmatter")
    if "name" not in frontmatter or frontmatter["name"] is None:
        raise ParseError(f"Skill '{def_id}' is missing required field 'name'")

    data = dict(frontmatter)
    data["name"] = str(data["name"])
    if "targetTools" in data and "target_tools" not in data:
        data["target_tools"] = data.pop("targetTools")
    data["body"] = body.strip()
    try:
        return SkillDescriptor.model_validate(data)
    except ValueError as e:
        raise ParseError(f"Invalid skill '{def_id}': {e}") from e
