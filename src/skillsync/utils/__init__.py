"""Utilities package."""

from skillsync.utils.config import Config
from skillsync.utils.frontmatter import (
    DESCRIPTOR_FILENAME,
    SkillDescriptor,
    parse_descriptor,
    parse_frontmatter,
)
from skillsync.utils.logging import setup_logging

__all__ = [
    "Config",
    "DESCRIPTOR_FILENAME",
    "SkillDescriptor",
    "parse_descriptor",
    "parse_frontmatter",
    "setup_logging",
]
