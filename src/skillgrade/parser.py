"""Skill discovery and SKILL.md metadata parsing."""

import logging
import re
from pathlib import Path

from skillgrade.errors import ParseError
from skillgrade.models import ParsedDocument, SkillPackage

logger = logging.getLogger(__name__)

METADATA_MARKER = "---"

# Opening marker must sit at offset 0; the header ends at the next marker line.
_METADATA_BLOCK = re.compile(
    rf"\A{METADATA_MARKER}\r?\n(?P<header>.*?)\r?\n{METADATA_MARKER}[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)
_HEADER_LINE = re.compile(r"^(?P<key>[\w-]+):\s*(?P<value>.+?)\s*$")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_value(value: str) -> str | list[str]:
    if value.startswith("[") and value.endswith("]"):
        items = (_unquote(item.strip()) for item in value[1:-1].split(","))
        return [item for item in items if item]
    return _unquote(value)


def parse_header(block: str) -> dict[str, str | list[str]]:
    """Parse ``key: value`` lines. Lines that do not match are skipped."""
    header: dict[str, str | list[str]] = {}
    for line in block.splitlines():
        match = _HEADER_LINE.match(line)
        if not match or not match.group("value").strip():
            continue
        header[match.group("key")] = _parse_value(match.group("value").strip())
    return header


def parse_document(text: str) -> ParsedDocument:
    """
    Split a skill document into its metadata header and body.

    Args:
        text: Raw SKILL.md content

    Returns:
        ParsedDocument with the parsed header and the trimmed body

    Raises:
        ParseError: If the text does not open with a delimited metadata block
    """
    match = _METADATA_BLOCK.match(text)
    if not match:
        raise ParseError("no metadata block found")

    return ParsedDocument(
        header=parse_header(match.group("header")),
        body=text[match.end():].strip(),
    )


def load_document(package: SkillPackage) -> ParsedDocument:
    """Read and parse a package's SKILL.md."""
    document_path = package.document_path
    if not document_path.is_file():
        raise FileNotFoundError(f"{document_path.name} not found")

    logger.debug(f"Parsing {document_path}")
    return parse_document(document_path.read_text(encoding="utf-8"))


def discover_skills(skills_dir: Path) -> list[SkillPackage]:
    """
    Find skill packages: every immediate, non-hidden subdirectory of skills_dir.

    Returns:
        Packages sorted by name
    """
    if not skills_dir.is_dir():
        raise FileNotFoundError(f"Skills directory not found: {skills_dir}")

    return [
        SkillPackage(name=entry.name, path=entry)
        for entry in sorted(skills_dir.iterdir(), key=lambda p: p.name)
        if entry.is_dir() and not entry.name.startswith(".")
    ]
