"""Rule-based validation of skill documents."""

import logging
import re

from skillgrade.errors import ParseError
from skillgrade.models import (
    CheckStatus,
    ParsedDocument,
    SkillPackage,
    ValidationCheck,
    ValidationResult,
)
from skillgrade.parser import load_document

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "description", "version", "tags")
RECOMMENDED_FIELDS = ("author",)

TRIGGER_PHRASES = ("use when", "triggers on")
MIN_BODY_LINES = 20

_NUMBERED_LIST = re.compile(r"^\s*\d+\.", re.MULTILINE)
_STEP_HEADING = re.compile(r"^#{1,6}\s*(step|phase|stage)\b", re.IGNORECASE | re.MULTILINE)


def _has_value(document: ParsedDocument, field: str) -> bool:
    value = document.header.get(field)
    if isinstance(value, list):
        return bool(value)
    return bool(value and value.strip())


def check_fields(document: ParsedDocument) -> list[ValidationCheck]:
    """Required fields fail when absent; recommended fields only warn."""
    checks = []

    for field in REQUIRED_FIELDS:
        if _has_value(document, field):
            checks.append(ValidationCheck(name=field, status=CheckStatus.PASS, message=f"Required field present: {field}"))
        else:
            checks.append(ValidationCheck(name=field, status=CheckStatus.FAIL, message=f"Missing required field: {field}"))

    for field in RECOMMENDED_FIELDS:
        if _has_value(document, field):
            checks.append(ValidationCheck(name=field, status=CheckStatus.PASS, message=f"Recommended field present: {field}"))
        else:
            checks.append(ValidationCheck(name=field, status=CheckStatus.WARN, message=f"Missing recommended field: {field}"))

    return checks


def check_content(document: ParsedDocument) -> list[ValidationCheck]:
    """Content heuristics, run only in review mode."""
    body = document.body
    checks = []

    if "```" in body or "example" in body.lower():
        checks.append(ValidationCheck(name="code-examples", status=CheckStatus.PASS, message="Code examples present"))
    else:
        checks.append(ValidationCheck(name="code-examples", status=CheckStatus.WARN, message="No code examples detected"))

    if _NUMBERED_LIST.search(body) or _STEP_HEADING.search(body):
        checks.append(ValidationCheck(name="step-structure", status=CheckStatus.PASS, message="Step-by-step structure present"))
    else:
        checks.append(
            ValidationCheck(name="step-structure", status=CheckStatus.WARN, message="No clear step-by-step structure detected")
        )

    # A missing description is already reported as a required-field failure.
    if _has_value(document, "description"):
        description = document.field("description").lower()
        if any(phrase in description for phrase in TRIGGER_PHRASES):
            checks.append(ValidationCheck(name="trigger-hint", status=CheckStatus.PASS, message="Description has a trigger hint"))
        else:
            checks.append(
                ValidationCheck(
                    name="trigger-hint",
                    status=CheckStatus.WARN,
                    message='Description missing trigger hint (e.g., "Use when...")',
                )
            )

    line_count = len(body.split("\n"))
    if line_count >= MIN_BODY_LINES:
        checks.append(ValidationCheck(name="body-length", status=CheckStatus.PASS, message=f"Body has {line_count} lines"))
    else:
        checks.append(
            ValidationCheck(name="body-length", status=CheckStatus.WARN, message=f"SKILL.md body is short ({line_count} lines)")
        )

    return checks


def validate_document(document: ParsedDocument, review: bool = False) -> ValidationResult:
    """
    Apply the rulebook to a parsed document.

    Args:
        document: Parsed skill document
        review: Also run the content heuristics

    Returns:
        ValidationResult with checks in order: required, recommended, content
    """
    checks = check_fields(document)
    if review:
        checks.extend(check_content(document))
    return ValidationResult(checks=checks)


def compute_score(checks: list[ValidationCheck]) -> int:
    """Score a check list: 100, minus 20 per failure and 5 per warning, floored at 0."""
    return ValidationResult(checks=checks).score


def validate_skill(package: SkillPackage, review: bool = False) -> ValidationResult:
    """Load, parse and validate a skill package. Never raises for document problems."""
    try:
        document = load_document(package)
    except FileNotFoundError as e:
        logger.debug(f"{package.name}: {e}")
        return ValidationResult(checks=[ValidationCheck(name="document", status=CheckStatus.FAIL, message=str(e))])
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"{package.name}: {e}")
        return ValidationResult(
            checks=[ValidationCheck(name="document", status=CheckStatus.FAIL, message=f"Failed to read: {e}")]
        )
    except ParseError as e:
        logger.debug(f"{package.name}: {e}")
        return ValidationResult(
            checks=[ValidationCheck(name="document", status=CheckStatus.FAIL, message=f"Failed to parse: {e}")]
        )

    return validate_document(document, review=review)
