"""Pydantic models for skill evaluation."""

import math
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field

SKILL_FILE = "SKILL.md"

MAX_SCORE = 100
FAIL_PENALTY = 20
WARN_PENALTY = 5


class SkillPackage(BaseModel):
    """A skill directory discovered under the skills root."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Skill name (the directory name)")
    path: Path = Field(description="Path to the skill directory")

    @property
    def document_path(self) -> Path:
        return self.path / SKILL_FILE


class ParsedDocument(BaseModel):
    """Metadata header and body extracted from a skill document."""

    header: dict[str, str | list[str]] = Field(default_factory=dict)
    body: str = ""

    def field(self, name: str) -> str:
        """Return a header field as display text, or 'N/A' when absent."""
        value = self.header.get(name)
        if isinstance(value, list):
            return ", ".join(value) if value else "N/A"
        return value or "N/A"


class CheckStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class ValidationCheck(BaseModel):
    """A single rulebook check."""

    name: str
    status: CheckStatus
    message: str


class ValidationResult(BaseModel):
    """Outcome of validating one skill document.

    ``passed`` and ``score`` are derived from ``checks`` so that identical
    check lists always produce identical results.
    """

    checks: list[ValidationCheck] = Field(default_factory=list)

    @computed_field
    @property
    def passed(self) -> bool:
        return not any(check.status is CheckStatus.FAIL for check in self.checks)

    @computed_field
    @property
    def score(self) -> int:
        fails = sum(1 for check in self.checks if check.status is CheckStatus.FAIL)
        warns = sum(1 for check in self.checks if check.status is CheckStatus.WARN)
        return max(0, MAX_SCORE - fails * FAIL_PENALTY - warns * WARN_PENALTY)

    @property
    def errors(self) -> list[ValidationCheck]:
        return [check for check in self.checks if check.status is CheckStatus.FAIL]

    @property
    def warnings(self) -> list[ValidationCheck]:
        return [check for check in self.checks if check.status is CheckStatus.WARN]


CriterionScore = Annotated[int, Field(ge=1, le=3, description="1 = needs improvement, 3 = excellent")]


class JudgeCriterion(BaseModel):
    """A named sub-score reported by the judge."""

    name: str
    value: CriterionScore


class CategoryEvaluation(BaseModel):
    """Shared behavior of the three judge categories.

    Subclasses declare four criterion fields. Any ``score`` sent by the
    model is ignored; the percentage is always derived from the criteria.
    """

    feedback: str = ""

    @property
    def criteria(self) -> list[JudgeCriterion]:
        return [
            JudgeCriterion(name=name, value=getattr(self, name))
            for name in type(self).model_fields
            if name != "feedback"
        ]

    @computed_field
    @property
    def score(self) -> int:
        total = sum(criterion.value for criterion in self.criteria)
        return round(total / 12 * 100)


class DescriptionEvaluation(CategoryEvaluation):
    specificity: CriterionScore
    trigger_term_quality: CriterionScore
    completeness: CriterionScore
    distinctiveness_conflict_risk: CriterionScore


class ContentEvaluation(CategoryEvaluation):
    conciseness: CriterionScore
    actionability: CriterionScore
    workflow_clarity: CriterionScore
    progressive_disclosure: CriterionScore


class StructureEvaluation(CategoryEvaluation):
    frontmatter_quality: CriterionScore
    trigger_clarity: CriterionScore
    example_quality: CriterionScore
    completeness: CriterionScore


class JudgeEvaluation(BaseModel):
    """LLM judge's opinion of a skill."""

    description: DescriptionEvaluation
    content: ContentEvaluation
    structure: StructureEvaluation
    assessment: str = Field(default="", description="Overall assessment from the judge")
    suggestions: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def overall_score(self) -> float:
        return (self.description.score + self.content.score + self.structure.score) / 3


class SkillReport(BaseModel):
    """Everything evaluated for one skill during a run."""

    package: SkillPackage
    validation: ValidationResult
    evaluation: JudgeEvaluation | None = None
    judge_error: str | None = None


class AggregateReport(BaseModel):
    """Per-skill reports for a run plus summary counters."""

    reports: list[SkillReport] = Field(default_factory=list)

    @property
    def passed_count(self) -> int:
        return sum(1 for report in self.reports if report.validation.passed)

    @property
    def failed_count(self) -> int:
        return len(self.reports) - self.passed_count

    @property
    def total_score(self) -> int:
        return sum(report.validation.score for report in self.reports)

    @property
    def average_score(self) -> int:
        if not self.reports:
            return 0
        # Halves round up.
        return math.floor(self.total_score / len(self.reports) + 0.5)

    @property
    def passed(self) -> bool:
        return self.failed_count == 0
