"""Console rendering and run-level aggregation of skill reports."""

from skillgrade.models import (
    AggregateReport,
    CategoryEvaluation,
    CheckStatus,
    JudgeEvaluation,
    SkillPackage,
    SkillReport,
    ValidationResult,
)

RULE = "=" * 60

PASS_ICON = "✔"
FAIL_ICON = "✗"
WARN_ICON = "⚠"

CRITERION_LABELS = {3: "Excellent", 2: "Good", 1: "Needs Improvement"}


def format_status(passed: bool) -> str:
    return f"{PASS_ICON} PASSED" if passed else f"{FAIL_ICON} FAILED"


def format_validation(name: str, result: ValidationResult, verbose: bool = False) -> str:
    """One line per skill, followed by its checks when verbose or failed."""
    icon = PASS_ICON if result.passed else FAIL_ICON
    score = f" [{result.score}%]" if verbose else ""
    lines = [f"  {icon} {name}{score}"]

    if verbose or not result.passed:
        for check in result.errors:
            lines.append(f"    {FAIL_ICON} {check.message}")
        for check in result.warnings:
            lines.append(f"    {WARN_ICON} {check.message}")
    if verbose:
        for check in result.checks:
            if check.status is CheckStatus.PASS:
                lines.append(f"    {PASS_ICON} {check.message}")

    return "\n".join(lines)


def _format_category(title: str, category: CategoryEvaluation) -> list[str]:
    lines = [f"  {title}: {category.score}%"]
    for criterion in category.criteria:
        label = CRITERION_LABELS.get(criterion.value, "Unknown")
        lines.append(f"    {criterion.name}: {criterion.value}/3 - {label}")
    if category.feedback:
        lines.append(f"    Feedback: {category.feedback}")
    lines.append("")
    return lines


def format_evaluation(evaluation: JudgeEvaluation) -> str:
    """Render the judge's scores, feedback and suggestions."""
    lines = ["", "Judge Evaluation", ""]
    lines.extend(_format_category("Description", evaluation.description))
    lines.extend(_format_category("Content", evaluation.content))
    lines.extend(_format_category("Structure", evaluation.structure))
    lines.append(f"Average Score: {round(evaluation.overall_score)}%")

    if evaluation.assessment:
        lines.extend(["", "Overall Assessment:", f"  {evaluation.assessment}"])

    if evaluation.suggestions:
        lines.extend(["", "Suggestions:"])
        lines.extend(f"  • {suggestion}" for suggestion in evaluation.suggestions)

    return "\n".join(lines)


def format_judge_error(message: str) -> str:
    return f"\n  {FAIL_ICON} Judge evaluation failed: {message}"


def format_skill_list(packages: list[SkillPackage]) -> str:
    lines = ["Available skills:", ""]
    lines.extend(f"  {package.name}" for package in packages)
    lines.extend(
        [
            "",
            "Usage:",
            "  skillgrade <skill-name>          # Lint specific skill",
            "  skillgrade <skill-name> review   # Detailed review",
            "  skillgrade <skill-name> llm      # Lint plus LLM judge evaluation",
            "  skillgrade all [review|llm]      # Evaluate all skills",
        ]
    )
    return "\n".join(lines)


class ReportAggregator:
    """Renders each skill's section and accumulates run-level counters."""

    def __init__(self, verbose: bool = False):
        """
        Args:
            verbose: Show scores and every check (review and llm modes)
        """
        self.verbose = verbose
        self.aggregate = AggregateReport()

    def record(self, report: SkillReport) -> str:
        """Fold a skill report into the counters and return its rendered section."""
        self.aggregate.reports.append(report)

        sections = [format_validation(report.package.name, report.validation, self.verbose)]
        if report.evaluation is not None:
            sections.append(format_evaluation(report.evaluation))
        elif report.judge_error is not None:
            sections.append(format_judge_error(report.judge_error))
        return "\n".join(sections)

    @property
    def passed(self) -> bool:
        return self.aggregate.passed

    def render_footer(self, report: SkillReport) -> str:
        """Score and status lines closing a single-skill run."""
        return "\n".join(
            [
                "",
                f"Score: {report.validation.score}%",
                f"Status: {format_status(report.validation.passed)}",
                RULE,
            ]
        )

    def render_summary(self) -> str:
        """Closing summary for an all-skills run."""
        aggregate = self.aggregate
        return "\n".join(
            [
                "",
                RULE,
                f"Summary: {aggregate.passed_count} passed, {aggregate.failed_count} failed "
                f"out of {len(aggregate.reports)} skills",
                f"Average Score: {aggregate.average_score}%",
                f"Status: {format_status(aggregate.passed)}",
                RULE,
            ]
        )
