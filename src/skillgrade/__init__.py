"""Lint and LLM-judge evaluation tool for agent skill packages."""

import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from skillgrade.config import Settings
from skillgrade.errors import ConfigError, JudgeError, ParseError
from skillgrade.judge import Judge, create_judge
from skillgrade.models import SkillPackage, SkillReport
from skillgrade.parser import discover_skills, load_document
from skillgrade.report import RULE, ReportAggregator, format_skill_list
from skillgrade.validator import validate_skill

logger = logging.getLogger(__name__)

MODES = ("lint", "review", "llm")
ALL_SKILLS = "all"


def setup_logging(debug: bool = False) -> None:
    root = logging.getLogger("skillgrade")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
        )
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.WARNING)


async def evaluate_skill(package: SkillPackage, mode: str = "lint", judge: Judge | None = None) -> SkillReport:
    """
    Validate one skill package and, in llm mode, ask the judge for its opinion.

    Args:
        package: The skill package to evaluate
        mode: One of "lint", "review" or "llm"
        judge: Judge to consult in llm mode; None skips the judge

    Returns:
        SkillReport with the validation result and any judge outcome
    """
    validation = validate_skill(package, review=mode == "review")
    if mode != "llm" or judge is None:
        return SkillReport(package=package, validation=validation)

    try:
        document = load_document(package)
    except (OSError, UnicodeDecodeError, ParseError) as e:
        return SkillReport(package=package, validation=validation, judge_error=f"skipped, document unreadable: {e}")

    logger.info(f"Evaluating {package.name} with LLM judge")
    try:
        evaluation = await judge.evaluate(document.header, document.body)
    except JudgeError as e:
        return SkillReport(package=package, validation=validation, judge_error=str(e))

    return SkillReport(package=package, validation=validation, evaluation=evaluation)


async def run(
    target: str | None,
    mode: str,
    skills_dir: Path,
    settings: Settings,
    judge_factory: Callable[[Settings], Judge] = create_judge,
) -> int:
    """
    Dispatch one CLI invocation.

    Args:
        target: Skill name, "all", or None to list skills
        mode: One of "lint", "review" or "llm"
        skills_dir: Directory holding one subdirectory per skill
        settings: Loaded settings, passed to judge_factory in llm mode
        judge_factory: Builds the judge; raises ConfigError when unconfigured

    Returns:
        Process exit code
    """
    packages = discover_skills(skills_dir)

    if target is None:
        print(format_skill_list(packages))
        return 0

    if target == ALL_SKILLS:
        selected = packages
    else:
        by_name = {package.name: package for package in packages}
        if target not in by_name:
            print(f'Error: Skill "{target}" not found.', file=sys.stderr)
            print("\nAvailable skills:", file=sys.stderr)
            for package in packages:
                print(f"  {package.name}", file=sys.stderr)
            return 1
        selected = [by_name[target]]

    judge = None
    config_error = None
    if mode == "llm":
        try:
            judge = judge_factory(settings)
        except ConfigError as e:
            config_error = e
            print(f"Error: {e}. Skipping LLM judge.", file=sys.stderr)

    aggregator = ReportAggregator(verbose=mode != "lint")

    if target == ALL_SKILLS:
        label = {"lint": "", "review": " (detailed review)", "llm": " (LLM judge)"}[mode]
        print(f"Evaluating all skills{label}...\n")
    else:
        print(f"\n{RULE}\nEvaluating: {target}\n{RULE}")

    report = None
    for package in selected:
        report = await evaluate_skill(package, mode=mode, judge=judge)
        print(aggregator.record(report), flush=True)

    if target == ALL_SKILLS:
        print(aggregator.render_summary())
    elif report is not None:
        print(aggregator.render_footer(report))

    if config_error is not None:
        return 1
    return 0 if aggregator.passed else 1


def main() -> None:
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Evaluate agent skill packages")
    parser.add_argument(
        "target",
        nargs="?",
        help="Skill name, or 'all' to evaluate every skill (omit to list skills)",
    )
    parser.add_argument(
        "mode",
        nargs="?",
        choices=MODES,
        default="lint",
        help="lint (default), review (adds content heuristics) or llm (adds LLM judge)",
    )
    parser.add_argument(
        "--skills-dir",
        type=Path,
        default=None,
        help="Directory containing skill packages (default: SKILLS_DIR or ./skills)",
    )

    args = parser.parse_args()

    try:
        settings = Settings()
    except ValidationError as e:
        print(f"Error: invalid configuration ({e.error_count()} invalid setting(s))", file=sys.stderr)
        sys.exit(1)

    setup_logging(debug=settings.debug_llm)

    # A lone mode keyword ("skillgrade review") lists skills.
    target = None if args.target in MODES else args.target
    skills_dir = args.skills_dir or Path(settings.skills_dir)

    try:
        sys.exit(asyncio.run(run(target, args.mode, skills_dir, settings)))
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nEvaluation interrupted by user.", file=sys.stderr)
        sys.exit(130)  # Standard exit code for Ctrl+C
