"""Tests for the command dispatcher."""

import logging
import sys
from pathlib import Path

import httpx
import pytest

import skillgrade
from skillgrade import evaluate_skill, main, run, setup_logging
from skillgrade.config import Settings
from skillgrade.errors import ConfigError, JudgeError
from skillgrade.judge import JudgeClient
from skillgrade.models import (
    ContentEvaluation,
    DescriptionEvaluation,
    JudgeEvaluation,
    SkillPackage,
    StructureEvaluation,
)

def _evaluation() -> JudgeEvaluation:
    return JudgeEvaluation(
        description=DescriptionEvaluation(
            specificity=3, trigger_term_quality=3, completeness=3, distinctiveness_conflict_risk=3
        ),
        content=ContentEvaluation(conciseness=3, actionability=3, workflow_clarity=3, progressive_disclosure=3),
        structure=StructureEvaluation(frontmatter_quality=3, trigger_clarity=3, example_quality=3, completeness=3),
        assessment="Excellent.",
    )


class StubJudge:
    """Deterministic judge that records calls and can fail for chosen skills."""

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.calls: list[str] = []

    async def evaluate(self, header, body) -> JudgeEvaluation:
        self.calls.append(header["name"])
        if header["name"] in self.fail_for:
            raise JudgeError("judge request failed: 500 boom")
        return _evaluation()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, open_ai_llm_url="", llm_api_key="")


class TestRun:
    """Tests for run()."""

    @pytest.mark.asyncio
    async def test_list_skills(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        """No target lists skills and exits 0."""
        make_skill("beta")
        make_skill("alpha")

        code = await run(None, "lint", skills_dir, settings)

        out = capsys.readouterr().out
        assert code == 0
        assert out.index("  alpha") < out.index("  beta")
        assert "Available skills:" in out

    @pytest.mark.asyncio
    async def test_unknown_skill(self, skills_dir: Path, make_skill, settings, capsys, monkeypatch) -> None:
        """An unknown name lists the available skills and exits 1 without reading documents."""
        make_skill("alpha")

        def fail_load(package):
            raise AssertionError("document should not be read")

        monkeypatch.setattr("skillgrade.validator.load_document", fail_load)

        code = await run("nope", "lint", skills_dir, settings)

        err = capsys.readouterr().err
        assert code == 1
        assert 'Skill "nope" not found' in err
        assert "  alpha" in err

    @pytest.mark.asyncio
    async def test_single_skill_lint_passes(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        make_skill("x")

        code = await run("x", "lint", skills_dir, settings)

        out = capsys.readouterr().out
        assert code == 0
        assert "Evaluating: x" in out
        assert "Score: 100%" in out
        assert "Status: ✔ PASSED" in out

    @pytest.mark.asyncio
    async def test_single_skill_review_no_warnings(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        make_skill("x")

        code = await run("x", "review", skills_dir, settings)

        out = capsys.readouterr().out
        assert code == 0
        assert "  ✔ x [100%]" in out
        assert "⚠" not in out

    @pytest.mark.asyncio
    async def test_single_skill_failure(self, skills_dir: Path, make_skill, missing_tags, settings, capsys) -> None:
        """A missing required field fails the skill and the run."""
        make_skill("x", missing_tags)

        code = await run("x", "lint", skills_dir, settings)

        out = capsys.readouterr().out
        assert code == 1
        assert "✗ Missing required field: tags" in out
        assert "Score: 80%" in out

    @pytest.mark.asyncio
    async def test_all_skills_summary(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        """All mode evaluates in sorted order and continues past failures."""
        make_skill("b-bad", "no metadata")
        make_skill("a-good")
        make_skill("c-missing", content=None)

        code = await run("all", "lint", skills_dir, settings)

        out = capsys.readouterr().out
        assert code == 1
        assert out.index("a-good") < out.index("b-bad") < out.index("c-missing")
        assert "Failed to parse: no metadata block found" in out
        assert "SKILL.md not found" in out
        assert "Summary: 1 passed, 2 failed out of 3 skills" in out
        assert "Average Score: 87%" in out

    @pytest.mark.asyncio
    async def test_all_skills_empty(self, skills_dir: Path, settings, capsys) -> None:
        """Zero skills is a passing run with a zero average."""
        code = await run("all", "review", skills_dir, settings)

        out = capsys.readouterr().out
        assert code == 0
        assert "Summary: 0 passed, 0 failed out of 0 skills" in out
        assert "Average Score: 0%" in out

    @pytest.mark.asyncio
    async def test_llm_mode_without_credentials(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        """Missing judge config is reported, the validator section still prints, exit 1."""
        make_skill("x")

        code = await run("x", "llm", skills_dir, settings)

        captured = capsys.readouterr()
        assert code == 1
        assert "must be set" in captured.err
        assert "  ✔ x [100%]" in captured.out
        assert "Judge Evaluation" not in captured.out

    @pytest.mark.asyncio
    async def test_llm_mode_with_judge(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        make_skill("x")
        judge = StubJudge()

        code = await run("x", "llm", skills_dir, settings, judge_factory=lambda s: judge)

        out = capsys.readouterr().out
        assert code == 0
        assert judge.calls == ["x"]
        assert "Judge Evaluation" in out
        assert "Average Score: 100%" in out

    @pytest.mark.asyncio
    async def test_judge_failure_does_not_change_exit(self, skills_dir: Path, make_skill, settings, capsys) -> None:
        """A judge error is printed but the exit code follows validation."""
        make_skill("x")
        judge = StubJudge(fail_for={"x"})

        code = await run("x", "llm", skills_dir, settings, judge_factory=lambda s: judge)

        out = capsys.readouterr().out
        assert code == 0
        assert "✗ Judge evaluation failed: judge request failed: 500 boom" in out

    @pytest.mark.asyncio
    async def test_all_llm_continues_after_judge_failure(
        self, skills_dir: Path, make_skill, good_skill, settings, capsys
    ) -> None:
        """Each skill gets one judge call in order, even after a failure."""
        for name in ("c", "a", "b"):
            make_skill(name, good_skill.replace("name: x", f"name: {name}"))
        judge = StubJudge(fail_for={"b"})

        code = await run("all", "llm", skills_dir, settings, judge_factory=lambda s: judge)

        out = capsys.readouterr().out
        assert code == 0
        assert judge.calls == ["a", "b", "c"]
        assert out.count("Judge evaluation failed") == 1
        assert out.count("Judge Evaluation") == 2
        assert "Summary: 3 passed, 0 failed out of 3 skills" in out

    @pytest.mark.asyncio
    async def test_llm_mode_uses_lint_rulebook(
        self, skills_dir: Path, make_skill, good_skill, settings, capsys
    ) -> None:
        """llm mode scores like lint: content heuristics are review-only."""
        make_skill("x", good_skill.replace("```bash\npytest -q\n```\n", ""))

        assert await run("x", "review", skills_dir, settings) == 0
        assert "Score: 95%" in capsys.readouterr().out

        code = await run("x", "llm", skills_dir, settings, judge_factory=lambda s: StubJudge())

        out = capsys.readouterr().out
        assert code == 0
        assert "Score: 100%" in out
        assert "⚠" not in out

    @pytest.mark.asyncio
    async def test_all_llm_survives_non_text_completion(
        self, skills_dir: Path, make_skill, good_skill, settings, capsys
    ) -> None:
        """A content-part list from the endpoint fails that skill only."""
        for name in ("a", "b"):
            make_skill(name, good_skill.replace("name: x", f"name: {name}"))
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            content = [{"type": "text", "text": "{}"}]
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

        def factory(s: Settings) -> JudgeClient:
            return JudgeClient(
                base_url="https://llm.example.com/v1", api_key="sk-test", transport=httpx.MockTransport(handler)
            )

        code = await run("all", "llm", skills_dir, settings, judge_factory=factory)

        out = capsys.readouterr().out
        assert code == 0
        assert len(requests) == 2
        assert out.count("Judge evaluation failed: unexpected judge response format") == 2
        assert "Summary: 2 passed, 0 failed out of 2 skills" in out

    @pytest.mark.asyncio
    async def test_factory_config_error_is_not_raised(self, skills_dir: Path, make_skill, settings) -> None:
        make_skill("x")

        def factory(s):
            raise ConfigError("LLM_API_KEY must be set")

        assert await run("all", "llm", skills_dir, settings, judge_factory=factory) == 1


class TestEvaluateSkill:
    """Tests for evaluate_skill()."""

    @pytest.mark.asyncio
    async def test_lint_never_calls_judge(self, make_skill) -> None:
        path = make_skill("x")
        judge = StubJudge()

        report = await evaluate_skill(SkillPackage(name="x", path=path), mode="lint", judge=judge)

        assert judge.calls == []
        assert report.evaluation is None

    @pytest.mark.asyncio
    async def test_unparseable_document_skips_judge(self, make_skill) -> None:
        path = make_skill("x", "no metadata")
        judge = StubJudge()

        report = await evaluate_skill(SkillPackage(name="x", path=path), mode="llm", judge=judge)

        assert judge.calls == []
        assert report.validation.passed is False
        assert report.judge_error.startswith("skipped")


class TestMain:
    """Tests for the console entry point."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        for name in ("OPEN_AI_LLM_URL", "LLM_API_KEY", "SKILLS_DIR", "DEBUG_LLM"):
            monkeypatch.delenv(name, raising=False)

    def _main(self, monkeypatch, *args: str) -> int:
        monkeypatch.setattr(sys, "argv", ["skillgrade", *args])
        with pytest.raises(SystemExit) as excinfo:
            main()
        return excinfo.value.code

    def test_lone_mode_lists_skills(self, skills_dir: Path, make_skill, monkeypatch, capsys) -> None:
        make_skill("alpha")
        assert self._main(monkeypatch, "review", "--skills-dir", str(skills_dir)) == 0
        assert "Available skills:" in capsys.readouterr().out

    def test_single_skill(self, skills_dir: Path, make_skill, missing_tags, monkeypatch, capsys) -> None:
        make_skill("x", missing_tags)
        assert self._main(monkeypatch, "x", "review", "--skills-dir", str(skills_dir)) == 1
        assert "Missing required field: tags" in capsys.readouterr().out

    def test_skills_dir_from_environment(self, skills_dir: Path, make_skill, monkeypatch) -> None:
        make_skill("x")
        monkeypatch.setenv("SKILLS_DIR", str(skills_dir))
        assert self._main(monkeypatch, "all") == 0

    def test_missing_skills_dir(self, tmp_path: Path, monkeypatch, capsys) -> None:
        assert self._main(monkeypatch, "--skills-dir", str(tmp_path / "nope")) == 1
        assert "Skills directory not found" in capsys.readouterr().err

    def test_llm_without_credentials(self, skills_dir: Path, make_skill, monkeypatch, capsys) -> None:
        make_skill("x")
        assert self._main(monkeypatch, "x", "llm", "--skills-dir", str(skills_dir)) == 1
        captured = capsys.readouterr()
        assert "LLM_API_KEY" in captured.err
        assert "Status: ✔ PASSED" in captured.out

    def test_invalid_mode(self, monkeypatch) -> None:
        """argparse rejects unknown modes with exit status 2."""
        assert self._main(monkeypatch, "x", "deploy") == 2


def test_package_exports_entry_point() -> None:
    assert callable(skillgrade.main)


def test_setup_logging_installs_one_handler() -> None:
    """Repeated setup does not duplicate log output."""
    setup_logging()
    setup_logging(debug=True)

    logger = logging.getLogger("skillgrade")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
