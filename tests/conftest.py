"""Shared fixtures for skillgrade tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

BODY_LINES = "\n".join(f"Detail line {i} about the workflow." for i in range(1, 19))

GOOD_SKILL = f"""---
name: x
description: "Use when testing"
version: 1.0.0
tags: [a,b]
author: me
---

# Testing skill

1. Run the checks

```bash
pytest -q
```

{BODY_LINES}
"""


@pytest.fixture
def good_skill() -> str:
    """SKILL.md content that passes every lint and review check."""
    return GOOD_SKILL


@pytest.fixture
def missing_tags(good_skill: str) -> str:
    """SKILL.md content without the required tags field."""
    return good_skill.replace("tags: [a,b]\n", "")


@pytest.fixture
def skills_dir(tmp_path: Path) -> Path:
    """Create an empty skills directory."""
    path = tmp_path / "skills"
    path.mkdir()
    return path


@pytest.fixture
def make_skill(skills_dir: Path) -> Callable[..., Path]:
    """Factory writing a skill package; content=None leaves SKILL.md out."""

    def _make(name: str, content: str | None = GOOD_SKILL) -> Path:
        skill_path = skills_dir / name
        skill_path.mkdir()
        if content is not None:
            (skill_path / "SKILL.md").write_text(content, encoding="utf-8")
        return skill_path

    return _make
