"""Exceptions raised by the skill evaluation pipeline."""


class SkillGradeError(Exception):
    """Base class for skillgrade errors."""


class ParseError(SkillGradeError):
    """Raised when a skill document has no recognizable metadata block."""


class ConfigError(SkillGradeError):
    """Raised when the judge endpoint or credential is not configured."""


class JudgeError(SkillGradeError):
    """Raised when the judge endpoint fails or returns an undecodable response."""
