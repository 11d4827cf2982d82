"""Rule-based input validation run before any model call."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from resilient_llm.exceptions import ValidationError
from resilient_llm.models import Verdict

logger = logging.getLogger(__name__)

INJECTION_REASON = "Potential prompt injection detected"
SENSITIVE_REASON = "Input contains sensitive information"
LENGTH_REASON = "Input too long"


@dataclass
class ValidationRule:
    """A regex that rejects any input it matches.

    Args:
        pattern: Regular expression, matched case-insensitively anywhere in the input
        reason: Human-readable reason reported on a match
    """

    pattern: str
    reason: str
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._compiled = re.compile(self.pattern, re.IGNORECASE)

    def matches(self, text: str) -> bool:
        return self._compiled.search(text) is not None


# Injection phrases precede sensitive keywords; first match wins.
DEFAULT_RULES: List[ValidationRule] = [
    ValidationRule(r"ignore previous instructions", INJECTION_REASON),
    ValidationRule(r"system prompt", INJECTION_REASON),
    ValidationRule(r"jailbreak", INJECTION_REASON),
    ValidationRule(r"password", SENSITIVE_REASON),
    ValidationRule(r"secret", SENSITIVE_REASON),
    ValidationRule(r"token", SENSITIVE_REASON),
    ValidationRule(r"api[ _-]?key", SENSITIVE_REASON),
    ValidationRule(r"credit[ _-]?card", SENSITIVE_REASON),
    ValidationRule(r"ssn", SENSITIVE_REASON),
    ValidationRule(r"social[ _-]?security", SENSITIVE_REASON),
]


class InputValidator:
    """Checks inputs against an ordered rule list and a length bound.

    Rules are evaluated in order and the first match decides the verdict. The
    length bound is checked after the pattern rules.
    """

    def __init__(
        self,
        rules: Optional[Iterable[ValidationRule]] = None,
        max_length: int = 10_000,
    ) -> None:
        """Initialize the validator.

        Args:
            rules: Pattern rules to apply (defaults to DEFAULT_RULES)
            max_length: Longest accepted input in characters
        """
        if max_length < 1:
            raise ValueError(f"max_length must be >= 1, got {max_length}")
        self.rules = list(DEFAULT_RULES if rules is None else rules)
        self.max_length = max_length

    def validate(self, text: str) -> Verdict:
        """Validate one input.

        Args:
            text: Input to check

        Returns:
            Verdict with the first matching rule's reason, or a valid verdict
        """
        for rule in self.rules:
            if rule.matches(text):
                logger.info(f"Input rejected by rule {rule.pattern!r}: {rule.reason}")
                return Verdict(valid=False, reason=rule.reason)

        if len(text) > self.max_length:
            logger.info(f"Input rejected: {len(text)} chars > {self.max_length}")
            return Verdict(valid=False, reason=LENGTH_REASON)

        return Verdict(valid=True)

    def check(self, text: str) -> None:
        """Validate one input, raising on rejection.

        Args:
            text: Input to check

        Raises:
            ValidationError: If any rule rejects the input
        """
        verdict = self.validate(text)
        if not verdict.valid:
            raise ValidationError(verdict.reason)
