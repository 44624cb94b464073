"""Rule-based quality analysis of translated text.

Each (original, translated) pair is run through an ordered tuple of
check passes. Every pass returns zero or more ``QualityIssue`` objects;
the issues are then turned into a 0-100 score with penalties scaled by
the length of the original text.

The checker is stateless and never calls the translation backend.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from spreadsheet_translator.services.language_rules import (
    LanguageRuleSet,
    get_rule_set,
    strip_ordinal_prefix,
)
from spreadsheet_translator.sheet_document import Domain, TargetLanguage


class IssueKind(str, Enum):
    FORMAL_WORD = "formal_word"
    LITERAL_TRANSLATION = "literal_translation"
    GRAMMAR = "grammar"
    TONE = "tone"
    STRUCTURE = "structure"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_PENALTIES: dict[Severity, int] = {
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
}

# Length normalization bounds. The floor keeps an empty original from
# dividing by zero.
MIN_LENGTH_FACTOR = 0.1
MAX_LENGTH_FACTOR = 2.0

HEADER_TEXT_RE = re.compile(
    r"^(Question|Option\d+|Correct ans|Answer|Explanation)$", re.IGNORECASE
)
SERIAL_NUMBER_RE = re.compile(r"^\d+\.\s*")
GENDER_MISMATCH_RE = re.compile(r"(लड़का|लड़की|छात्र|छात्रा).*(करता|करती)")
MIXED_PRONOUNS = ("आप", "तुम")

FORMAL_TONE_INDICATORS = (
    "कृपया ध्यान दें",
    "सावधानीपूर्वक",
    "अत्यंत महत्वपूर्ण",
    "निम्नलिखित बिंदुओं पर ध्यान दें",
)
TONE_CHECKED_DOMAINS = frozenset({Domain.EDUCATION, Domain.TECHNICAL})

SCORE_LABELS: tuple[tuple[int, str], ...] = (
    (90, "Excellent"),
    (80, "Good"),
    (70, "Fair"),
    (60, "Needs Improvement"),
)


@dataclass
class QualityIssue:
    """A single problem found in a translation."""

    kind: IssueKind
    severity: Severity
    message: str
    suggestion: str | None = None
    original_text: str = ""
    translated_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "original_text": self.original_text,
            "translated_text": self.translated_text,
        }


@dataclass
class QualityReport:
    """Issues found in one or more translations with their score."""

    issues: list[QualityIssue] = field(default_factory=list)
    score: int = 100

    @property
    def summary(self) -> dict[str, Any]:
        return {
            "total_issues": len(self.issues),
            "critical_issues": sum(
                1 for issue in self.issues if issue.severity == Severity.HIGH
            ),
            "by_kind": dict(Counter(issue.kind.value for issue in self.issues)),
            "by_severity": dict(
                Counter(issue.severity.value for issue in self.issues)
            ),
        }

    @property
    def label(self) -> str:
        return score_label(self.score)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label,
            "summary": self.summary,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class CheckInput:
    original: str
    translated: str
    domain: Domain
    rules: LanguageRuleSet


CheckPass = Callable[[CheckInput], list[QualityIssue]]


def check_formal_words(item: CheckInput) -> list[QualityIssue]:
    severity = (
        Severity.LOW if HEADER_TEXT_RE.match(item.translated) else Severity.MEDIUM
    )
    return [
        QualityIssue(
            kind=IssueKind.FORMAL_WORD,
            severity=severity,
            message=(
                f'Formal word "{formal}" detected. '
                "Consider using more colloquial alternatives."
            ),
            suggestion=f'Replace "{formal}" with: {", ".join(alternatives)}',
            translated_text=item.translated,
        )
        for formal, alternatives in item.rules.formal_words.items()
        if formal in item.translated
    ]


def check_literal_translations(item: CheckInput) -> list[QualityIssue]:
    return [
        QualityIssue(
            kind=IssueKind.LITERAL_TRANSLATION,
            severity=Severity.HIGH,
            message=(
                f'Literal translation "{literal}" detected. '
                f"This may not sound natural in {item.rules.name}."
            ),
            suggestion=(
                f'Consider a more natural expression such as "{natural}" '
                f'instead of "{literal}"'
            ),
            translated_text=item.translated,
        )
        for literal, natural in item.rules.literal_translations.items()
        if literal in item.translated
    ]


def check_grammar(item: CheckInput) -> list[QualityIssue]:
    issues = []
    if all(pronoun in item.translated for pronoun in MIXED_PRONOUNS):
        issues.append(
            QualityIssue(
                kind=IssueKind.GRAMMAR,
                severity=Severity.MEDIUM,
                message=(
                    "Mixed pronoun usage detected. "
                    "Maintain consistent honorific usage."
                ),
                suggestion=(
                    "Choose either आप (formal) or तुम (informal) "
                    "and use it consistently throughout."
                ),
                translated_text=item.translated,
            )
        )
    if GENDER_MISMATCH_RE.search(item.translated):
        issues.append(
            QualityIssue(
                kind=IssueKind.GRAMMAR,
                severity=Severity.HIGH,
                message="Potential gender agreement issue detected.",
                suggestion="Ensure proper gender agreement between nouns and verbs.",
                translated_text=item.translated,
            )
        )
    return issues


def check_tone(item: CheckInput) -> list[QualityIssue]:
    if item.domain not in TONE_CHECKED_DOMAINS:
        return []
    if not any(indicator in item.translated for indicator in FORMAL_TONE_INDICATORS):
        return []
    return [
        QualityIssue(
            kind=IssueKind.TONE,
            severity=Severity.LOW,
            message=f"Overly formal tone detected for {item.domain.value} context.",
            suggestion="Use more accessible, clear language.",
            translated_text=item.translated,
        )
    ]


def check_structure(item: CheckInput) -> list[QualityIssue]:
    issues = []
    if SERIAL_NUMBER_RE.match(item.original) and not SERIAL_NUMBER_RE.match(
        item.translated
    ):
        issues.append(
            QualityIssue(
                kind=IssueKind.STRUCTURE,
                severity=Severity.LOW,
                message="Serial number was stripped from translation.",
                suggestion="Ensure consistent formatting with original text.",
                original_text=item.original,
                translated_text=item.translated,
            )
        )

    canonical = item.rules.canonical_header(item.original)
    if canonical is not None:
        cleaned = strip_ordinal_prefix(item.translated).strip()
        if cleaned != canonical:
            english = item.original.strip()
            issues.append(
                QualityIssue(
                    kind=IssueKind.STRUCTURE,
                    severity=Severity.HIGH,
                    message=(
                        "Inconsistent column header translation. "
                        f'Expected "{canonical}" for "{english}".'
                    ),
                    suggestion=(
                        f'Use "{canonical}" for consistent column mapping. '
                        "Remove serial numbers from column headers."
                    ),
                    original_text=item.original,
                    translated_text=item.translated,
                )
            )
    return issues


DEFAULT_PASSES: tuple[CheckPass, ...] = (
    check_formal_words,
    check_literal_translations,
    check_grammar,
    check_tone,
    check_structure,
)


def calculate_score(issues: Iterable[QualityIssue], original_length: int) -> int:
    """Score issues on a 0-100 scale.

    The summed severity penalty is divided by ``len(original) / 100``,
    bounded to [0.1, 2], so short texts are penalized harder per issue.
    """
    issues = list(issues)
    if not issues:
        return 100

    penalty = sum(SEVERITY_PENALTIES[issue.severity] for issue in issues)
    factor = max(min(original_length / 100, MAX_LENGTH_FACTOR), MIN_LENGTH_FACTOR)
    # Half-up rounding.
    score = math.floor(100 - penalty / factor + 0.5)
    return max(0, min(100, score))


def score_label(score: int) -> str:
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return "Poor"


def quality_suggestions(issues: Sequence[QualityIssue]) -> list[str]:
    """Summarize issue counts as actionable suggestions."""
    counts = Counter(issue.kind for issue in issues)
    suggestions = []
    if counts[IssueKind.FORMAL_WORD]:
        suggestions.append(
            f"Consider replacing {counts[IssueKind.FORMAL_WORD]} formal word(s) "
            "with more colloquial alternatives."
        )
    if counts[IssueKind.LITERAL_TRANSLATION]:
        suggestions.append(
            f"Avoid {counts[IssueKind.LITERAL_TRANSLATION]} literal translation(s) "
            "for more natural expressions."
        )
    if counts[IssueKind.GRAMMAR]:
        suggestions.append(
            f"Review {counts[IssueKind.GRAMMAR]} grammar issue(s) "
            "for consistency and accuracy."
        )
    return suggestions


class QualityChecker:
    """Run the check passes over translation pairs and score the result."""

    def __init__(self, passes: Sequence[CheckPass] = DEFAULT_PASSES) -> None:
        self.passes = tuple(passes)

    def check(
        self,
        original_text: str,
        translated_text: str,
        domain: Domain = Domain.TECHNICAL,
        language: TargetLanguage = TargetLanguage.HINDI,
    ) -> QualityReport:
        item = CheckInput(
            original=original_text,
            translated=translated_text,
            domain=Domain(domain),
            rules=get_rule_set(language),
        )
        issues: list[QualityIssue] = []
        for check_pass in self.passes:
            issues.extend(check_pass(item))
        return QualityReport(
            issues=issues, score=calculate_score(issues, len(original_text))
        )

    def check_many(
        self,
        pairs: Iterable[tuple[str, str]],
        domain: Domain = Domain.TECHNICAL,
        language: TargetLanguage = TargetLanguage.HINDI,
    ) -> tuple[QualityReport, list[QualityReport]]:
        """Check several pairs.

        Returns:
            The aggregate report (issues concatenated, score the rounded
            mean of pair scores) and the per-pair reports in input order.
        """
        reports = [
            self.check(original, translated, domain, language)
            for original, translated in pairs
        ]
        if not reports:
            return QualityReport(), reports

        issues = [issue for report in reports for issue in report.issues]
        mean = sum(report.score for report in reports) / len(reports)
        return QualityReport(issues=issues, score=math.floor(mean + 0.5)), reports
