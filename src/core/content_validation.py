"""
Editorial checks run on a content item before it is published.

Issues are advisory except for missing required fields, which block:

- required: title and description must be present (error)
- us-spelling: US spellings in the title, description or body, quantum terms
  excepted (warning)
- quality: title, description or body shorter than the minimum (warning)
- style: title ending in a full stop, ALL CAPS titles, descriptions without
  closing punctuation (info)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any, Literal

from src.core.quantum_terms import is_quantum_term
from src.core.spelling import find_us_spellings

IssueType = Literal["required", "us-spelling", "quality", "style"]
Severity = Literal["error", "warning", "info"]


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    type: IssueType
    severity: Severity
    message: str
    suggestion: str | None = None
    original: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ValidationOptions:
    check_required_fields: bool = True
    check_us_spellings: bool = True
    check_quality: bool = True
    min_title_length: int = 10
    min_description_length: int = 50
    min_content_length: int = 50


def _text(content: dict[str, Any], field: str) -> str:
    value = content.get(field)
    return value.strip() if isinstance(value, str) else ""


def validate_content(
    content: dict[str, Any],
    options: ValidationOptions | None = None,
    title_field: str = "title",
    body_field: str | None = None,
) -> list[ValidationIssue]:
    """Check one item's text fields.

    The body is `main_content` unless the item only carries `content` (blog
    posts), or `body_field` names it.
    """
    opts = options or ValidationOptions()
    if body_field is None:
        blog_post = "content" in content and "main_content" not in content
        body_field = "content" if blog_post else "main_content"

    title = _text(content, title_field)
    description = _text(content, "description")
    body = _text(content, body_field)
    texts = ((title_field, title), ("description", description), (body_field, body))
    issues: list[ValidationIssue] = []

    if opts.check_required_fields:
        for field, value in ((title_field, title), ("description", description)):
            if not value:
                issues.append(
                    ValidationIssue(
                        field=field,
                        type="required",
                        severity="error",
                        message=f"{field.capitalize()} is required",
                    )
                )

    if opts.check_us_spellings:
        for field, value in texts:
            for match in find_us_spellings(value, skip=is_quantum_term):
                issues.append(
                    ValidationIssue(
                        field=field,
                        type="us-spelling",
                        severity="warning",
                        message=f'US spelling "{match.us_spelling}" should be '
                        f'"{match.uk_spelling}"',
                        suggestion=match.uk_spelling,
                        original=match.us_spelling,
                    )
                )

    if opts.check_quality:
        for field, value, minimum in (
            (title_field, title, opts.min_title_length),
            ("description", description, opts.min_description_length),
            (body_field, body, opts.min_content_length),
        ):
            if value and len(value) < minimum:
                issues.append(
                    ValidationIssue(
                        field=field,
                        type="quality",
                        severity="warning",
                        message=f"{field.capitalize()} is short ({len(value)} characters, "
                        f"at least {minimum} recommended)",
                    )
                )

        if title.endswith("."):
            issues.append(
                ValidationIssue(
                    field=title_field,
                    type="style",
                    severity="info",
                    message="Titles should not end with a full stop",
                )
            )
        if title.isupper() and len(title) > 3:
            issues.append(
                ValidationIssue(
                    field=title_field,
                    type="style",
                    severity="info",
                    message="Title is in ALL CAPS; use title case",
                )
            )
        if description and description[-1] not in ".!?":
            issues.append(
                ValidationIssue(
                    field="description",
                    type="style",
                    severity="info",
                    message="Description should end with punctuation",
                )
            )

    return issues


def group_issues_by_severity(
    issues: Iterable[ValidationIssue],
) -> dict[str, list[ValidationIssue]]:
    grouped: dict[str, list[ValidationIssue]] = {"errors": [], "warnings": [], "info": []}
    key = {"error": "errors", "warning": "warnings", "info": "info"}
    for issue in issues:
        grouped[key[issue.severity]].append(issue)
    return grouped


def group_issues_by_field(issues: Iterable[ValidationIssue]) -> dict[str, list[ValidationIssue]]:
    grouped: dict[str, list[ValidationIssue]] = {}
    for issue in issues:
        grouped.setdefault(issue.field, []).append(issue)
    return grouped


def has_blocking_errors(issues: Iterable[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


def validation_summary(issues: list[ValidationIssue]) -> dict[str, Any]:
    grouped = group_issues_by_severity(issues)
    return {
        "total": len(issues),
        "errors": len(grouped["errors"]),
        "warnings": len(grouped["warnings"]),
        "info": len(grouped["info"]),
        "isValid": not grouped["errors"],
    }
