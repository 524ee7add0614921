"""Generation-time quality check for a summary / detailed summary pair."""

from __future__ import annotations

from dataclasses import dataclass, field

SPECULATIVE_PATTERNS = (
    "と考えられます",
    "と考えられる",
    "と推測されます",
    "と推測される",
    "かもしれません",
    "かもしれない",
    "と思われます",
    "と思われる",
    "ようです",
    "でしょう",
    "だろう",
    "可能性が高い",
    "可能性があります",
    "予想されます",
    "予想される",
)

VALID_SCORE = 60


@dataclass(frozen=True)
class QualityIssue:
    type: str
    severity: str
    message: str


@dataclass(frozen=True)
class SpeculativeExpressions:
    count: int
    ratio: float
    expressions: tuple[str, ...]


@dataclass(frozen=True)
class SummaryQualityReport:
    score: int
    issues: list[QualityIssue] = field(default_factory=list)
    speculative: SpeculativeExpressions = SpeculativeExpressions(0, 0.0, ())

    @property
    def is_valid(self) -> bool:
        return self.score >= VALID_SCORE

    def requires_regeneration(self, min_score: int) -> bool:
        return self.score < min_score or any(
            issue.severity == "critical" for issue in self.issues
        )


def detect_speculative_expressions(text: str) -> SpeculativeExpressions:
    if not text:
        return SpeculativeExpressions(0, 0.0, ())

    total = 0
    found: list[str] = []
    for pattern in SPECULATIVE_PATTERNS:
        hits = text.count(pattern)
        if hits:
            total += hits
            found.append(pattern)

    sentences = text.count("。") or 1
    return SpeculativeExpressions(total, round(total / sentences, 2), tuple(found))


def check_summary_quality(summary: str, detailed_summary: str) -> SummaryQualityReport:
    issues: list[QualityIssue] = []
    score = 100

    summary_length = len(summary)
    if summary_length < 50:
        issues.append(
            QualityIssue("length", "major", f"一覧要約が短すぎる: {summary_length}文字（最小50文字）")
        )
        score -= 20
    elif summary_length < 100:
        issues.append(
            QualityIssue("length", "minor", f"一覧要約が短め: {summary_length}文字（理想は100-180文字）")
        )
        score -= 5
    elif summary_length > 200:
        issues.append(
            QualityIssue("length", "minor", f"一覧要約が長すぎる: {summary_length}文字（最大200文字）")
        )
        score -= 10

    detailed_length = len(detailed_summary)
    if detailed_length < 200:
        issues.append(
            QualityIssue("length", "major", f"詳細要約が短すぎる: {detailed_length}文字（最小200文字）")
        )
        score -= 20
    elif detailed_length < 400:
        issues.append(
            QualityIssue("length", "minor", f"詳細要約が短め: {detailed_length}文字（理想は400-600文字）")
        )
        score -= 5
    elif detailed_length > 800:
        issues.append(
            QualityIssue("length", "minor", f"詳細要約が長すぎる: {detailed_length}文字（最大800文字）")
        )
        score -= 10

    if not summary.endswith("。"):
        issues.append(QualityIssue("punctuation", "minor", "一覧要約が句点で終わっていない"))
        score -= 5

    bullets = detailed_summary.count("・")
    if bullets == 0:
        issues.append(QualityIssue("format", "major", "詳細要約に箇条書き（・）が含まれていない"))
        score -= 15
    elif bullets < 3:
        issues.append(
            QualityIssue("format", "minor", f"詳細要約の項目数が少ない: {bullets}項目（理想は3-5項目）")
        )
        score -= 5

    speculative = detect_speculative_expressions(detailed_summary)
    if speculative.count >= 3:
        issues.append(
            QualityIssue(
                "speculative",
                "major",
                f"推測表現が多すぎる: {speculative.count}個（{'、'.join(speculative.expressions)}）",
            )
        )
        score -= 20
    elif speculative.count >= 2:
        issues.append(
            QualityIssue("speculative", "minor", f"推測表現が含まれている: {speculative.count}個")
        )
        score -= 10

    empty_bullets = sum(1 for line in detailed_summary.split("\n") if line.strip() == "・")
    if empty_bullets:
        issues.append(
            QualityIssue("format", "critical", f"空の箇条書き項目がある: {empty_bullets}個")
        )
        score -= 30

    return SummaryQualityReport(score=max(0, score), issues=issues, speculative=speculative)


def render_quality_report(report: SummaryQualityReport, min_score: int = 70) -> str:
    lines = [
        f"品質スコア: {report.score}/100",
        f"有効: {'はい' if report.is_valid else 'いいえ'}",
        f"再生成必要: {'はい' if report.requires_regeneration(min_score) else 'いいえ'}",
    ]
    if report.speculative.count:
        lines.append(f"推測表現: {report.speculative.count}個")
    if report.issues:
        lines.append("問題点:")
        lines.extend(f"  [{issue.severity}] {issue.message}" for issue in report.issues)
    return "\n".join(lines)
