from techtrend.services.summary_quality import (
    check_summary_quality,
    detect_speculative_expressions,
    render_quality_report,
)

GOOD_SUMMARY = "あ" * 120 + "。"
GOOD_DETAILED = "\n".join(f"・項目{i}：" + "い" * 90 for i in range(5))


def test_well_formed_pair_scores_full_marks():
    report = check_summary_quality(GOOD_SUMMARY, GOOD_DETAILED)

    assert report.score == 100
    assert report.issues == []
    assert report.is_valid
    assert not report.requires_regeneration(70)


def test_short_fields_lose_points():
    report = check_summary_quality("短い要約", "・項目：内容")

    # -20 summary, -20 detailed, -5 no full stop, -5 few bullets
    assert report.score == 50
    assert not report.is_valid
    assert {issue.type for issue in report.issues} == {"length", "punctuation", "format"}


def test_missing_bullets_is_major():
    report = check_summary_quality(GOOD_SUMMARY, "う" * 450)

    assert report.score == 85
    assert report.issues[0].severity == "major"


def test_speculative_expressions_are_penalised():
    detailed = GOOD_DETAILED + "\n・所感：高速化すると考えられる。普及するかもしれない。改善されるでしょう。"

    report = check_summary_quality(GOOD_SUMMARY, detailed)

    assert report.speculative.count == 3
    assert report.score == 80
    assert any(issue.type == "speculative" for issue in report.issues)


def test_lone_bullet_is_critical():
    detailed = GOOD_DETAILED + "\n・"

    report = check_summary_quality(GOOD_SUMMARY, detailed)

    assert report.score == 70
    assert report.requires_regeneration(50)


def test_detect_speculative_expressions_ratio():
    result = detect_speculative_expressions("速いようです。遅いでしょう。普通です。")

    assert result.count == 2
    assert result.ratio == 0.67
    assert result.expressions == ("ようです", "でしょう")
    assert detect_speculative_expressions("").count == 0


def test_render_quality_report_lists_issues():
    report = check_summary_quality("短い要約", "・項目：内容")

    rendered = render_quality_report(report)

    assert rendered.splitlines()[0] == "品質スコア: 50/100"
    assert "再生成必要: はい" in rendered
    assert "[major] 一覧要約が短すぎる: 4文字（最小50文字）" in rendered
