from techtrend.services.post_processor import (
    adjust_detailed_summary_items,
    enforce_length,
    post_process_summaries,
    remove_bullet_point_periods,
)


def _detail(items: int, content_length: int) -> str:
    return "\n".join(f"・項目{i}：" + "あ" * content_length for i in range(items))


def test_enforce_length_is_noop_below_threshold():
    text = "あ" * 250 + "。"

    assert enforce_length(text, 180, 220, safety_threshold=300) == text


def test_enforce_length_keeps_whole_sentences_within_max():
    sentence = "あ" * 49 + "。"
    text = sentence * 7

    result = enforce_length(text, 180, 220, safety_threshold=300)

    assert result == sentence * 4
    assert len(result) <= 220
    assert result.endswith("。")


def test_enforce_length_drops_trailing_fragment():
    text = ("い" * 99 + "。") * 3 + "う" * 50

    result = enforce_length(text, 180, 220, safety_threshold=300)

    assert result == ("い" * 99 + "。") * 2
    assert result.endswith("。")


def test_enforce_length_hard_cuts_a_single_overlong_sentence():
    result = enforce_length("え" * 400, 180, 220, safety_threshold=300)

    assert len(result) == 220
    assert result.endswith("。")


def test_enforce_length_never_pads_short_text():
    assert enforce_length("短い。", 180, 220) == "短い。"


def test_enforce_length_keeps_whole_lines_for_multiline_text():
    text = _detail(10, 110)

    result = enforce_length(text, 500, 600)

    assert len(result) <= 600
    assert result.split("\n") == text.split("\n")[: len(result.split("\n"))]


def test_remove_bullet_point_periods_only_touches_bullets():
    text = "・項目：内容です。\n普通の文です。\n  ・別の項目：説明。"

    assert remove_bullet_point_periods(text) == "・項目：内容です\n普通の文です。\n・別の項目：説明"


def test_adjust_items_cuts_at_late_punctuation():
    content = "あ" * 100 + "、" + "い" * 40
    text = f"・性能：{content}"

    assert adjust_detailed_summary_items(text) == "・性能：" + "あ" * 100


def test_adjust_items_hard_cuts_without_late_punctuation():
    content = "あ" * 20 + "。" + "い" * 150
    text = f"・性能: {content}"

    result = adjust_detailed_summary_items(text)

    assert result == "・性能:" + content[:120]


def test_adjust_items_without_label_adjusts_whole_line():
    text = "・" + "う" * 130

    assert adjust_detailed_summary_items(text) == "・" + "う" * 120


def test_adjust_items_leaves_short_and_non_bullet_lines():
    text = "・短い：内容\n説明文" + "え" * 200

    assert adjust_detailed_summary_items(text) == text


def test_post_process_scenario_truncates_long_summary():
    summary = ("これは長い要約の文です" + "あ" * 25 + "。") * 10
    detailed = _detail(5, 100)

    result = post_process_summaries(summary, detailed)

    assert len(summary) > 300
    assert len(result.summary) <= 220
    assert result.summary.endswith("。")


def test_post_process_accepts_detail_in_band_as_is():
    detailed = _detail(6, 110)
    assert 500 <= len(detailed) <= 1000

    result = post_process_summaries("要約です。", detailed)

    assert result.detailed_summary == detailed


def test_post_process_reclamps_overlong_detail():
    detailed = _detail(12, 110)

    result = post_process_summaries("要約です。", detailed)

    assert len(detailed) > 1000
    assert len(result.detailed_summary) <= 600


def test_post_process_does_not_shrink_acceptable_detail_below_floor():
    detailed = _detail(4, 130)
    assert 500 <= len(detailed) <= 1000

    result = post_process_summaries("要約です。", detailed)

    assert len(result.detailed_summary) >= 500


def test_post_process_keeps_bullet_periods_when_removal_would_cross_floor():
    detailed = "\n".join("・項目：" + "あ" * 95 + "。" for _ in range(5))
    assert len(detailed) == 504

    result = post_process_summaries("要約です。", detailed)

    assert result.detailed_summary == detailed


def test_post_process_only_logs_short_detail():
    detailed = "・項目：短い内容です。"

    result = post_process_summaries("要約です。", detailed)

    assert result.detailed_summary == "・項目：短い内容です"
