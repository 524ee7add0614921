"""Prompt templates for the summary generator."""

from __future__ import annotations

import textwrap

UNIFIED_PROMPT = textwrap.dedent(
    """
    技術記事を分析して、以下の形式で要約を作成してください。

    【最重要ルール】
    1. 要約は最大200文字以内（超過厳禁）
    2. 詳細要約は記事の内容量に応じた自然な長さで
    3. 無理に内容を膨らませない - 実際の記事内容を忠実に反映
    4. 箇条書きには句点（。）を付けない

    要約:
    【条件】最大200文字。内容に応じて適切な長さで。
    【書き方】
    - 記事の核心的な内容を端的に表現
    - 技術的価値を明確に示す
    - 冗長な表現は避ける
    【文末】必ず句点で終了

    カテゴリ:
    次のいずれか1つ: プログラミング言語, フレームワーク・ライブラリ, AI・機械学習,
    クラウド・インフラ, Web開発, モバイル開発, データベース, セキュリティ,
    ツール・開発環境, その他

    詳細要約:
    【条件】記事の内容量に応じた自然な長さで（目安：300-800文字）
    【形式】記事の内容に最も適した項目を箇条書きで作成
    【書き方】
    ・各項目は「・項目名：具体的な内容」の形式
    ・具体的な数値、データ、技術的詳細があれば積極的に含める
    ・記事に書かれていない内容は追加しない

    タグ:
    技術名を5個まで（カンマ区切り、一般的な略称を使用）
    """
).strip()

SHORT_CONTENT_PROMPT = textwrap.dedent(
    """
    短い技術記事を分析して、以下の形式で要約を作成してください。
    記事に書かれていない内容を推測で補わないでください。

    要約:
    最大200文字。必ず句点で終了。

    詳細要約:
    全体で{detail_min}-{detail_max}文字程度。{item_count}個の項目を
    「・項目名：具体的な内容」の形式で記述（句点なし）。

    タグ:
    技術名を5個まで（カンマ区切り）
    """
).strip()

SUMMARY_ONLY_PROMPT = textwrap.dedent(
    """
    以下の記事はごく短い内容しかありません。書かれている事実だけを使い、
    推測や憶測を避けて要約してください。詳細要約は不要です。

    要約: 最大120文字の要約（句点で終了）
    タグ: 技術名を3個まで（カンマ区切り）
    """
).strip()

INSUFFICIENT_CONTENT_BODY = (
    "タイトル: {title}\n\n内容:\n{content}\n\n"
    "注意: 内容が不十分なため、実際の記事内容に基づいた要約のみを生成してください。"
    "推測や憶測は避けてください。"
)
INSUFFICIENT_CONTENT_PLACEHOLDER = "コンテンツ不足"

# (max content length, detail min, detail max, item count) for short articles.
SHORT_CONTENT_BANDS = (
    (200, 200, 300, "2-3"),
    (350, 250, 400, "3"),
)
SHORT_CONTENT_DEFAULT_BAND = (300, 500, "3-4")


def insufficient_content_body(title: str, content: str) -> str:
    return INSUFFICIENT_CONTENT_BODY.format(
        title=title, content=content or INSUFFICIENT_CONTENT_PLACEHOLDER
    )


def item_count_instruction(content_length: int) -> str:
    if content_length >= 5000:
        return (
            f"【重要】この記事は{content_length}文字の長文記事です。"
            "詳細要約では最低5個以上の項目を作成し、記事の主要トピックをすべてカバーしてください。"
        )
    if content_length >= 3000:
        return f"【重要】この記事は{content_length}文字です。詳細要約では最低4個以上の項目を作成してください。"
    if content_length >= 1000:
        return f"【重要】この記事は{content_length}文字です。詳細要約では最低3個以上の項目を作成してください。"
    return f"【重要】この記事は{content_length}文字の短い記事です。詳細要約では最低3個の項目を作成してください。"


def short_content_band(content_length: int) -> tuple[int, int, str]:
    for max_length, detail_min, detail_max, items in SHORT_CONTENT_BANDS:
        if content_length <= max_length:
            return detail_min, detail_max, items
    return SHORT_CONTENT_DEFAULT_BAND


def _with_article(instructions: str, title: str, body: str) -> str:
    return f"{instructions}\n\nタイトル: {title}\n内容: {body}\n"


def build_unified_prompt(title: str, body: str, content_length: int) -> str:
    instructions = f"{UNIFIED_PROMPT}\n\n{item_count_instruction(content_length)}"
    return _with_article(instructions, title, body)


def build_short_content_prompt(title: str, body: str, content_length: int) -> str:
    detail_min, detail_max, items = short_content_band(content_length)
    instructions = SHORT_CONTENT_PROMPT.format(
        detail_min=detail_min, detail_max=detail_max, item_count=items
    )
    return _with_article(instructions, title, body)


def build_summary_only_prompt(title: str, body: str) -> str:
    return _with_article(SUMMARY_ONLY_PROMPT, title, body)
