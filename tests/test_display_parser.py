from techtrend.models.summary import Section
from techtrend.services.display_parser import (
    CANONICAL_SECTIONS,
    EXTRA_SECTION_ICON,
    parse_for_display,
)

DETAILED = "\n".join(
    [
        "・背景：モノリスのデプロイに時間がかかっていた",
        "・課題：テストが不安定で頻繁に失敗していた",
        "・解決策：サービスを分割し、CIを並列化した",
        "・実装：GitHub Actionsのmatrixでジョブを分けた",
        "・効果：デプロイ時間が30分から8分に短縮された",
    ]
)


def test_canonical_items_map_one_to_one_in_order():
    sections = parse_for_display(DETAILED)

    assert [section.title for section in sections] == ["背景", "課題", "解決策", "実装", "効果"]
    assert [section.icon for section in sections] == [t.icon for t in CANONICAL_SECTIONS]
    assert sections[2].content == "サービスを分割し、CIを並列化した"


def test_older_versions_use_canonical_titles():
    sections = parse_for_display(DETAILED, summary_version=6)

    assert [section.title for section in sections] == [t.title for t in CANONICAL_SECTIONS]
    assert sections[0].content == "モノリスのデプロイに時間がかかっていた"


def test_items_beyond_canonical_list_go_to_extra_bucket():
    detailed = DETAILED + "\n・補足：ドキュメントも更新した\n・今後：Canaryリリースを導入予定"

    sections = parse_for_display(detailed)

    assert len(sections) == 7
    assert sections[5] == Section(title="補足", content="ドキュメントも更新した", icon=EXTRA_SECTION_ICON)
    assert sections[6].icon == EXTRA_SECTION_ICON


def test_extra_items_get_generic_title_in_older_versions():
    detailed = DETAILED + "\n・補足：ドキュメントも更新した"

    sections = parse_for_display(detailed, summary_version=5)

    assert sections[5].title == "その他"


def test_hyphen_sub_items_are_grouped_under_empty_label():
    detailed = "\n".join(
        [
            "・実装の詳細：",
            "- キャッシュ層にRedisを採用",
            "- TTLは5分に設定",
            "・効果：レイテンシが改善した",
        ]
    )

    sections = parse_for_display(detailed)

    assert len(sections) == 2
    assert sections[0].title == "実装の詳細"
    assert sections[0].content == "キャッシュ層にRedisを採用\nTTLは5分に設定"


def test_hyphen_items_without_parent_become_sections():
    detailed = "- 性能：2倍になった\n- 互換性：既存APIを維持"

    sections = parse_for_display(detailed)

    assert [(s.title, s.content) for s in sections] == [
        ("性能", "2倍になった"),
        ("互換性", "既存APIを維持"),
    ]


def test_label_echo_is_stripped_from_content():
    sections = parse_for_display("・背景：背景：レガシーシステムの移行が必要だった")

    assert sections[0].content == "レガシーシステムの移行が必要だった"


def test_unbulleted_lines_continue_previous_section():
    detailed = "・背景：古い構成だった\nさらに監視も不足していた\n**補足の太字**"

    sections = parse_for_display(detailed)

    assert len(sections) == 1
    assert sections[0].content == "古い構成だった\nさらに監視も不足していた\n**補足の太字**"


def test_malformed_input_degrades_gracefully():
    sections = parse_for_display("ただの文章\n次の行")

    assert sections == [Section(title="詳細", content="ただの文章\n次の行", icon="📋")]


def test_item_without_label_uses_default_title():
    sections = parse_for_display("・ラベルのない項目")

    assert sections == [Section(title="詳細", content="ラベルのない項目", icon="📋")]


def test_empty_input_returns_no_sections():
    assert parse_for_display("") == []
    assert parse_for_display(None) == []
