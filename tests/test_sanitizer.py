import json

import pytest

from techtrend.services.exceptions import ParseError
from techtrend.services.sanitizer import (
    extract_json_ld,
    extract_thumbnail,
    fallback_extract,
    find_first_image,
    harvest_paragraphs,
    parse_html,
    select_text,
    strip_non_content,
)

BASE_URL = "https://blog.example.com/posts/42"


def _soup(html):
    return parse_html(html)


def _json_ld(data):
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def test_parse_html_rejects_empty_documents():
    with pytest.raises(ParseError):
        parse_html("   ")


def test_strip_non_content_drops_scripts_and_keeps_line_breaks():
    soup = _soup(
        "<body><script>var x = 1;</script><style>p {}</style>"
        "<p>一行目<br>二行目</p><p>次の段落</p></body>"
    )

    strip_non_content(soup)

    assert select_text(soup, "body") == "一行目\n二行目\n次の段落"


def test_select_text_counts_nested_matches_once():
    soup = _soup('<div class="c">外側<div class="c">内側</div></div><div class="c">別</div>')

    assert select_text(soup, ".c") == "外側内側\n\n別"


def test_select_text_tolerates_bad_selectors():
    soup = _soup("<p>text</p>")

    assert select_text(soup, "p[") == ""
    assert select_text(soup, ".missing") == ""


def test_fallback_extract_removes_noise_inside_containers():
    soup = _soup(
        "<body><nav>メニュー</nav><article><aside>広告</aside>"
        "<p>記事の本文です。</p><div class='share-buttons'>共有</div></article></body>"
    )

    assert fallback_extract(soup) == "記事の本文です。"


def test_fallback_extract_uses_site_container_before_body():
    soup = _soup("<body><div id='wrap'>" + "本文" * 60 + "</div><p>フッター的な何か</p></body>")

    text = fallback_extract(soup, site_container="#wrap", min_length=100)

    assert text == "本文" * 60


def test_fallback_extract_returns_first_candidate_when_all_are_short():
    soup = _soup("<body><article>短い本文</article><p>その他</p></body>")

    assert fallback_extract(soup, min_length=100) == "短い本文"


def test_harvest_paragraphs_keeps_long_unique_paragraphs():
    long_a = "あ" * 60
    long_b = "い" * 51
    soup = _soup(
        f"<body><main><p>{long_a}</p><p>短い</p><p>{long_a}</p>"
        f"<p>{'う' * 50}</p><p>{long_b}</p></main></body>"
    )

    assert harvest_paragraphs(soup) == f"{long_a}\n\n{long_b}"


def test_extract_json_ld_prefers_article_body_in_graph():
    soup = _soup(
        "<head>"
        + _json_ld({"@type": "WebSite", "description": "サイトの説明"})
        + _json_ld({"@graph": [{"@type": "Article", "articleBody": "  記事の本文  "}]})
        + "</head>"
    )

    assert extract_json_ld(soup) == "記事の本文"


def test_extract_json_ld_falls_back_to_description_and_skips_bad_json():
    soup = _soup(
        '<head><script type="application/ld+json">{not json</script>'
        + _json_ld([{"@type": "Article", "description": "概要だけ"}])
        + "</head>"
    )

    assert extract_json_ld(soup) == "概要だけ"
    assert extract_json_ld(_soup("<p>none</p>")) is None


def test_extract_thumbnail_prefers_open_graph():
    soup = _soup(
        '<head><meta name="twitter:image" content="https://cdn.example.com/tw.png">'
        '<meta property="og:image" content="/images/og.png"></head>'
    )

    assert extract_thumbnail(soup, BASE_URL) == "https://blog.example.com/images/og.png"


def test_extract_thumbnail_reads_json_ld_image_objects():
    soup = _soup(
        "<head>"
        + _json_ld({"@type": "Article", "image": [{"url": "//cdn.example.com/hero.jpg"}]})
        + "</head>"
    )

    assert extract_thumbnail(soup, BASE_URL) == "https://cdn.example.com/hero.jpg"


def test_extract_thumbnail_ignores_data_uris():
    soup = _soup('<head><meta property="og:image" content="data:image/png;base64,AAAA"></head>')

    assert extract_thumbnail(soup, BASE_URL) is None


def test_find_first_image_skips_logos():
    soup = _soup(
        '<body><header><img src="/static/logo.svg"></header>'
        '<article><img src="hero.jpg"></article></body>'
    )

    assert find_first_image(soup, BASE_URL) == "https://blog.example.com/posts/hero.jpg"
