"""Priority-ordered site adapter table.

Adding a source is a new row here; the extraction engine in
:mod:`techtrend.services.enrichment` is shared by every row.
"""

from __future__ import annotations

from techtrend.services.adapters import (
    AdapterRegistry,
    SiteAdapter,
    catch_all_adapter,
    host_matcher,
)

HATENA_BLOG_SELECTORS = (".entry-content", "article .entry-inner", "article")


def _site(name: str, *domains: str, **kwargs) -> SiteAdapter:
    path_prefix = kwargs.pop("path_prefix", None)
    subdomains = kwargs.pop("subdomains", True)
    return SiteAdapter(
        name=name,
        matcher=host_matcher(*domains, subdomains=subdomains, path_prefix=path_prefix),
        domains=domains,
        **kwargs,
    )


SITE_ADAPTERS: tuple[SiteAdapter, ...] = (
    _site(
        "gmo",
        "developers.gmo.jp",
        selectors=(".entry-content", ".post-content", "article"),
        site_container=".l-main",
    ),
    _site(
        "freee",
        "developers.freee.co.jp",
        selectors=HATENA_BLOG_SELECTORS,
    ),
    _site(
        "zenn",
        "zenn.dev",
        selectors=(".znc", "[class*='BodySection']", "article"),
        min_length=300,
    ),
    _site(
        "qiita",
        "qiita.com",
        selectors=("#personal-public-article-body", ".it-MdContent", "article"),
        min_length=300,
    ),
    _site(
        "thinkit",
        "thinkit.co.jp",
        selectors=(".field-name-body", ".article-body", "article"),
    ),
    _site(
        "google_developers",
        "developers.googleblog.com",
        selectors=(".post-body", ".article-formatted-body", "article"),
    ),
    _site(
        "google_ai",
        "blog.research.google",
        "research.google",
        "ai.googleblog.com",
        selectors=(".post-body", ".blog-content", "article"),
        strategies=("json_ld",),
    ),
    _site(
        "huggingface",
        "huggingface.co",
        path_prefix="/blog",
        selectors=(".blog-content", ".prose", "article"),
    ),
    _site(
        "infoq_jp",
        "www.infoq.com",
        subdomains=False,
        path_prefix="/jp/",
        selectors=(".article__content", ".article__data", "article"),
    ),
    _site(
        "publickey",
        "www.publickey1.jp",
        "publickey1.jp",
        subdomains=False,
        selectors=("#maincol .entrybody", ".entry", "article"),
        site_container="#maincol",
    ),
    _site(
        "stackoverflow_blog",
        "stackoverflow.blog",
        selectors=(".s-prose", ".post-content", "article"),
    ),
    _site("zozo", "techblog.zozo.com", selectors=HATENA_BLOG_SELECTORS),
    _site("recruit", "techblog.recruit.co.jp", selectors=(".blog-article-body", ".entry-content", "article")),
    _site("hatena_developer", "developer.hatenastaff.com", selectors=HATENA_BLOG_SELECTORS),
    _site("pepabo", "tech.pepabo.com", selectors=(".article-body", ".post-content", "article")),
    _site("sansan", "buildersbox.corp-sansan.com", selectors=HATENA_BLOG_SELECTORS),
    _site("moneyforward", "moneyforward-dev.jp", selectors=HATENA_BLOG_SELECTORS),
    _site(
        "github_blog",
        "github.blog",
        selectors=(".post-content", ".prose", "article"),
    ),
    _site(
        "cloudflare",
        "blog.cloudflare.com",
        selectors=(".post-content", "article"),
    ),
    _site(
        "mozilla_hacks",
        "hacks.mozilla.org",
        selectors=(".article-content", ".entry-content", "article"),
    ),
    _site(
        "hacker_news",
        "news.ycombinator.com",
        subdomains=False,
        path_prefix="/item",
        strategies=("hacker_news_api",),
        selectors=(".toptext", ".fatitem .commtext"),
        min_length=100,
    ),
    _site(
        "medium",
        "netflixtechblog.com",
        "medium.com",
        strategies=("json_ld",),
        selectors=("article section", "article"),
    ),
    _site(
        "aws",
        "aws.amazon.com",
        "www.aws.amazon.com",
        subdomains=False,
        selectors=(
            ".blog-post-content",
            ".blog-content",
            "article .content",
            ".entry-content",
            "#aws-page-content",
            ".aws-text-box",
            "article",
            "main",
        ),
        site_container="#aws-page-content",
        timeout=15.0,
    ),
    _site(
        "devto",
        "dev.to",
        selectors=("#article-body", ".crayons-article__body", "article"),
        min_length=300,
    ),
    _site("speakerdeck", "speakerdeck.com", thumbnail_only=True),
    _site("docswell", "docswell.com", thumbnail_only=True),
    catch_all_adapter(
        "generic",
        strategies=("json_ld", "trafilatura"),
        selectors=(
            "article",
            "main",
            "[role='main']",
            "[role='article']",
            ".article",
            ".post",
            ".entry-content",
            ".post-content",
            ".article-content",
            ".content-body",
            ".story-body",
            "#content",
            ".content",
            ".markdown-body",
            ".readme",
            ".documentation-content",
        ),
        min_length=200,
        image_fallback=True,
    ),
)

DEFAULT_REGISTRY = AdapterRegistry(SITE_ADAPTERS)
