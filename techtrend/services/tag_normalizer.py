"""Collapse spelling and casing variants of tags into canonical names."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from techtrend.models.tag import NormalizationRule, NormalizedTag


def _rule(canonical: str, category: Optional[str], *patterns: str) -> NormalizationRule:
    compiled = [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
    # Canonical names must map onto themselves.
    compiled.append(re.compile(rf"^{re.escape(canonical)}$", re.IGNORECASE))
    return NormalizationRule(
        patterns=tuple(compiled), canonical=canonical, category=category
    )


# Order matters: the first matching rule wins.
NORMALIZATION_RULES: tuple[NormalizationRule, ...] = (
    # AI / LLM
    _rule(
        "Claude",
        "ai-ml",
        r"^claude[\s-]?(code|sonnet)?$",
        r"^claudecode$",
        r"^claude[\s-]?(\d+|4)[\s-]?(sonnet)?$",
    ),
    _rule(
        "GPT",
        "ai-ml",
        r"^gpt[\s-]?[45]$",
        r"^gpt[\s-]?4\.?\d?$",
        r"^gpt[\s-]?5[\s-]?(thinking|pro|nano)?$",
        r"^chatgpt[\s-]?[45]?$",
        r"^chat[\s-]?gpt$",
    ),
    _rule(
        "OpenAI",
        "ai-ml",
        r"^openai$",
        r"^open[\s-]?ai$",
        r"^openai[\s-]?(api|gpt)?$",
    ),
    _rule(
        "Gemini",
        "ai-ml",
        r"^gemini(\s+(api|pro|nano|cli))?$",
        r"^google\s+gemini(\s+api)?$",
        r"^gemini\s+\d+(\.\d+)?(\s+pro)?$",
    ),
    _rule("LLM", "ai-ml", r"^llm$", r"^llms$", r"^large[\s-]?language[\s-]?model"),
    _rule(
        "AI",
        "ai-ml",
        r"^(生成ai|genai|generative\s+ai|ジェネレーティブai)$",
        r"^ai[\s-]?(生成|画像生成|動画生成)?$",
        r"^画像生成ai$",
        r"^動画生成$",
    ),
    _rule("AIエージェント", "ai-ml", r"^(aiエージェント|ai\s+agent|agentic\s+ai)$"),
    # Languages
    _rule("JavaScript", "language", r"^javascript$", r"^js$"),
    _rule("TypeScript", "language", r"^typescript$", r"^ts$"),
    _rule("Python", "language", r"^python[\s]?[23]?$", r"^py$"),
    _rule("Go", "language", r"^go(lang)?$"),
    _rule("Rust", "language", r"^rust$"),
    _rule("Java", "language", r"^java$"),
    _rule("C++", "language", r"^c\+\+$", r"^cpp$"),
    _rule("C#", "language", r"^c#$", r"^csharp$"),
    _rule("Ruby", "language", r"^ruby$", r"^rb$"),
    _rule("PHP", "language", r"^php$"),
    _rule("Swift", "language", r"^swift$"),
    _rule("Kotlin", "language", r"^kotlin$"),
    # Frameworks and libraries
    _rule("React", "framework", r"^react(\.?js)?$", r"^reactjs$"),
    _rule("Vue.js", "framework", r"^vue(\.?js)?[\s]?[23]?$", r"^vuejs$"),
    _rule("Angular", "framework", r"^angular(js)?[\s]?\d*$"),
    _rule("Node.js", "framework", r"^node(\.?js)?$", r"^nodejs$"),
    _rule("Next.js", "framework", r"^next(\.?js)?[\s]?\d*$", r"^nextjs$"),
    _rule("Nuxt.js", "framework", r"^nuxt(\.?js)?[\s]?\d*$", r"^nuxtjs$"),
    _rule("Express", "framework", r"^express(\.?js)?$", r"^expressjs$"),
    _rule("Django", "framework", r"^django$"),
    _rule("Flask", "framework", r"^flask$"),
    _rule("Ruby on Rails", "framework", r"^(rails|ruby\s+on\s+rails)$", r"^ror$"),
    _rule("Spring", "framework", r"^spring(\s+boot)?$"),
    _rule(".NET", "framework", r"^\.?net(\s+core)?$", r"^dotnet$"),
    _rule("Tailwind CSS", "framework", r"^tailwind(\s+css)?$", r"^tailwindcss$"),
    # Cloud and infrastructure
    _rule("AWS", "cloud", r"^aws$", r"^amazon\s+web\s+services$"),
    _rule("GCP", "cloud", r"^gcp$", r"^google\s+cloud(\s+platform)?$"),
    _rule(
        "Azure", "cloud", r"^azure$", r"^microsoft\s+azure$", r"^azure\s+(openai|ai)$"
    ),
    _rule("Docker", "cloud", r"^docker$", r"^docker[\s-]?compose$"),
    _rule("Kubernetes", "cloud", r"^kubernetes$", r"^k8s$"),
    _rule("Terraform", "cloud", r"^terraform$"),
    _rule("GitHub", "cloud", r"^github(\s+actions)?$"),
    _rule("GitLab", "cloud", r"^gitlab(\s+ci)?$"),
    _rule("Vercel", "cloud", r"^vercel$"),
    _rule("Netlify", "cloud", r"^netlify$"),
    # Databases
    _rule("PostgreSQL", "database", r"^postgres(ql)?$", r"^postgresql$"),
    _rule("MySQL", "database", r"^mysql$", r"^mariadb$"),
    _rule("MongoDB", "database", r"^mongo(db)?$"),
    _rule("Redis", "database", r"^redis$"),
    _rule("SQLite", "database", r"^sqlite$"),
    _rule("Elasticsearch", "database", r"^elastic(search)?$"),
    _rule("Firebase", "database", r"^firebase$", r"^firestore$"),
    _rule("Supabase", "database", r"^supabase$"),
    _rule("Prisma", "database", r"^prisma$"),
    # Tools
    _rule("VS Code", "tools", r"^vscode$", r"^visual\s+studio\s+code$"),
    _rule("Git", "tools", r"^git$"),
    _rule("Webpack", "tools", r"^webpack$"),
    _rule("Vite", "tools", r"^vite$"),
    _rule("npm", "tools", r"^npm$"),
    _rule("Yarn", "tools", r"^yarn$"),
    _rule("pnpm", "tools", r"^pnpm$"),
    _rule("Jest", "tools", r"^jest$"),
    _rule("Vitest", "tools", r"^vitest$"),
    _rule("Playwright", "tools", r"^playwright$"),
    _rule("Cypress", "tools", r"^cypress$"),
    _rule("ESLint", "tools", r"^eslint$"),
    _rule("Prettier", "tools", r"^prettier$"),
    # Web
    _rule("HTML", "web", r"^html[\s]?\d?$"),
    _rule("CSS", "web", r"^css[\s]?\d?$"),
    _rule("Sass", "web", r"^sass$", r"^scss$"),
    _rule("GraphQL", "web", r"^graphql$"),
    _rule("REST API", "web", r"^rest(\s+api)?$", r"^restful$"),
    _rule("WebSocket", "web", r"^websocket[s]?$"),
    _rule("Jamstack", "web", r"^jamstack$"),
    _rule("PWA", "web", r"^pwa$", r"^progressive\s+web\s+app$"),
    # Mobile
    _rule("React Native", "mobile", r"^react\s+native$", r"^reactnative$"),
    _rule("Flutter", "mobile", r"^flutter$"),
    _rule("Ionic", "mobile", r"^ionic$"),
    _rule("Android", "mobile", r"^android$"),
    _rule("iOS", "mobile", r"^ios$", r"^iphone$", r"^ipad$"),
    # Security
    _rule("OAuth", "security", r"^oauth[\s]?\d?$"),
    _rule("JWT", "security", r"^jwt$", r"^json\s+web\s+token$"),
    _rule("SSL/TLS", "security", r"^ssl$", r"^tls$", r"^https$"),
    _rule("CORS", "security", r"^cors$"),
)

_ACRONYM = re.compile(r"[A-Z]+")
_LEADING_ACRONYM = re.compile(r"[A-Z]{2,}")


def _clean(tag: str) -> str:
    cleaned = re.sub(r"\s+", " ", tag)
    cleaned = re.sub(r"_+", "-", cleaned)
    return cleaned.strip()


def _basic_normalize(tag: str) -> str:
    if not tag:
        return tag
    if _ACRONYM.fullmatch(tag):
        return tag
    if _LEADING_ACRONYM.match(tag):
        return tag
    return tag[0].upper() + tag[1:]


def normalize(
    raw_tag: str, rules: Iterable[NormalizationRule] = NORMALIZATION_RULES
) -> NormalizedTag:
    """Map a raw tag onto its canonical name and category."""
    cleaned = _clean(raw_tag or "")
    for rule in rules:
        if rule.matches(cleaned):
            return NormalizedTag(name=rule.canonical, category=rule.category)
    return NormalizedTag(name=_basic_normalize(cleaned), category=None)


def normalize_tags(
    raw_tags: Iterable[str], rules: Iterable[NormalizationRule] = NORMALIZATION_RULES
) -> list[NormalizedTag]:
    """Normalise a tag list, keeping the first occurrence of each canonical name."""
    rules = tuple(rules)
    seen: dict[str, NormalizedTag] = {}
    for raw_tag in raw_tags:
        if not raw_tag or not raw_tag.strip():
            continue
        tag = normalize(raw_tag, rules)
        if tag.name not in seen:
            seen[tag.name] = tag
    return list(seen.values())


def infer_category(tags: Iterable[NormalizedTag]) -> Optional[str]:
    for tag in tags:
        if tag.category:
            return tag.category
    return None
