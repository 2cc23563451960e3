"""
Keyword-based category and sentiment classification.

CATEGORY: an ordered cascade of (label, keywords) rules over the lower-cased
title + summary. Rules are evaluated top to bottom and the first rule with any
keyword contained in the text wins. There is no weighting: a story mentioning
both "AI" and "funding" is always `ai`, because AI sits above Startup.

SENTIMENT: number of positive words contained vs number of negative words
contained. Strictly more positive → positive, strictly more negative →
negative, otherwise neutral.

Matching is plain substring containment on purpose ("ai" also matches inside
longer words), so results are reproducible and auditable against the tables
below.
"""

import logging
from typing import List, NamedTuple, Sequence, Tuple

from trendlens.schemas.base import Category, Sentiment

logger = logging.getLogger(__name__)


class CategoryRule(NamedTuple):
    label: Category
    keywords: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


# Priority order is policy. Reordering changes classification results.
CATEGORY_RULES: List[CategoryRule] = [
    CategoryRule(Category.AI, (
        "ai", "artificial intelligence", "machine learning", "deep learning",
        "neural network", "chatgpt", "openai", "llm", "gpt",
    )),
    CategoryRule(Category.SECURITY, (
        "security", "breach", "hack", "cyber", "vulnerability", "malware",
        "ransomware", "phishing",
    )),
    CategoryRule(Category.STARTUP, (
        "startup", "funding", "investment", "series a", "series b", "venture",
        "ipo", "acquisition",
    )),
    CategoryRule(Category.DEVTOOLS, (
        "devops", "kubernetes", "docker", "ci/cd", "deployment", "dev", "code",
        "programming", "api", "framework", "open source",
    )),
    CategoryRule(Category.MOBILE, (
        "mobile", "ios", "android", "iphone", "smartphone", "app store",
    )),
    CategoryRule(Category.CLOUD, (
        "cloud", "aws", "azure", "google cloud", "saas", "paas",
    )),
    CategoryRule(Category.GAMING, (
        "game", "gaming", "esports", "playstation", "xbox", "nintendo",
    )),
    CategoryRule(Category.CRYPTO, (
        "crypto", "bitcoin", "blockchain", "ethereum", "web3", "nft",
    )),
    CategoryRule(Category.DATA, (
        "database", "data", "analytics", "big data", "sql", "nosql",
    )),
]

FALLBACK_CATEGORY = Category.ALL

POSITIVE_WORDS = ("launch", "funding", "breakthrough", "success", "growth", "innovation", "improve")
NEGATIVE_WORDS = ("breach", "hack", "fail", "problem", "issue", "outage", "down", "crisis")


def categorize(title: str, summary: str, rules: Sequence[CategoryRule] = CATEGORY_RULES) -> Category:
    """Return the label of the first matching rule, or the fallback."""
    text = f"{title} {summary}".lower()
    for rule in rules:
        if rule.matches(text):
            return rule.label
    return FALLBACK_CATEGORY


def _count_contained(text: str, words: Sequence[str]) -> int:
    return sum(1 for word in words if word in text)


def analyze_sentiment(text: str) -> Sentiment:
    lower = text.lower()
    positive = _count_contained(lower, POSITIVE_WORDS)
    negative = _count_contained(lower, NEGATIVE_WORDS)

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def classify(title: str, summary: str) -> Tuple[Category, Sentiment]:
    """Assign (category, sentiment) to a title + summary. Pure function."""
    return categorize(title, summary), analyze_sentiment(f"{title} {summary}")
