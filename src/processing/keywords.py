"""
Tokenization and keyword extraction shared by deduplication,
clustering, noise filtering and summarization.
"""
import re
from collections import Counter
from typing import Dict, Iterable, List

# Hyphenated and apostrophe compounds stay whole: "ai-detection", "gpt-4o"
_TOKEN_RE = re.compile(r"[a-z0-9]+(?:[-'][a-z0-9]+)*")

_MIN_TOKEN_LEN = 2
_TITLE_WEIGHT = 3

STOPWORDS = frozenset(
    """
    a about above after again against all also am an and any are aren as at be because
    been before being below between both but by can cannot could did didn do does doesn
    doing don down during each even every few for from further get gets got had has hasn
    have haven having he her here hers herself him himself his how however i if in into
    is isn it its itself just let like made make makes many may me might more most much
    must my myself new no nor not now of off on once one only or other our ours ourselves
    out over own really s same says see she should so some still such t than that the
    their theirs them themselves then there these they this those through to too two
    under until up upon us use used using very via was wasn way we were weren what when
    where which while who whom why will with without won would yet you your yours
    yourself yourselves show ask tell hn re
    """.split()
)


def stem(token: str) -> str:
    """Light plural stripping; enough to merge 'models' with 'model'."""
    if "-" in token or len(token) <= 4 or token.isdigit():
        return token
    if token.endswith("ies") and len(token) > 5:
        return token[:-3] + "y"
    if token.endswith(("sses", "xes", "ches", "shes")):
        return token[:-2]
    if token.endswith("s") and not token.endswith(("ss", "us", "is")):
        return token[:-1]
    return token


def tokenize(text: str, *, stemming: bool = False) -> List[str]:
    """Lowercase, stopword-filtered tokens in order of appearance."""
    tokens: List[str] = []
    for raw in _TOKEN_RE.findall((text or "").lower()):
        token = raw.strip("'")
        if token.endswith("'s"):
            token = token[:-2]
        if len(token) < _MIN_TOKEN_LEN or token.isdigit() or token in STOPWORDS:
            continue
        tokens.append(stem(token) if stemming else token)
    return tokens


def token_set(text: str) -> frozenset:
    return frozenset(tokenize(text))


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    a, b = set(a), set(b)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def extract_keywords(
    title: str,
    body: str,
    *,
    limit: int,
    stemming: bool = False,
) -> List[str]:
    """
    Most salient keywords of a text, title tokens weighted higher.

    Returned in descending weight; ties keep order of first appearance
    so the result is deterministic.
    """
    weights: Dict[str, int] = Counter()
    first_seen: Dict[str, int] = {}

    for position, token in enumerate(
        tokenize(title, stemming=stemming) + tokenize(body, stemming=stemming)
    ):
        first_seen.setdefault(token, position)

    for token in tokenize(title, stemming=stemming):
        weights[token] += _TITLE_WEIGHT
    for token in tokenize(body, stemming=stemming):
        weights[token] += 1

    ranked = sorted(weights, key=lambda t: (-weights[t], first_seen[t]))
    return ranked[:limit]
