"""
URL normalisation and target matching.

Matching is deliberately permissive: a candidate counts as the target when
any one of several domain or substring heuristics agrees. A false positive
costs one visit; a missed match costs a whole day's quota.
"""

import re


_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.I)
_WWW_RE = re.compile(r"^www\.", re.I)
_HOST_END_RE = re.compile(r"[/?#]")


def normalize_url(url: str) -> str:
    """
    Normalize a URL for comparison.

    Lowercases, strips the scheme, a leading ``www.`` and one trailing slash.

    Args:
        url: Absolute URL or bare host

    Returns:
        Normalized URL without scheme

    Example:
        >>> normalize_url("https://www.Example.com/")
        'example.com'
        >>> normalize_url("http://example.com/blog/")
        'example.com/blog'
    """
    u = (url or "").strip().lower()
    u = _SCHEME_RE.sub("", u, count=1)
    u = _WWW_RE.sub("", u, count=1)
    if u.endswith("/"):
        u = u[:-1]
    return u


def normalize_domain(url: str) -> str:
    """
    Return the normalized domain of a URL.

    Example:
        >>> normalize_domain("https://www.example.com/page?x=1")
        'example.com'
        >>> normalize_domain("example.com")
        'example.com'
        >>> normalize_domain("example.com?q=1")
        'example.com'
    """
    return _HOST_END_RE.split(normalize_url(url), 1)[0]


def is_match(candidate: str, target: str) -> bool:
    """
    Decide whether a candidate result link is the target site.

    True when any of these hold:
      (a) normalized domains are equal
      (b) the candidate domain contains the target domain
      (c) the target domain contains the candidate domain
      (d) the normalized candidate URL contains the normalized target URL

    Args:
        candidate: Result link href
        target: Target URL configured for the campaign

    Returns:
        True if the candidate should be treated as the target

    Example:
        >>> is_match("https://shop.example.com/page", "https://example.com")
        True
        >>> is_match("https://other.org/", "https://example.com")
        False
    """
    target_domain = normalize_domain(target)
    candidate_domain = normalize_domain(candidate)
    if not target_domain or not candidate_domain:
        return False

    if candidate_domain == target_domain:
        return True
    if target_domain in candidate_domain:
        return True
    if candidate_domain in target_domain:
        return True
    return normalize_url(target) in normalize_url(candidate)


def on_target_domain(current_url: str, target: str) -> bool:
    """
    Check whether the browser already sits on the target's domain.

    Used after click-through, where a redirect wrapper or an ad may have
    landed the tab somewhere else.

    Example:
        >>> on_target_domain("https://www.example.com/landing", "https://example.com")
        True
        >>> on_target_domain("https://duckduckgo.com/?q=example.com", "https://example.com")
        False
    """
    target_domain = normalize_domain(target)
    if not target_domain:
        return False
    current_domain = normalize_domain(current_url)
    return current_domain == target_domain or current_domain.endswith("." + target_domain)
