"""
SEO snapshot extraction for the visited target page.

One DOM script collects meta tags, social cards, headings, content counts,
link and image statistics and structured-data types. The snapshot is stored
as-is; ``summarize_seo`` flattens the fields the traffic record keeps.
"""

import time
from typing import Any, Dict, Optional

from playwright.async_api import Page

from serpsurfer.core.logging import get_logger

logger = get_logger(__name__)


SEO_METADATA_JS = r"""
() => {
  const meta = (name) => {
    const el = document.querySelector(`meta[name="${name}"]`) ||
               document.querySelector(`meta[property="${name}"]`);
    return el ? (el.getAttribute('content') || '') : '';
  };
  const texts = (sel) => Array.from(document.querySelectorAll(sel))
    .map(h => (h.textContent || '').trim()).filter(t => t);

  const host = window.location.hostname;
  const anchors = Array.from(document.querySelectorAll('a[href]'));
  let internal = 0, external = 0;
  for (const a of anchors) {
    try {
      const u = new URL(a.href, window.location.href);
      if (u.hostname === host) internal++;
      else if (u.protocol.startsWith('http')) external++;
    } catch (e) {}
  }

  const images = Array.from(document.querySelectorAll('img'));
  const schemaScripts = Array.from(document.querySelectorAll('script[type="application/ld+json"]'));
  const schemaTypes = schemaScripts.map(s => {
    try { return JSON.parse(s.textContent)['@type'] || 'Unknown'; }
    catch (e) { return 'Invalid'; }
  });
  const bodyText = (document.body && document.body.textContent) || '';
  const canonical = document.querySelector('link[rel="canonical"]');

  return {
    metaTags: {
      title: document.title || '',
      description: meta('description'),
      keywords: meta('keywords'),
      author: meta('author'),
      viewport: meta('viewport'),
      robots: meta('robots'),
      charset: document.characterSet || '',
      language: document.documentElement.lang || '',
      canonical: canonical ? canonical.href : ''
    },
    openGraph: {
      title: meta('og:title'),
      description: meta('og:description'),
      image: meta('og:image'),
      url: meta('og:url'),
      type: meta('og:type'),
      siteName: meta('og:site_name')
    },
    twitterCard: {
      card: meta('twitter:card'),
      title: meta('twitter:title'),
      description: meta('twitter:description'),
      image: meta('twitter:image')
    },
    headings: { h1: texts('h1'), h2: texts('h2'), h3: texts('h3') },
    contentAnalysis: {
      wordCount: bodyText.split(/\s+/).filter(w => w.length > 0).length,
      paragraphCount: document.querySelectorAll('p').length,
      imageCount: images.length,
      imagesWithoutAlt: images.filter(i => !i.alt).length,
      videoCount: document.querySelectorAll('video').length,
      internalLinks: internal,
      externalLinks: external
    },
    technicalSEO: {
      hasSchema: schemaScripts.length > 0,
      schemaTypes: schemaTypes,
      sslEnabled: window.location.protocol === 'https:',
      mobileFriendly: !!document.querySelector('meta[name="viewport"]')
    },
    pageSize: document.documentElement.outerHTML.length,
    url: window.location.href
  };
}
"""


async def extract_seo_metadata(page: Page) -> Optional[Dict[str, Any]]:
    """
    Collect an SEO snapshot of the current page.

    Returns:
        Snapshot dict, or None if the script could not run
    """
    started = time.monotonic()
    try:
        snapshot = await page.evaluate(SEO_METADATA_JS)
    except Exception as e:
        logger.warning(f"SEO extraction failed on {page.url}: {e}")
        return None
    if not isinstance(snapshot, dict):
        return None

    snapshot["performance"] = {"loadTime": int((time.monotonic() - started) * 1000)}
    return snapshot


def summarize_seo(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a snapshot into the summary kept on the traffic record.

    Missing sections produce empty defaults rather than errors.

    Example:
        >>> summarize_seo({"metaTags": {"title": "Acme"}})["title"]
        'Acme'
    """
    meta = snapshot.get("metaTags") or {}
    headings = snapshot.get("headings") or {}
    content = snapshot.get("contentAnalysis") or {}
    technical = snapshot.get("technicalSEO") or {}
    performance = snapshot.get("performance") or {}

    return {
        "title": meta.get("title") or "",
        "description": meta.get("description") or "",
        "keywords": meta.get("keywords") or "",
        "canonical": meta.get("canonical") or "",
        "robots": meta.get("robots") or "",
        "h1_tags": list(headings.get("h1") or []),
        "h2_tags": list(headings.get("h2") or []),
        "h3_tags": list(headings.get("h3") or []),
        "image_count": int(content.get("imageCount") or 0),
        "internal_links": int(content.get("internalLinks") or 0),
        "external_links": int(content.get("externalLinks") or 0),
        "word_count": int(content.get("wordCount") or 0),
        "page_load_time": int(performance.get("loadTime") or 0),
        "has_schema": bool(technical.get("hasSchema")),
        "schema_types": [str(t) for t in technical.get("schemaTypes") or []],
    }
