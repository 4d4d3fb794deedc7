"""Client for the optional receipt enrichment service.

``fetch_enrichment`` talks to the service and raises ``EnrichmentError`` on
anything that is not a clean answer. ``contain`` wraps such a fetcher so that
callers only ever see text or ``None``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from receiptmatic.settings.config import Settings

logger = logging.getLogger(__name__)

Enricher = Callable[[str], Awaitable[Optional[str]]]


class EnrichmentError(RuntimeError):
    pass


async def fetch_enrichment(
    content: str,
    *,
    url: str,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """POST the submission to the content service and return ``data.Content``."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.post(
                url,
                json={"content": content},
                headers={"Content-Type": "application/json"},
            )
            r.raise_for_status()
            data = r.json()
    except Exception as e:
        raise EnrichmentError(f"Enrichment request failed: {e}") from e

    if not isinstance(data, dict):
        raise EnrichmentError("Enrichment payload is not an object")
    if data.get("status") != 200:
        raise EnrichmentError(f"Enrichment service answered status={data.get('status')!r} msg={data.get('msg')!r}")
    payload = data.get("data")
    text = payload.get("Content") if isinstance(payload, dict) else None
    if not isinstance(text, str) or not text.strip():
        raise EnrichmentError("Enrichment payload has no Content")
    return text


def contain(fetch: Callable[[str], Awaitable[Optional[str]]], timeout: Optional[float] = None) -> Enricher:
    """Turn a fetcher that may raise or hang into one that returns text or None."""

    async def enrich(raw_text: str) -> Optional[str]:
        try:
            if timeout is None:
                out = await fetch(raw_text)
            else:
                out = await asyncio.wait_for(fetch(raw_text), timeout)
        except asyncio.TimeoutError:
            logger.warning("Enrichment timed out after %ss; printing without it", timeout)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.warning("Enrichment failed; printing without it: %s", exc)
            return None
        if not isinstance(out, str) or not out.strip():
            return None
        return out

    return enrich


async def _no_enrichment(raw_text: str) -> Optional[str]:
    return None


def build_enricher(cfg: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> Enricher:
    url = (cfg.ENRICH_URL or "").strip()
    if not url:
        logger.info("ENRICH_URL not set; receipts print without enrichment")
        return _no_enrichment

    async def fetch(raw_text: str) -> str:
        return await fetch_enrichment(raw_text, url=url, timeout=cfg.ENRICH_TIMEOUT, transport=transport)

    # outer bound covers connect + read + decode as a whole
    return contain(fetch, timeout=cfg.ENRICH_TIMEOUT + 1.0)


__all__ = ["Enricher", "EnrichmentError", "fetch_enrichment", "contain", "build_enricher"]
