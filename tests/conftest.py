"""Shared fixtures: fast printer engines and an ASGI client bound to one."""

from __future__ import annotations

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from receiptmatic.main import create_app
from receiptmatic.services.printer import PrinterEngine


@pytest.fixture
def anyio_backend():
    return "asyncio"


async def no_enrichment(raw_text):
    return None


def static_enrichment(text):
    async def enrich(raw_text):
        return text

    return enrich


async def wait_until(predicate, timeout=2.0, step=0.001):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(step)


@pytest.fixture
async def make_engine():
    engines = []

    def _make(enrich=None, **kw):
        kw.setdefault("reveal_interval", 0.001)
        kw.setdefault("settle_delay", 0.005)
        engine = PrinterEngine(enrich or no_enrichment, **kw)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        await engine.aclose()


@pytest.fixture
async def engine(make_engine):
    return make_engine()


@pytest.fixture
async def async_client(engine):
    app = create_app(engine=engine)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
