import pytest

from backend.naverland.config import ScraperSettings
from backend.naverland.errors import SessionAcquireError
from backend.naverland.session import BrowserSession

from conftest import FakeBrowser, FakeUpstream, fake_launcher


async def test_acquire_release_cycle():
    browser = FakeBrowser()
    session = BrowserSession(ScraperSettings(), transport=FakeUpstream().transport(), browser_launcher=fake_launcher(browser))
    assert not session.live
    await session.acquire()
    assert session.live
    assert session.browser is browser
    client = session.client
    await session.release()
    assert not session.live
    assert session.browser is None
    assert browser.closed
    assert client.is_closed


async def test_release_without_session_is_noop():
    session = BrowserSession(ScraperSettings(browser_fallback=False))
    await session.release()
    await session.release()
    assert not session.live


async def test_second_acquire_reuses_live_session():
    launches = []

    async def launcher(settings):
        launches.append(settings)
        return None, FakeBrowser()

    session = BrowserSession(ScraperSettings(), transport=FakeUpstream().transport(), browser_launcher=launcher)
    await session.acquire()
    first_client = session.client
    await session.acquire()
    assert session.client is first_client
    assert len(launches) == 1
    await session.release()


async def test_browser_launch_failure_is_fatal_and_leaves_nothing_open():
    async def broken(settings):
        raise RuntimeError("chromium missing")

    session = BrowserSession(ScraperSettings(), transport=FakeUpstream().transport(), browser_launcher=broken)
    with pytest.raises(SessionAcquireError, match="chromium missing"):
        await session.acquire()
    assert not session.live


async def test_no_browser_when_fallback_disabled():
    async def never(settings):
        raise AssertionError("should not launch")

    session = BrowserSession(ScraperSettings(browser_fallback=False), transport=FakeUpstream().transport(), browser_launcher=never)
    await session.acquire()
    assert session.browser is None
    await session.release()


async def test_region_context_is_closed_on_error():
    browser = FakeBrowser()
    session = BrowserSession(ScraperSettings(), transport=FakeUpstream().transport(), browser_launcher=fake_launcher(browser))
    await session.acquire()
    with pytest.raises(ValueError):
        async with session.region_context():
            raise ValueError("navigation blew up")
    assert browser.contexts[0].closed
    await session.release()


def test_client_before_acquire_raises():
    session = BrowserSession(ScraperSettings(browser_fallback=False))
    with pytest.raises(RuntimeError):
        session.client
