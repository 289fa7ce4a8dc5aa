"""Tests for BibleService and the module-level API."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

import bibleplan
from bibleplan import service as service_module
from bibleplan.config import Settings
from bibleplan.fetcher import ERROR_MARKER
from bibleplan.plan import ChapterReference
from bibleplan.provider import BibliaApiProvider, ProviderError
from bibleplan.service import BibleService, get_service, reset_service


@pytest.fixture
def make_service(make_provider):
    """Factory for services over a fake provider, "today" fixed at 2026-02-20."""

    def _make(provider=None, settings=None):
        return BibleService(
            settings=settings or Settings(),
            provider=provider or make_provider(),
            today=lambda: date(2026, 2, 20),
        )

    return _make


@pytest.fixture
def default_service(tmp_path, monkeypatch):
    """Reset the shared default service around a test."""
    monkeypatch.setenv("BIBLEPLAN_CONFIG", str(tmp_path / "missing.yaml"))
    reset_service()
    yield
    reset_service()


class TestBibleService:
    """Tests for BibleService wiring."""

    def test_defaults_from_settings(self):
        """Provider and cache are built from settings."""
        settings = Settings(
            provider_base_url="https://example.test/api",
            provider_timeout=3.0,
            cache_max_entries=50,
            cache_ttl_seconds=600,
        )
        service = BibleService(settings=settings)

        assert isinstance(service.provider, BibliaApiProvider)
        assert service.provider.base_url == "https://example.test/api"
        assert service.provider.timeout == 3.0
        assert service.cache.max_entries == 50
        assert service.cache.ttl_seconds == 600
        assert service.fetcher.cache is service.cache

    def test_today_reference(self, make_service):
        """Today's reference uses the injected clock."""
        service = make_service()
        assert service.today_reference() == ChapterReference("Exodo", 1)
        assert service.today_reference(date(2026, 1, 1)) == ChapterReference(
            "Genesis", 1
        )

    def test_today_reference_custom_start(self, make_service):
        """The start date comes from settings."""
        service = make_service(settings=Settings(start_date=date(2026, 2, 19)))
        assert service.today_reference() == ChapterReference("Genesis", 2)

    @pytest.mark.asyncio
    async def test_fetch_todays_chapter(self, make_service, make_provider):
        """Fetching without arguments returns today's chapter."""
        provider = make_provider()
        service = make_service(provider)

        content = await service.fetch_chapter()

        assert content.reference == "Exodo 1"
        assert provider.calls == [("exodo", 1)]

    @pytest.mark.asyncio
    async def test_get_verse_text(self, make_service):
        text = await make_service().get_verse_text("Fil.", 4, "2")
        assert text == "[2] filipenses 4 segundo verso"

    @pytest.mark.asyncio
    async def test_clear_cache(self, make_service, make_provider):
        """clear_cache() forces the next fetch to hit the provider."""
        provider = make_provider()
        service = make_service(provider)

        await service.fetch_chapter("Juan", 1)
        service.clear_cache()
        await service.fetch_chapter("Juan", 1)

        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_context_manager_closes_provider(self, make_service, make_provider):
        """Leaving the context closes the provider."""
        provider = make_provider()

        async with make_service(provider) as service:
            await service.fetch_chapter("Juan", 1)

        assert provider.closed


class TestLookup:
    """Tests for BibleService.lookup()."""

    @pytest.mark.asyncio
    async def test_single_verse(self, make_service):
        """A verse query returns just that verse."""
        result = await make_service().lookup("Juan 3:2")

        assert result.ok
        assert result.reference == "Juan 3:2"
        assert result.text == "[2] juan 3 segundo verso"

    @pytest.mark.asyncio
    async def test_whole_chapter(self, make_service):
        """A query without verses returns the whole chapter."""
        result = await make_service().lookup("Sal 23")

        assert result.ok
        assert result.reference == "Salmos 23"
        assert result.text.startswith("[1] salmos 23 primer verso")

    @pytest.mark.asyncio
    async def test_verse_range(self, make_service):
        result = await make_service().lookup("1 Cor 13:2-3")
        assert result.text == (
            "[2] 1 corintios 13 segundo verso\n[3] 1 corintios 13 tercer verso"
        )

    @pytest.mark.asyncio
    async def test_invalid_query(self, make_service, make_provider):
        """Bad queries come back as errors without a fetch."""
        provider = make_provider()
        result = await make_service(provider).lookup("Tobías 1")

        assert not result.ok
        assert "no fue encontrado" in result.error
        assert result.text == result.error
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_fetch_failure(self, make_service, make_provider):
        """Fetch failures come back as errors, not exceptions."""
        provider = make_provider(error=ProviderError("Sin red"))
        result = await make_service(provider).lookup("Juan 3:16")

        assert not result.ok
        assert result.error == "Sin red"
        assert result.reference == "Juan 3:16"
        assert result.text.startswith(ERROR_MARKER)

    @pytest.mark.asyncio
    async def test_missing_verse(self, make_service):
        result = await make_service().lookup("Juan 3:16")

        assert result.ok
        assert result.text == "Los versículos 16 no se encontraron en Juan 3."


class TestDefaultService:
    """Tests for the module-level functions."""

    @pytest.mark.asyncio
    async def test_module_functions_use_installed_service(
        self, default_service, make_service, make_provider
    ):
        """Module-level functions go through the installed service."""
        provider = make_provider()
        reset_service(make_service(provider))

        content = await service_module.fetch_chapter("Juan", 3)
        verses = await service_module.get_verse_text("Juan", 3, "1")
        result = await service_module.lookup("Juan 3:3")

        assert content.reference == "Juan 3"
        assert verses == "[1] juan 3 primer verso"
        assert result.text == "[3] juan 3 tercer verso"
        assert provider.calls == [("juan", 3)]
        assert service_module.today_reference() == ChapterReference("Exodo", 1)

    def test_created_lazily_and_reused(self, default_service):
        """The default service is created once and reused."""
        first = get_service()
        assert get_service() is first
        assert isinstance(first.provider, BibliaApiProvider)

    def test_invalid_environment_falls_back_to_defaults(
        self, default_service, monkeypatch, caplog
    ):
        """A bad BIBLEPLAN_* value is logged and the defaults are used."""
        monkeypatch.setenv("BIBLEPLAN_START_DATE", "not-a-date")

        service = get_service()

        assert service.settings.start_date == Settings().start_date
        assert "Invalid configuration" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_config_file_does_not_break_fetch(
        self, default_service, tmp_path, monkeypatch
    ):
        """Module-level operations never raise for configuration errors."""
        path = tmp_path / "config.yaml"
        path.write_text("colour: blue\n", encoding="utf-8")
        monkeypatch.setenv("BIBLEPLAN_CONFIG", str(path))

        service = get_service()
        assert service.settings.start_date == Settings().start_date

        result = await service_module.lookup("Tobías 1")
        assert not result.ok

    def test_default_service_across_event_loops(self, default_service, chapter_server):
        """Separate asyncio.run() calls share the default service."""
        reset_service(BibleService(Settings(provider_base_url=chapter_server)))

        first = asyncio.run(service_module.fetch_chapter("Juan", 1))
        second = asyncio.run(service_module.fetch_chapter("Juan", 2))

        assert first.ok
        assert second.ok
        assert second.reference == "juan 2"

    def test_reset_recreates(self, default_service):
        first = get_service()
        reset_service()
        assert get_service() is not first

    def test_package_exports(self):
        assert bibleplan.resolve_book_name("Fil.") == "Filipenses"
        assert bibleplan.get_chapter_for_date(date(2026, 2, 20)) == (
            ChapterReference("Exodo", 1)
        )
