"""Tests for TransferOrchestrator share and download flows."""

import asyncio
from unittest.mock import patch

import pytest

from bundlestore.object_store import BundleStore
from common.exceptions import (
    BundleItemNotFoundError,
    EmptySelectionError,
    ShareFailedError,
    StorageFullError,
)
from common.kv_store import MemoryKeyValueStore
from transfer.files import DirectorySink, LocalFileSource
from transfer.orchestrator import TransferOrchestrator

HOUR_MS = 60 * 60 * 1000


@pytest.fixture
def store(memory_kv, clock):
    return BundleStore(memory_kv, clock=clock)


@pytest.fixture
def orchestrator(store, clock):
    return TransferOrchestrator(
        store,
        app_url="https://share.example.com/app/?stale=1#frag",
        clock=clock,
        stagger_seconds=0,
    )


class TestShare:

    @pytest.mark.asyncio
    async def test_share_then_open(self, orchestrator, make_source, clock):
        sources = [make_source("a.txt", b"abc"), make_source("empty.bin", b"", mime_type="")]

        result = await orchestrator.share_files(sources)
        view = await orchestrator.open_locator(result.share_url)

        assert result.share_url == f"https://share.example.com/app?id={result.bundle.id}"
        assert result.bundle.expires_at - result.bundle.created_at == 24 * HOUR_MS
        assert [item.name for item in view.files] == ["a.txt", "empty.bin"]
        assert [item.decode() for item in view.files] == [b"abc", b""]
        assert [item.size for item in view.files] == [3, 0]
        assert result.summary() == "Shared Files (2 files, 3 Bytes)"
        assert view.summary() == "Available Files (2 files, 3 Bytes)"

    @pytest.mark.asyncio
    async def test_qr_url_encodes_share_url(self, orchestrator, make_source):
        result = await orchestrator.share_files([make_source("a.txt", b"abc")])

        assert result.qr_image_url.startswith(
            "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data=https%3A%2F%2F"
        )

    @pytest.mark.asyncio
    async def test_failed_file_skipped_with_warning(self, orchestrator, make_source):
        sources = [make_source("good.txt", b"ok"), make_source("bad.txt", b"", fail=True)]
        progress = []

        result = await orchestrator.share_files(sources, progress=progress.append)

        assert [item.name for item in result.bundle.items] == ["good.txt"]
        assert result.warnings == ("Error processing file: bad.txt",)
        assert progress == [50.0]

    @pytest.mark.asyncio
    async def test_all_files_failing_stores_nothing(self, orchestrator, make_source, memory_kv):
        with pytest.raises(ShareFailedError, match="Upload failed"):
            await orchestrator.share_files([make_source("bad", b"", fail=True)])

        assert await memory_kv.keys() == []

    @pytest.mark.asyncio
    async def test_empty_selection(self, orchestrator):
        with pytest.raises(EmptySelectionError):
            await orchestrator.share_files([])

    @pytest.mark.asyncio
    async def test_storage_full_propagates(self, clock, make_source):
        store = BundleStore(MemoryKeyValueStore(quota=100), clock=clock)
        orchestrator = TransferOrchestrator(store, app_url="http://app.test/", clock=clock)

        with pytest.raises(StorageFullError):
            await orchestrator.share_files([make_source("big.bin", b"x" * 500)])

    @pytest.mark.asyncio
    async def test_id_collision_redrawn(self, store, clock, make_source):
        ids = iter(["taken", "taken", "fresh"])
        orchestrator = TransferOrchestrator(
            store, app_url="http://app.test/", clock=clock, id_source=lambda: next(ids)
        )
        first = await orchestrator.share_files([make_source("a", b"1")])
        second = await orchestrator.share_files([make_source("b", b"2")])

        assert first.bundle.id == "taken"
        assert second.bundle.id == "fresh"

    @pytest.mark.asyncio
    async def test_local_files(self, orchestrator, sample_files):
        sources = [LocalFileSource.from_path(path) for path in sample_files]

        result = await orchestrator.share_files(sources)

        assert result.bundle.items[0].mime_type == "text/plain"
        assert result.bundle.total_size == 3


class TestOpen:

    @pytest.mark.asyncio
    async def test_expired_share_not_found(self, orchestrator, make_source, clock):
        result = await orchestrator.share_files([make_source("a", b"1")])
        clock.advance(24 * HOUR_MS + 1)

        assert await orchestrator.open_bundle(result.bundle.id) is None

    @pytest.mark.asyncio
    async def test_locator_without_id(self, orchestrator):
        assert await orchestrator.open_locator("https://share.example.com/app") is None

    @pytest.mark.asyncio
    async def test_unknown_id(self, orchestrator):
        assert await orchestrator.open_locator("https://share.example.com/app?id=nope") is None


class TestDownload:

    @pytest.mark.asyncio
    async def test_download_single_file(self, orchestrator, make_source, tmp_path):
        result = await orchestrator.share_files([make_source("a.txt", b"abc")])
        view = await orchestrator.open_bundle(result.bundle.id)

        path = orchestrator.download_file(view, 0, DirectorySink(tmp_path / "out"))

        assert path.read_bytes() == b"abc"
        assert path.name == "a.txt"

    @pytest.mark.asyncio
    async def test_download_out_of_range(self, orchestrator, make_source, tmp_path):
        result = await orchestrator.share_files([make_source("a.txt", b"abc")])
        view = await orchestrator.open_bundle(result.bundle.id)

        with pytest.raises(BundleItemNotFoundError, match="File not found for download"):
            orchestrator.download_file(view, 1, DirectorySink(tmp_path))

    @pytest.mark.asyncio
    async def test_download_all_delivers_every_file(self, orchestrator, make_source, tmp_path):
        sources = [make_source("same.txt", b"one"), make_source("same.txt", b"two")]
        result = await orchestrator.share_files(sources)
        view = await orchestrator.open_bundle(result.bundle.id)
        out = tmp_path / "out"

        delivered = await orchestrator.download_all(view, DirectorySink(out))

        assert delivered == 2
        assert sorted(p.name for p in out.iterdir()) == ["same (1).txt", "same.txt"]
        assert sorted(p.read_bytes() for p in out.iterdir()) == [b"one", b"two"]

    @pytest.mark.asyncio
    async def test_download_all_staggers_items(self, orchestrator, make_source, tmp_path):
        sources = [make_source(f"f{i}", b"x") for i in range(3)]
        result = await orchestrator.share_files(sources)
        view = await orchestrator.open_bundle(result.bundle.id)
        delays = []

        real_sleep = asyncio.sleep

        async def record_sleep(seconds):
            delays.append(seconds)
            await real_sleep(0)

        with patch("transfer.orchestrator.asyncio.sleep", side_effect=record_sleep):
            await orchestrator.download_all(view, DirectorySink(tmp_path), stagger_seconds=0.5)

        assert sorted(delays) == [0.0, 0.5, 1.0]

    @pytest.mark.asyncio
    async def test_download_all_survives_unexpected_sink_error(
        self, orchestrator, make_source, tmp_path
    ):
        sources = [make_source(name, b"x") for name in ("a.txt", "broken.txt", "c.txt")]
        result = await orchestrator.share_files(sources)
        view = await orchestrator.open_bundle(result.bundle.id)

        class FlakySink(DirectorySink):
            def deliver(self, name, data):
                if name == "broken.txt":
                    raise RuntimeError("sink exploded")
                return super().deliver(name, data)

        out = tmp_path / "out"
        delivered = await orchestrator.download_all(view, FlakySink(out))

        assert delivered == 2
        assert sorted(p.name for p in out.iterdir()) == ["a.txt", "c.txt"]


class TestDirectorySink:

    def test_strips_directory_components(self, tmp_path):
        path = DirectorySink(tmp_path).deliver("../../etc/passwd", b"x")
        assert path == tmp_path / "passwd"

    def test_empty_name_gets_default(self, tmp_path):
        path = DirectorySink(tmp_path).deliver("", b"x")
        assert path.name == "download"
