"""Worker task tests with the Redis run lock stubbed out."""
from contextlib import asynccontextmanager
from unittest import mock

import httpx
import respx

from fileguard.core.config import settings
from fileguard.worker import tasks
from fileguard.worker.run_lock import root_lock

from tests.conftest import MANIFEST_URL, md5, write_tree


def fake_lock(acquired: bool):
    @asynccontextmanager
    async def _lock(root, redis=None):
        yield acquired

    return _lock


def fake_redis(acquired: bool):
    lock = mock.Mock()
    lock.acquire = mock.AsyncMock(return_value=acquired)
    lock.release = mock.AsyncMock()
    redis = mock.Mock()
    redis.lock.return_value = lock
    return redis, lock


class TestRootLock:
    async def test_releases_after_run(self, site):
        redis, lock = fake_redis(True)
        async with root_lock(str(site), redis=redis) as acquired:
            assert acquired
        lock.acquire.assert_awaited_once_with(blocking=False)
        lock.release.assert_awaited_once()
        assert redis.lock.call_args.kwargs["timeout"] == settings.RUN_LOCK_TIMEOUT_SECONDS

    async def test_same_root_same_lock_name(self, site):
        redis, _ = fake_redis(False)
        async with root_lock(str(site), redis=redis) as acquired:
            assert not acquired
        async with root_lock(str(site / "."), redis=redis):
            pass
        first, second = (call.args[0] for call in redis.lock.call_args_list)
        assert first == second

    async def test_not_acquired_is_not_released(self, site):
        redis, lock = fake_redis(False)
        async with root_lock(str(site), redis=redis):
            pass
        lock.release.assert_not_awaited()


class TestPerformIntegrityCheck:
    async def test_skips_when_locked(self, site, sink, monkeypatch):
        monkeypatch.setattr(tasks, "root_lock", fake_lock(False))
        assert await tasks.perform_integrity_check(str(site), store=sink) is None
        assert sink.saves == 0

    @respx.mock
    async def test_runs_and_persists(self, site, sink, monkeypatch):
        monkeypatch.setattr(tasks, "root_lock", fake_lock(True))
        write_tree(site, {"index.php": b"<?php", "shell.php": b"<?php"})
        respx.get(MANIFEST_URL).mock(
            return_value=httpx.Response(200, json={"checksums": {"index.php": md5(b"<?php")}})
        )

        report = await tasks.perform_integrity_check(str(site), store=sink)

        assert report.unknown_files == ["shell.php"]
        assert sink.saves == 1

    async def test_notifies_on_findings(self, site, sink, monkeypatch):
        monkeypatch.setattr(tasks, "root_lock", fake_lock(True))
        notifier = mock.Mock()
        notifier.send = mock.AsyncMock(return_value=True)
        monkeypatch.setattr(tasks.EmailNotifier, "from_settings", classmethod(lambda cls: notifier))
        write_tree(site, {"shell.php": b"<?php"})

        with respx.mock:
            respx.get(MANIFEST_URL).mock(
                return_value=httpx.Response(200, json={"checksums": {"index.php": md5(b"<?php")}})
            )
            report = await tasks.perform_integrity_check(str(site), store=sink)

        notifier.send.assert_awaited_once_with(report)
