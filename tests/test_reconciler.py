import threading
import time

from mpl.errors import ConnectError, PatchError
from mpl.labeler import PrimaryLabeler
from mpl.mongo import StaticPrimaryResolver
from mpl.reconciler import Reconciler


class RecordingLabeler:
    def __init__(self, error=None, block=None):
        self.calls = []
        self.error = error
        self.block = block

    def sync(self, primary):
        self.calls.append(primary)
        if self.block is not None:
            self.block.wait(2)
        if self.error is not None:
            raise self.error
        return []


def test_run_once_converges_labels(mongo_pods, make_settings, test_logger):
    labeler = PrimaryLabeler(mongo_pods, make_settings(label_all=True), logger=test_logger)
    rec = Reconciler(StaticPrimaryResolver("mongo-1"), labeler, logger=test_logger)

    assert rec.run_once() is True
    assert mongo_pods.primary_labels() == {"mongo-0": "false", "mongo-1": "true", "mongo-2": "false"}


def test_resolver_failure_skips_sync_and_touches_no_pods(mongo_pods, make_settings, test_logger, caplog):
    labeler = PrimaryLabeler(mongo_pods, make_settings(), logger=test_logger)
    rec = Reconciler(StaticPrimaryResolver(error=ConnectError("mongo unavailable")), labeler, logger=test_logger)

    with caplog.at_level("ERROR", logger="mpl-tests"):
        assert rec.run_once() is False

    assert mongo_pods.actions == []
    assert any("mongo unavailable" in r.getMessage() for r in caplog.records if r.levelname == "ERROR")


def test_sync_failure_is_logged_not_raised(test_logger, caplog):
    labeler = RecordingLabeler(error=PatchError("mongo-1", RuntimeError("boom")))
    rec = Reconciler(StaticPrimaryResolver("mongo-1"), labeler, logger=test_logger)

    with caplog.at_level("ERROR", logger="mpl-tests"):
        assert rec.run_once() is False
        assert rec.run_once() is False

    assert labeler.calls == ["mongo-1", "mongo-1"]
    assert sum("mongo-1" in r.getMessage() for r in caplog.records) == 2


def test_unexpected_error_does_not_escape(test_logger):
    labeler = RecordingLabeler(error=KeyError("surprise"))
    rec = Reconciler(StaticPrimaryResolver("mongo-1"), labeler, logger=test_logger)
    assert rec.run_once() is False


def test_overlapping_cycles_are_skipped(test_logger):
    release = threading.Event()
    labeler = RecordingLabeler(block=release)
    rec = Reconciler(StaticPrimaryResolver("mongo-1"), labeler, logger=test_logger)

    worker = threading.Thread(target=rec.run_once)
    worker.start()
    deadline = time.time() + 2
    while not labeler.calls and time.time() < deadline:
        time.sleep(0.01)

    assert rec.run_once() is False
    release.set()
    worker.join(2)
    assert labeler.calls == ["mongo-1"]


def test_loop_runs_until_stopped(test_logger):
    resolver = StaticPrimaryResolver("mongo-1")
    labeler = RecordingLabeler()
    rec = Reconciler(resolver, labeler, interval_s=0.01, logger=test_logger)

    rec.start()
    deadline = time.time() + 2
    while len(labeler.calls) < 3 and time.time() < deadline:
        time.sleep(0.01)
    rec.stop()
    rec.join(2)

    assert rec.stopped
    assert len(labeler.calls) >= 3
    assert resolver.calls == len(labeler.calls)


def test_loop_keeps_going_after_failures(test_logger):
    resolver = StaticPrimaryResolver(error=ConnectError("down"))
    labeler = RecordingLabeler()
    rec = Reconciler(resolver, labeler, interval_s=0.01, logger=test_logger)

    rec.start()
    deadline = time.time() + 2
    while resolver.calls < 3 and time.time() < deadline:
        time.sleep(0.01)
    rec.stop()
    rec.join(2)

    assert resolver.calls >= 3
    assert labeler.calls == []
