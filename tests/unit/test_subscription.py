"""Unit tests for Subscription handles."""

import pytest

from fluxion import Subscription, as_releasable


@pytest.mark.unit
class TestSubscription:
    def test_teardowns_run_once_in_order(self):
        calls = []
        subscription = Subscription(lambda: calls.append("first"))
        subscription.add(lambda: calls.append("second"))

        subscription.release()
        subscription.release()

        assert calls == ["first", "second"]
        assert subscription.closed

    def test_add_after_release_runs_teardown_immediately(self):
        calls = []
        subscription = Subscription()
        subscription.release()

        subscription.add(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_nested_subscriptions_release_together(self):
        inner = Subscription()
        outer = Subscription()
        outer.add(inner)

        outer.release()

        assert inner.closed

    def test_add_none_is_ignored(self):
        subscription = Subscription()
        subscription.add(None)

        subscription.release()

    def test_remove_forgets_teardown(self):
        calls = []

        def teardown():
            calls.append("ran")

        subscription = Subscription(teardown)
        subscription.remove(teardown)
        subscription.remove(teardown)
        subscription.release()

        assert calls == []

    def test_failing_teardown_does_not_stop_others(self, caplog):
        calls = []

        def broken():
            raise RuntimeError("teardown failed")

        subscription = Subscription(broken)
        subscription.add(lambda: calls.append("after"))

        with caplog.at_level("ERROR", logger="fluxion.subscription"):
            subscription.release()

        assert calls == ["after"]
        assert "teardown failed" in caplog.text

    def test_context_manager_releases_on_exit(self):
        calls = []
        with Subscription(lambda: calls.append("released")):
            assert calls == []

        assert calls == ["released"]

    def test_unsubscribe_alias(self):
        subscription = Subscription()
        subscription.unsubscribe()

        assert subscription.closed


@pytest.mark.unit
class TestAsReleasable:
    def test_returns_subscription_unchanged(self):
        subscription = Subscription()

        assert as_releasable(subscription) is subscription

    def test_adapts_disposable(self):
        class Disposable:
            disposed = 0

            def dispose(self):
                self.disposed += 1

        handle = Disposable()
        subscription = as_releasable(handle)
        subscription.release()
        subscription.release()

        assert handle.disposed == 1

    def test_adapts_unsubscribe_function(self):
        calls = []

        subscription = as_releasable(lambda: calls.append("unsubscribed"))
        subscription.release()

        assert calls == ["unsubscribed"]

    def test_none_gives_empty_subscription(self):
        subscription = as_releasable(None)
        subscription.release()

        assert subscription.closed

    def test_rejects_unreleasable_object(self):
        with pytest.raises(TypeError):
            as_releasable(42)
