import pytest

from castfetch.shared.cancellation import CancellationToken, subscription


def test_listeners_fire_once_on_first_cancel() -> None:
    token = CancellationToken()
    calls: list[str] = []
    token.on_cancel(lambda: calls.append("a"))
    token.on_cancel(lambda: calls.append("b"))

    assert token.cancel() is True
    assert token.cancel() is False

    assert calls == ["a", "b"]
    assert token.is_cancelled()
    assert token.listener_count == 0


def test_listener_registered_after_cancel_fires_immediately() -> None:
    token = CancellationToken()
    token.cancel()
    calls: list[int] = []

    token.on_cancel(lambda: calls.append(1))

    assert calls == [1]


def test_removed_listener_is_not_called() -> None:
    token = CancellationToken()
    calls: list[int] = []

    def listener() -> None:
        calls.append(1)

    token.on_cancel(listener)
    token.off_cancel(listener)
    token.off_cancel(listener)
    token.cancel()

    assert calls == []


def test_failing_listener_does_not_block_others() -> None:
    token = CancellationToken()
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("listener down")

    token.on_cancel(broken)
    token.on_cancel(lambda: calls.append("after"))
    token.cancel()

    assert calls == ["after"]


def test_subscription_deregisters_on_error() -> None:
    token = CancellationToken()

    with pytest.raises(RuntimeError):
        with subscription(token, lambda: None):
            assert token.listener_count == 1
            raise RuntimeError("boom")

    assert token.listener_count == 0


def test_subscription_without_handle_is_a_noop() -> None:
    with subscription(None, lambda: None):
        pass
