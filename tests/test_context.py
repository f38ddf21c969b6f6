import time

from email_dispatch.transport.context import (
    Cancelled,
    Context,
    DeadlineExceeded,
    background,
    with_timeout,
)


def test_background_never_expires() -> None:
    ctx = background()
    assert ctx.err() is None
    assert not ctx.done()
    assert ctx.remaining() is None


def test_cancel() -> None:
    ctx = background()
    ctx.cancel()
    assert isinstance(ctx.err(), Cancelled)
    assert str(ctx.err()) == "context canceled"


def test_deadline_exceeded() -> None:
    ctx = with_timeout(0)
    assert ctx.done()
    assert isinstance(ctx.err(), DeadlineExceeded)
    assert ctx.remaining() == 0.0


def test_child_inherits_earlier_deadline() -> None:
    parent = with_timeout(1)
    child = with_timeout(60, parent=parent)
    assert child.deadline == parent.deadline
    remaining = child.remaining()
    assert remaining is not None and remaining <= 1


def test_child_sees_parent_cancellation() -> None:
    parent = background()
    child = Context(deadline=time.monotonic() + 60, parent=parent)
    parent.cancel()
    assert isinstance(child.err(), Cancelled)
