"""Tests for the middleware chain."""

from .fakes import make_session


def recorder(order, name, call_next=True):
    async def middleware(bot, session, next_):
        order.append(name)
        if call_next:
            return await next_()
        return name

    return middleware


async def test_runs_in_order(chain, bot):
    order = []
    chain.use(recorder(order, "a"))
    chain.use(recorder(order, "b"))

    await chain.run(bot, make_session("hi"))
    assert order == ["a", "b"]


async def test_prepend(chain, bot):
    order = []
    chain.use(recorder(order, "a"))
    chain.use(recorder(order, "first"), prepend=True)

    await chain.run(bot, make_session("hi"))
    assert order == ["first", "a"]


async def test_stops_without_next(chain, bot):
    order = []
    chain.use(recorder(order, "a", call_next=False))
    chain.use(recorder(order, "b"))

    assert await chain.run(bot, make_session("hi")) == "a"
    assert order == ["a"]


async def test_remove(chain, bot):
    order = []
    remove = chain.use(recorder(order, "a"))
    chain.use(recorder(order, "b"))
    remove()
    remove()

    await chain.run(bot, make_session("hi"))
    assert order == ["b"]
    assert len(chain) == 1


async def test_empty_chain(chain, bot):
    assert await chain.run(bot, make_session("hi")) is None
