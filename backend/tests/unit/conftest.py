"""Board fixtures backed by the in-memory store."""

import pytest

from taskboard.board.board import TaskBoard
from taskboard.board.cache import LocalCache
from taskboard.board.optimistic import OptimisticEngine


@pytest.fixture
def project(fake_store):
    return fake_store.add_project("Website Redesign")


@pytest.fixture
def cache(clock):
    return LocalCache(clock=clock)


@pytest.fixture
def engine(notifier):
    return OptimisticEngine(notifier, timeout=1.0)


@pytest.fixture
async def board(fake_store, project, engine, cache, mirror):
    """A loaded board.

    todo: a(0), b(1000), c(2000); in-progress: d(0); review and done empty.
    """
    fake_store.add_task(project.id, "Task A", id="a", order=0)
    fake_store.add_task(project.id, "Task B", id="b", order=1000)
    fake_store.add_task(project.id, "Task C", id="c", order=2000)
    fake_store.add_task(project.id, "Task D", id="d", status="in-progress", order=0)
    board = TaskBoard(project.id, fake_store, engine, cache, mirror)
    await board.load()
    yield board
    await engine.aclose()
