import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from redis_store import RedisStore
from screening.models import Question


class InMemoryRedis:
    """Just enough of redis.Redis (decode_responses=True) for RedisStore."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


class FakeLLM:
    """Chat model double: returns queued replies, or raises a queued exception."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=reply)


def make_question(qid=1, category="memory", difficulty="medium", q_type="text",
                  correct="A", config=None):
    return Question(
        id=qid,
        type=q_type,
        category=category,
        skill_tested="recall",
        prompt=f"Question {qid}",
        options=("A", "B", "C", "D") if q_type in ("text", "visual", "audio") else ("Completed",),
        correct_answer=correct if q_type in ("text", "visual", "audio") else "Completed",
        difficulty=difficulty,
        config=config or {},
    )


@pytest.fixture
def redis_client():
    return InMemoryRedis()


@pytest.fixture
def store_clock():
    """Seconds clock for question-cache freshness."""
    return SimpleNamespace(now=1_700_000_000.0)


@pytest.fixture
def store(redis_client, store_clock):
    return RedisStore(client=redis_client, clock=lambda: store_clock.now)


@pytest.fixture
def clock():
    return FakeClock()
