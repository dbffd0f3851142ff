import json

import pytest

from companion.errors import LevelUnavailable


async def test_mark_complete_is_idempotent(companion, store):
    await companion.attempt_login("1234")
    await companion.progress.mark_complete(2)
    await companion.progress.mark_complete(2)

    state = companion.progress.state
    assert (state.wholeness1, state.wholeness2, state.wholeness3) == (False, True, False)
    assert json.loads(store.data["spring_completions_1"]) == {
        "wholeness1": False, "wholeness2": True, "wholeness3": False,
    }


@pytest.mark.parametrize("completed", [[], [1], [1, 3], [1, 2, 3]])
async def test_reset_all_clears_every_level(companion, store, completed):
    await companion.attempt_login("1234")
    for level in completed:
        await companion.progress.mark_complete(level)

    await companion.progress.reset_all()

    assert not any(companion.progress.is_complete(level) for level in (1, 2, 3))
    assert json.loads(store.data["spring_completions_1"]) == {
        "wholeness1": False, "wholeness2": False, "wholeness3": False,
    }


@pytest.mark.parametrize("level", [0, 4, -1])
async def test_levels_outside_range_are_rejected(companion, level):
    await companion.attempt_login("1234")
    with pytest.raises(LevelUnavailable):
        await companion.progress.mark_complete(level)
    with pytest.raises(LevelUnavailable):
        companion.progress.is_complete(level)


async def test_state_is_not_shared_between_clients(companion):
    await companion.attempt_login("1234")
    await companion.progress.mark_complete(1)
    await companion.logout()
    await companion.attempt_login("5555")
    assert not companion.progress.is_complete(1)
