import json

import pytest

from companion.core.storage import REMEMBERED_CODE_KEY
from companion.errors import InvalidCode, NotAuthenticated
from companion.schemas import AppTab


async def test_login_with_directory_code(companion, store):
    client = await companion.attempt_login("1234")

    assert client.name == "Alex Johnson"
    assert companion.client == client
    assert store.data[REMEMBERED_CODE_KEY] == "1234"


async def test_login_is_case_insensitive_and_trims(companion):
    client = await companion.attempt_login("  4321 ")
    assert client.name == "Sam Taylor"


async def test_wrong_code_raises_and_leaves_no_session(companion, store):
    with pytest.raises(InvalidCode) as exc:
        await companion.attempt_login("abcd")

    assert "Invalid access code" in exc.value.message
    assert companion.client is None
    assert REMEMBERED_CODE_KEY not in store.data


async def test_wrong_code_keeps_existing_session(companion):
    await companion.attempt_login("1234")
    with pytest.raises(InvalidCode):
        await companion.attempt_login("0000")
    assert companion.client.id == "1"


async def test_login_twice_does_not_duplicate_notes(companion):
    await companion.attempt_login("1234")
    await companion.notes.add("first reflection")

    again = await companion.attempt_login("1234")

    assert again.id == "1"
    assert [n.text for n in companion.notes.list()] == ["first reflection"]


async def test_login_hydrates_client_records(companion, store):
    store.data["spring_notes_2"] = json.dumps([{"id": "5", "text": "saved", "timestamp": 5}])
    store.data["spring_completions_2"] = json.dumps({"wholeness1": False, "wholeness2": True, "wholeness3": False})
    store.data["spring_growth_outcome_2"] = "Speak up in meetings"

    await companion.attempt_login("4321")

    assert [n.text for n in companion.notes.list()] == ["saved"]
    assert companion.progress.is_complete(2)
    assert not companion.progress.is_complete(1)
    assert companion.growth_outcome == "Speak up in meetings"


async def test_restore_session_with_remembered_code(companion, store):
    store.data[REMEMBERED_CODE_KEY] = "5555"
    restored = await companion.restore_session()
    assert restored.name == "Jordan Lee"
    assert companion.client.id == "3"


async def test_restore_session_with_stale_code_starts_signed_out(companion, store):
    store.data[REMEMBERED_CODE_KEY] = "9999"
    assert await companion.restore_session() is None
    assert companion.client is None


async def test_restore_session_without_code(companion):
    assert await companion.restore_session() is None


async def test_logout_resets_everything(companion, store):
    await companion.attempt_login("1234")
    await companion.notes.add("hello")
    await companion.progress.mark_complete(1)
    await companion.set_growth_outcome("Rest more")
    companion.set_tab(AppTab.HISTORY)

    await companion.logout()

    assert companion.client is None
    assert companion.notes.list() == []
    assert not companion.progress.is_complete(1)
    assert companion.growth_outcome == ""
    assert companion.active_tab is AppTab.TODAY
    assert REMEMBERED_CODE_KEY not in store.data
    # 기록 자체는 남아 있어 다시 로그인하면 복원된다
    await companion.attempt_login("1234")
    assert [n.text for n in companion.notes.list()] == ["hello"]
    assert companion.growth_outcome == "Rest more"


async def test_growth_outcome_requires_client(companion):
    with pytest.raises(NotAuthenticated):
        await companion.set_growth_outcome("anything")


async def test_growth_outcome_last_write_wins(companion, store):
    await companion.attempt_login("1234")
    await companion.set_growth_outcome("one")
    await companion.set_growth_outcome("two")
    assert store.data["spring_growth_outcome_1"] == "two"
