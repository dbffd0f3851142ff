import asyncio

import pytest

from companion.core.voice import CaptureState
from companion.errors import CaptureBusy, InvalidTransition, PermissionDenied, TranscriptionFailed
from companion.services.microphone import BrowserMicrophone


class BrokenMicrophone:
    async def open(self):
        raise OSError("no input device")


@pytest.fixture
async def logged_in(companion):
    await companion.attempt_login("1234")
    return companion


async def test_voice_note_is_transcribed_and_prepended(logged_in, media):
    await logged_in.notes.add("typed earlier")
    voice = logged_in.voice

    await voice.start_recording(BrowserMicrophone())
    assert voice.state is CaptureState.RECORDING
    voice.push(b"webm-")
    voice.push(b"")
    assert voice.push(b"data") == 9

    note = await voice.stop_recording()

    assert voice.state is CaptureState.IDLE
    assert note.text == "[Voice Note] I felt lighter after the walk"
    assert logged_in.notes.list()[0] == note
    assert media.transcribed == [(b"webm-data", "audio/webm")]


async def test_denied_permission_stays_idle(logged_in, media):
    with pytest.raises(PermissionDenied):
        await logged_in.voice.start_recording(BrowserMicrophone(granted=False))
    assert logged_in.voice.state is CaptureState.IDLE
    assert media.calls["transcribe"] == 0


async def test_device_error_reports_permission_denied(logged_in):
    with pytest.raises(PermissionDenied):
        await logged_in.voice.start_recording(BrokenMicrophone())
    assert logged_in.voice.state is CaptureState.IDLE


async def test_only_one_capture_at_a_time(logged_in):
    await logged_in.voice.start_recording(BrowserMicrophone())
    with pytest.raises(CaptureBusy):
        await logged_in.voice.start_recording(BrowserMicrophone())


async def test_transcription_failure_adds_no_note(logged_in, media, collaborator_error):
    media.transcribe_error = collaborator_error
    await logged_in.voice.start_recording(BrowserMicrophone())
    logged_in.voice.push(b"clip")

    with pytest.raises(TranscriptionFailed):
        await logged_in.voice.stop_recording()

    assert logged_in.voice.state is CaptureState.IDLE
    assert logged_in.notes.list() == []
    # 다시 시도할 수 있다
    await logged_in.voice.start_recording(BrowserMicrophone())


async def test_stop_without_recording_is_rejected(logged_in):
    with pytest.raises(InvalidTransition):
        await logged_in.voice.stop_recording()
    with pytest.raises(InvalidTransition):
        logged_in.voice.push(b"x")


async def test_logout_closes_open_stream(logged_in):
    mic = BrowserMicrophone()
    await logged_in.voice.start_recording(mic)
    logged_in.voice.push(b"abc")
    await logged_in.logout()
    assert logged_in.voice.state is CaptureState.IDLE
    assert logged_in.voice.status().bytes_captured == 0


async def test_start_while_transcribing_is_rejected(logged_in, media):
    media.gate = asyncio.Event()
    voice = logged_in.voice
    await voice.start_recording(BrowserMicrophone())
    voice.push(b"clip")

    stopping = asyncio.create_task(voice.stop_recording())
    await asyncio.sleep(0)
    assert voice.state is CaptureState.TRANSCRIBING

    with pytest.raises(CaptureBusy):
        await voice.start_recording(BrowserMicrophone())

    media.gate.set()
    note = await stopping
    assert note.text.startswith("[Voice Note] ")
    assert voice.state is CaptureState.IDLE


async def test_switching_client_discards_pending_transcription(logged_in, media, store):
    media.gate = asyncio.Event()
    voice = logged_in.voice
    await voice.start_recording(BrowserMicrophone())
    voice.push(b"alex-private")
    stopping = asyncio.create_task(voice.stop_recording())
    await asyncio.sleep(0)

    await logged_in.attempt_login("4321")
    await voice.start_recording(BrowserMicrophone())
    voice.push(b"sam")

    media.gate.set()
    with pytest.raises(TranscriptionFailed):
        await stopping

    assert logged_in.notes.list() == []
    assert "spring_notes_2" not in store.data
    # 새 내담자의 녹음은 그대로 이어진다
    assert voice.state is CaptureState.RECORDING
    assert voice.status().bytes_captured == 3
    note = await voice.stop_recording()
    assert [n.text for n in logged_in.notes.list()] == [note.text]
    assert media.transcribed[-1][0] == b"sam"


async def test_logout_during_transcription_saves_nothing(logged_in, media, store):
    media.gate = asyncio.Event()
    voice = logged_in.voice
    await voice.start_recording(BrowserMicrophone())
    voice.push(b"clip")
    stopping = asyncio.create_task(voice.stop_recording())
    await asyncio.sleep(0)

    await logged_in.logout()
    media.gate.set()
    with pytest.raises(TranscriptionFailed):
        await stopping

    assert "spring_notes_1" not in store.data
    assert voice.state is CaptureState.IDLE
