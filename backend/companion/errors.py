# backend/companion/errors.py
from __future__ import annotations


class CompanionError(Exception):
    """사용자에게 그대로 보여줄 메시지를 가진 도메인 오류. 앱 상태는 이전 상태로 남는다."""
    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidCode(CompanionError):
    message = "Invalid access code. Please check with your therapist."

class NotAuthenticated(CompanionError):
    message = "Please enter your access code first."

class EmptyInput(CompanionError):
    message = "No notes found to summarize."

class SummaryUnavailable(CompanionError):
    message = "Failed to generate summary. Please try again."

class GenerationUnavailable(CompanionError):
    message = "Generation took a little long. Please try again or switch to Audio."

class TranscriptionFailed(CompanionError):
    message = "Transcription failed. Please try recording again."

class PermissionDenied(CompanionError):
    message = "Could not access microphone. Please check your browser permissions."

class LevelUnavailable(CompanionError):
    message = "This session level is not available."

class InvalidTransition(CompanionError):
    message = "That action is not available right now."

class CaptureBusy(CompanionError):
    message = "A recording is already in progress."
