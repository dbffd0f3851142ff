# backend/companion/config.py
from __future__ import annotations
import os
from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ASYNC_DB_URL = os.getenv("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///./companion.db")
STATIC_DIR = os.getenv(
    "STATIC_DIR",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "static"),
)
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]
CLIENT_DIRECTORY_FILE = os.getenv("CLIENT_DIRECTORY_FILE")

# 오디오 출력 장치 규격 (TTS 원시 PCM)
PCM_SAMPLE_RATE = 24000
PCM_CHANNELS = 1

LOADING_MESSAGE_INTERVAL_SEC = 3.0
INITIAL_LOADING_MESSAGE = "Centering your focus..."
LOADING_MESSAGES = [
    "Finding your inner stillness...",
    "Creating a peaceful space for you...",
    "Almost ready to begin...",
    "Taking a deep breath together...",
]

# --- 프롬프트 ---
LEVEL_FOCUS = {
    1: "Focus on your breath. Inhale calm, exhale tension.",
    2: "Notice the space around you. Feel the quiet strength within your core.",
    3: "You are whole and complete as you are. Carry this peace into your day.",
}

AUDIO_PROMPT_TEMPLATE = (
    'Narrate a short mindfulness exercise for the theme "{theme}". '
    'Focus on: "{focus}". Speak slowly and gently.'
)
AUDIO_VOICE_INSTRUCTIONS = "Speak slowly, softly and warmly, like a calm meditation guide."

VIDEO_PROMPTS = {
    "Peace": "A slow-motion close-up of sunlight filtering through lush green leaves, "
             "gentle breeze, ethereal atmosphere, 4k cinematic.",
    "Compassion": "A glowing, warm golden light radiating softly from a blooming lotus flower "
                  "on calm water, peaceful, high quality.",
    "Resilience": "An ancient, sturdy mountain peak during a soft sunrise, wispy clouds moving "
                  "slowly, majestic and stable, 4k.",
}
VIDEO_FALLBACK_PROMPT = "A relaxing abstract flow of colors and light"

SUMMARY_SYSTEM_PROMPT = "You are an empathetic therapy assistant."
SUMMARY_PROMPT_TEMPLATE = """Below are my therapy notes and reflections for the timeframe: "{range_label}".
Please provide a thoughtful, encouraging summary of my themes, progress, and areas of focus.
Keep the tone supportive and concise (max 200 words). Use bullet points for key insights if helpful.

NOTES:
{notes_text}"""
SUMMARY_FALLBACK_TEXT = "I couldn't generate a summary at this time."
TRANSCRIBE_FALLBACK_TEXT = "No transcription available."
