import os
from dotenv import load_dotenv

load_dotenv()

# CMS / site configuration
# CMS_BASE_URL serves the post, task, video, file-upload and email APIs.
CMS_BASE_URL = os.getenv("CMS_BASE_URL", "http://localhost:4000")
SITE_BASE_URL = os.getenv("SITE_BASE_URL", CMS_BASE_URL)
CMS_TIMEOUT = float(os.getenv("CMS_TIMEOUT", "30"))

# LLM Configuration (script generation)
# Priority follows LLM_PROVIDER; "gemini" uses the REST API, "ollama" a local server
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").lower()
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1:8b")
LLM_MAX_ATTEMPTS = int(os.getenv("LLM_MAX_ATTEMPTS", "3"))
LLM_RETRY_DELAY = float(os.getenv("LLM_RETRY_DELAY", "1.0"))

# Image search (scripted videos)
PEXELS_API_KEY = os.getenv("PEXELS_API_KEY", "")
PLACEHOLDER_IMAGE_COUNT = 10

# TTS Configuration
# "edge" is the only provider that reports word timing; the others use even caption division
TTS_PROVIDER = os.getenv("TTS_PROVIDER", "edge").lower()
ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY", "")
# Comma separated pool, one is picked per video
ELEVENLABS_VOICE_IDS = [
    v.strip() for v in os.getenv("ELEVENLABS_VOICE_IDS", "21m00Tcm4TlvDq8ikWAM,pNInz6obpgDQGcFmaJgB").split(",") if v.strip()
]
ELEVENLABS_MODEL_ID = os.getenv("ELEVENLABS_MODEL_ID", "eleven_multilingual_v2")

# Narration is cut at the first of these markers (trailing resource lists etc.)
BOILERPLATE_MARKERS = ["Resources"]

# Video Configuration
FPS = 24
VIDEO_WIDTH = 1080
VIDEO_HEIGHT = 1920  # Vertical format (9:16)
VIDEO_FORMAT = "mp4"

# Scrolling capture
CAPTURE_VIEWPORT_WIDTH = 480
CAPTURE_VIEWPORT_HEIGHT = 1200
CAPTURE_DEVICE_SCALE = 1.5
CAPTURE_FPS = 2  # screenshots per second of narration
CAPTURE_MAX_FRAMES = 200
CAPTURE_MIN_PAGE_HEIGHT = 500
CAPTURE_FALLBACK_PAGE_HEIGHT = 5000
CAPTURE_NAVIGATION_TIMEOUT_MS = 60000
CAPTURE_SETTLE_SECONDS = 3.0
CHROMIUM_EXECUTABLE_PATH = os.getenv("CHROMIUM_EXECUTABLE_PATH", "") or None
CAPTURE_HEADLESS = os.getenv("CAPTURE_HEADLESS", "true").lower() == "true"

# Scripted slideshow pacing
MIN_SECONDS_PER_IMAGE = 4.0
MAX_SECONDS_PER_IMAGE = 6.0

# Captions: y = height * ratio + offset keeps text below platform UI chrome
CAPTION_Y_RATIO = 0.38
CAPTION_Y_OFFSET = 100
CAPTION_FONT_SIZE = 64
CAPTION_BORDER_WIDTH = 3
CAPTION_MAX_CHARS = 28
CAPTION_WORDS_PER_PHRASE = 3
CAPTION_FONT_PATH = os.getenv("CAPTION_FONT_PATH", "")

# Storage
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "http").lower()  # http, local

# Notifications
NOTIFY_EMAIL = os.getenv("NOTIFY_EMAIL", "")

# Long stages ping this often so idle-timeout hosts keep the worker alive
HEARTBEAT_INTERVAL = float(os.getenv("HEARTBEAT_INTERVAL", "20"))

# Output directories
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")
TEMP_DIR = os.getenv("TEMP_DIR", "tmp")
