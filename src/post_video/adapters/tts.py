"""
Narration synthesizers (INarrationSynthesizer).
Edge-TTS is the default and reports word boundaries; ElevenLabs and gTTS are
alternatives without timing metadata.
"""

import asyncio
import hashlib
import io
import random
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

import edge_tts
from pydub import AudioSegment

from post_video import config
from post_video.domain.errors import GenerationError
from post_video.domain.models import Narration, WordTiming
from post_video.ports.interfaces import INarrationSynthesizer

# Edge-TTS offsets and durations are in 100ns ticks
_TICKS_PER_SECOND = 10_000_000

# Natural sounding neural voices per language
NEURAL_VOICES: Dict[str, List[str]] = {
    "en-US": [
        "en-US-AriaNeural", "en-US-GuyNeural", "en-US-JennyNeural",
        "en-US-ChristopherNeural", "en-US-EricNeural", "en-US-MichelleNeural",
    ],
    "en-GB": ["en-GB-SoniaNeural", "en-GB-RyanNeural", "en-GB-LibbyNeural", "en-GB-ThomasNeural"],
    "en-AU": ["en-AU-NatashaNeural", "en-AU-WilliamNeural"],
    "en-IN": ["en-IN-NeerjaNeural", "en-IN-PrabhatNeural"],
    "es-US": ["es-US-PalomaNeural", "es-US-AlonsoNeural"],
    "es-ES": ["es-ES-ElviraNeural", "es-ES-AlvaroNeural"],
    "fr-FR": ["fr-FR-DeniseNeural", "fr-FR-HenriNeural"],
    "de-DE": ["de-DE-KatjaNeural", "de-DE-ConradNeural"],
    "it-IT": ["it-IT-ElsaNeural", "it-IT-DiegoNeural"],
    "pt-BR": ["pt-BR-FranciscaNeural", "pt-BR-AntonioNeural"],
    "ja-JP": ["ja-JP-NanamiNeural", "ja-JP-KeitaNeural"],
    "ko-KR": ["ko-KR-SunHiNeural", "ko-KR-InJoonNeural"],
    "zh-CN": ["zh-CN-XiaoxiaoNeural", "zh-CN-YunxiNeural", "zh-CN-YunyangNeural"],
    "hi-IN": ["hi-IN-SwaraNeural", "hi-IN-MadhurNeural"],
}

# Conversational voices for the "studio" style
STUDIO_VOICES: Dict[str, List[str]] = {
    "en-US": [
        "en-US-AvaMultilingualNeural", "en-US-AndrewMultilingualNeural",
        "en-US-EmmaMultilingualNeural", "en-US-BrianMultilingualNeural",
    ],
}

STUDIO_STYLES = ("studio", "conversational")


@dataclass
class VoiceChoice:
    """A curated voice name, or only a gender when the language has no pool."""
    name: Optional[str]
    gender: str


def select_voice(language: str, voice_style: str = "neural", rng: Optional[random.Random] = None) -> VoiceChoice:
    """Pick a voice at random from the curated pool for language/style."""
    rng = rng or random.Random()
    if voice_style in STUDIO_STYLES and language in STUDIO_VOICES:
        return VoiceChoice(name=rng.choice(STUDIO_VOICES[language]), gender="")
    if language in NEURAL_VOICES:
        return VoiceChoice(name=rng.choice(NEURAL_VOICES[language]), gender="")
    return VoiceChoice(name=None, gender="Female" if rng.random() < 0.5 else "Male")


def strip_to_content(html: str) -> str:
    """Reduce HTML (or plain text) to narratable text."""
    text = re.sub(r"<script[^>]*>[\s\S]*?</script>", "", html, flags=re.IGNORECASE)
    text = re.sub(r"<style[^>]*>[\s\S]*?</style>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]*>", " ", text)
    text = (
        text.replace("&nbsp;", " ")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&quot;", '"')
        .replace("&#39;", "'")
        .replace("&amp;", "&")
    )
    return re.sub(r"\s+", " ", text).strip()


def strip_boilerplate(text: str, markers: Optional[List[str]] = None) -> str:
    """Cut text at the first boilerplate marker (e.g. a trailing 'Resources' list)."""
    markers = config.BOILERPLATE_MARKERS if markers is None else markers
    for marker in markers:
        text = re.sub(rf"\b{re.escape(marker)}\b[\s\S]*$", "", text)
    return text.strip()


def measure_duration(audio_bytes: bytes, audio_format: str = "mp3") -> float:
    """Decode audio with pydub and return its length in seconds."""
    segment = AudioSegment.from_file(io.BytesIO(audio_bytes), format=audio_format)
    return len(segment) / 1000.0


class _Synthesizer(INarrationSynthesizer):
    """Shared text preparation and result assembly."""

    def prepare_text(self, text: str) -> str:
        prepared = strip_boilerplate(strip_to_content(text or ""))
        if not prepared:
            raise GenerationError("Nothing left to narrate after stripping markup and boilerplate", stage="narration")
        return prepared

    async def _finish(
        self,
        audio_bytes: bytes,
        voice: str,
        language: str,
        word_timings: Optional[List[WordTiming]] = None,
    ) -> Narration:
        if not audio_bytes:
            raise GenerationError("No audio content received from TTS provider", stage="narration")
        duration = await asyncio.to_thread(measure_duration, audio_bytes)
        print(f"  ✅ Narration ready: {duration:.1f}s, voice {voice}")
        return Narration(
            audio_bytes=audio_bytes,
            duration_seconds=duration,
            content_hash=hashlib.sha256(audio_bytes).hexdigest(),
            voice=voice,
            language=language,
            word_timings=word_timings or [],
        )


class EdgeTTSSynthesizer(_Synthesizer):
    """Microsoft Edge neural voices with word-boundary timing."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    async def _resolve_voice(self, language: str, voice_style: str) -> str:
        choice = select_voice(language, voice_style, self._rng)
        if choice.name:
            return choice.name
        # No curated pool: any voice of the chosen gender for the locale
        manager = await edge_tts.VoicesManager.create()
        voices = manager.find(Gender=choice.gender, Locale=language)
        if not voices:
            voices = manager.find(Gender=choice.gender, Language=language.split("-")[0])
        if not voices:
            raise GenerationError(f"No voice available for language {language}", stage="narration")
        return self._rng.choice(voices)["ShortName"]

    async def synthesize(self, text: str, language: str, voice_style: str) -> Narration:
        prepared = self.prepare_text(text)
        voice = await self._resolve_voice(language, voice_style)
        print(f"  🔊 Using Edge-TTS voice: {voice} ({language}, {voice_style})")

        communicate = edge_tts.Communicate(prepared, voice, boundary="WordBoundary")
        audio = bytearray()
        timings: List[WordTiming] = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
            elif chunk["type"] == "WordBoundary":
                start = chunk["offset"] / _TICKS_PER_SECOND
                timings.append(
                    WordTiming(
                        text=chunk["text"],
                        start=start,
                        end=start + chunk["duration"] / _TICKS_PER_SECOND,
                    )
                )
        return await self._finish(bytes(audio), voice, language, timings)


class ElevenLabsSynthesizer(_Synthesizer):
    """ElevenLabs voices picked from the configured pool. No word timing."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice_ids: Optional[List[str]] = None,
        model_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        from elevenlabs.client import ElevenLabs

        self._client = ElevenLabs(api_key=api_key or config.ELEVENLABS_API_KEY)
        self._voice_ids = voice_ids or config.ELEVENLABS_VOICE_IDS
        self._model_id = model_id or config.ELEVENLABS_MODEL_ID
        self._rng = rng or random.Random()

    def _convert(self, text: str, voice_id: str) -> bytes:
        response = self._client.text_to_speech.convert(
            text=text,
            voice_id=voice_id,
            model_id=self._model_id,
        )
        audio_bytes = b""
        for chunk in response:
            if isinstance(chunk, bytes):
                audio_bytes += chunk
        return audio_bytes

    async def synthesize(self, text: str, language: str, voice_style: str) -> Narration:
        prepared = self.prepare_text(text)
        if not self._voice_ids:
            raise GenerationError("ELEVENLABS_VOICE_IDS is empty", stage="narration")
        voice_id = self._rng.choice(self._voice_ids)
        print(f"  🔊 Using ElevenLabs voice {voice_id}, model {self._model_id}")
        audio_bytes = await asyncio.to_thread(self._convert, prepared, voice_id)
        return await self._finish(audio_bytes, voice_id, language)


# gTTS takes a bare language plus a regional Google domain
_GTTS_LOCALES = {
    "en-US": ("en", "com"),
    "en-GB": ("en", "co.uk"),
    "en-AU": ("en", "com.au"),
    "en-IN": ("en", "co.in"),
    "es-US": ("es", "com"),
    "es-ES": ("es", "es"),
    "fr-FR": ("fr", "fr"),
    "pt-BR": ("pt", "com.br"),
    "zh-CN": ("zh-CN", "com"),
}


class GTTSSynthesizer(_Synthesizer):
    """Google Translate TTS. No word timing, single voice per locale."""

    def _render(self, text: str, language: str) -> bytes:
        from gtts import gTTS

        lang, tld = _GTTS_LOCALES.get(language, (language.split("-")[0], "com"))
        buffer = io.BytesIO()
        gTTS(text=text, lang=lang, tld=tld).write_to_fp(buffer)
        return buffer.getvalue()

    async def synthesize(self, text: str, language: str, voice_style: str) -> Narration:
        prepared = self.prepare_text(text)
        print(f"  ⚠️  Using gTTS ({language}); captions will use even timing")
        audio_bytes = await asyncio.to_thread(self._render, prepared, language)
        return await self._finish(audio_bytes, f"gtts-{language}", language)


def build_synthesizer(provider: Optional[str] = None) -> INarrationSynthesizer:
    provider = (provider or config.TTS_PROVIDER).lower()
    if provider == "elevenlabs":
        return ElevenLabsSynthesizer()
    if provider == "gtts":
        return GTTSSynthesizer()
    return EdgeTTSSynthesizer()
