"""
Caption cue alignment.

Measured word timing from the synthesizer is preferred. When the narration
carries none, the script is split into short phrases spread evenly over the
audio duration.
"""

import re
from typing import List, Optional

from post_video import config
from post_video.domain.models import CaptionCue, Narration, WordTiming
from post_video.ports.interfaces import ICaptionAligner

# Characters the overlay renderer chokes on
_UNSAFE_CAPTION_CHARS = re.compile(r"[\'\"`:;,\[\]{}\\%]")


def sanitize_caption_text(text: str, max_chars: int = config.CAPTION_MAX_CHARS) -> str:
    """Strip unsafe punctuation, capitalize the first letter and hard-truncate."""
    cleaned = _UNSAFE_CAPTION_CHARS.sub("", text)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if cleaned:
        cleaned = cleaned[0].upper() + cleaned[1:].lower()
    return cleaned[:max_chars]


def _is_spoken(word: str) -> bool:
    return any(ch.isalnum() for ch in word)


def cues_from_word_timings(timings: List[WordTiming], duration: float) -> List[CaptionCue]:
    """One cue per spoken word, clamped to the audio and made non-overlapping."""
    words = sorted((t for t in timings if _is_spoken(t.text)), key=lambda t: t.start)
    cues: List[CaptionCue] = []
    previous_end = 0.0
    for i, word in enumerate(words):
        start = max(word.start, previous_end)
        end = min(word.end, duration)
        if i + 1 < len(words):
            end = min(end, max(words[i + 1].start, start))
        if start >= duration or end <= start:
            continue
        cues.append({"text": word.text.strip(), "start": start, "end": end})
        previous_end = end
    return cues


def even_division_cues(
    script: str,
    duration: float,
    words_per_phrase: int = config.CAPTION_WORDS_PER_PHRASE,
) -> List[CaptionCue]:
    """Split the script into phrases and give every word the same share of time."""
    if not script or not script.strip() or duration <= 0:
        return []
    words = [w for w in re.sub(r"[^\w\s]", " ", script).split() if w]
    if not words:
        return []

    time_per_word = duration / len(words)
    cues: List[CaptionCue] = []
    for i in range(0, len(words), words_per_phrase):
        phrase = words[i:i + words_per_phrase]
        start = round(i * time_per_word, 2)
        end = min(round((i + len(phrase)) * time_per_word, 2), duration)
        cues.append({"text": " ".join(phrase), "start": start, "end": end})
    return cues


class CaptionAligner(ICaptionAligner):
    """Produces caption cues for a narration."""

    def __init__(self, words_per_phrase: int = config.CAPTION_WORDS_PER_PHRASE):
        self.words_per_phrase = words_per_phrase

    def align(self, script: str, narration: Optional[Narration], duration: float) -> List[CaptionCue]:
        if narration is not None and narration.word_timings:
            cues = cues_from_word_timings(narration.word_timings, duration)
            if cues:
                print(f"  ✅ {len(cues)} caption cues from measured word timing")
                return cues
        cues = even_division_cues(script, duration, self.words_per_phrase)
        print(f"  ⚠️  No word timing available; {len(cues)} caption cues from even division")
        return cues
