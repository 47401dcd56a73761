"""
Prompt Builder
==============
System prompts and user messages for batch lyrics translation.
"""
import json
from typing import Dict, Optional, Sequence

from lyrics_translator.config.constants import TARGET_LANGUAGE


SHARED_PREAMBLE = f"""You translate song lyrics from Asian languages into {TARGET_LANGUAGE}. Reply with ONLY a JSON object, no markdown and no explanation.
TARGET LANGUAGE: {TARGET_LANGUAGE} (always)
OUTPUT FORMAT: {{"id_ab12c": "translated line", "id_x9y8z": "SKIP"}}
RULES:
1. JSON ONLY: return raw JSON using exactly the ids you were given. No <think> tags, no commentary.
2. SKIP: answer "SKIP" for instrumental markers (♪) and for lines already in {TARGET_LANGUAGE}.
3. ONE LINE PER ID: translate each line on its own; never merge or split lines.
4. PUNCTUATION: keep the original's symbols, brackets, emojis and notes; add no trailing period the original lacks.
5. TONE: mirror the original's register, whether questioning, introspective or playful.
6. FLOW: read the lines as one song so the translation flows, without taking liberties.
7. NAMES: keep proper nouns romanized, do not translate them.
8. CAPITALIZATION: capitalize the start of a line only when grammar calls for it.

EXAMPLES:
{{"id_1": "僕は君を探している"}} -> {{"id_1": "I'm searching for you"}}
{{"id_2": "ドキドキしちゃって"}} -> {{"id_2": "My heart is pounding"}} (onomatopoeia: translate the feeling)
{{"id_3": "You are KING"}} -> {{"id_3": "SKIP"}} (already {TARGET_LANGUAGE})"""

LANGUAGE_RULES: Dict[str, str] = {
    'ja': """SOURCE LANGUAGE: Japanese
- Read particles carefully: は topic, が subject, を object, に direction, で means or place.
- Carry conjugation nuance: -たい want to, -てしまう regrettably, -ている ongoing.
- Subjects are often omitted; infer them from the surrounding lines and stay consistent.
- Honorifics such as -さん and -ちゃん shape the tone rather than the words.
- Translate sentence-final particles (よ, ね, か, な) into tone, not extra words.""",
    'ko': """SOURCE LANGUAGE: Korean
- Keep the speech level: polite 해요체 and casual 반말 read differently.
- Read particles carefully: 은/는 topic, 이/가 subject, 을/를 object, 에/에서 place.
- Address terms such as 오빠 or -님 shape the tone of the whole line.
- Render Konglish as natural English (파이팅 = "fighting spirit").
- Expand spoken contractions (뭐, 걔) before translating.""",
    'zh': """SOURCE LANGUAGE: Chinese
- Aspect markers matter: 了 completed, 着 ongoing, 过 experienced.
- Translate chengyu by meaning (一见钟情 = "love at first sight").
- Classical phrasing should be rendered by sense, not word by word.
- Infer tense and plurality from the surrounding lines.
- Reduplication (慢慢) signals emphasis or gentleness.""",
}


def build_system_prompt(source_lang: str) -> str:
    """Shared rules plus the rules for the batch's source language."""
    rules = LANGUAGE_RULES.get(source_lang)
    if not rules:
        return SHARED_PREAMBLE
    return f"{SHARED_PREAMBLE}\n\n{rules}"


def format_song_context(title: Optional[str], artists: Sequence[str] = ()) -> Optional[str]:
    """``SONG CONTEXT: "title" by "artist"`` with JSON-escaped values, or None without a title."""
    if not title:
        return None
    line = f"SONG CONTEXT: {json.dumps(title, ensure_ascii=False)}"
    if artists:
        line += f" by {json.dumps(', '.join(artists), ensure_ascii=False)}"
    return line


def build_user_message(payload: Dict[str, str], song_context: Optional[str] = None) -> str:
    """
    Build the user message for one batch.

    Args:
        payload: ``{id: text}`` object to translate
        song_context: Optional line from :func:`format_song_context`
    """
    parts = [f"TARGET_LANGUAGE: {TARGET_LANGUAGE}"]
    if song_context:
        parts.append(song_context)
    body = json.dumps(payload, ensure_ascii=False)
    parts.append(f"<LYRICS_TO_TRANSLATE>\n{body}\n</LYRICS_TO_TRANSLATE>")
    return "\n\n".join(parts)
