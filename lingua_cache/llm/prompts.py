"""
Prompt Templates

One builder per result kind. Every builder asks for pure JSON and names the
output language explicitly; the JSON shape in each prompt mirrors the
pydantic model that validates the answer (lingua_cache.models.results).
"""

from lingua_cache.core.config.constants import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES


def language_name(language: str) -> str:
    return SUPPORTED_LANGUAGES.get(language, SUPPORTED_LANGUAGES[DEFAULT_LANGUAGE])


def build_question_prompt(
    question: str,
    options: list[str],
    correct_answer_index: int,
    question_type: str | None,
    language: str,
    has_image: bool = False,
) -> str:
    """TOPIK question analysis. ``correct_answer_index`` is zero-based."""
    output_language = language_name(language)
    options_block = "\n".join(f"{i + 1}. {option}" for i, option in enumerate(options))
    wrong_keys = ", ".join(f'"{i + 1}"' for i in range(len(options)) if i != correct_answer_index)
    image_note = (
        "The attached image is part of the question; read it carefully before answering.\n"
        if has_image
        else ""
    )

    return f"""You are a strict Korean language exam proctor.
Analyze the following TOPIK question.
{image_note}
Question: {question}
Options:
{options_block}
Correct Answer: {correct_answer_index + 1}. {options[correct_answer_index]} (Explain why this is correct)
Question Type: {question_type or "general"}

IMPORTANT: All your output MUST be in {output_language}.

Output pure JSON with these keys:
- translation: Translation of the question into {output_language}
- keyPoint: Key grammar or vocabulary point being tested
- analysis: Detailed explanation of why the correct answer is right
- wrongOptions: Object with keys {wrong_keys} explaining why each wrong option is incorrect (skip the correct answer)

IMPORTANT: Return ONLY valid JSON, no markdown formatting. All text values must be in {output_language}."""


def build_sentence_prompt(sentence: str, context: str | None, language: str) -> str:
    output_language = language_name(language)
    context_line = f"Context: {context}\n" if context else ""

    return f"""You are a professional Korean language tutor. Analyze the provided Korean sentence.

Sentence: "{sentence}"
{context_line}
Return a STRICT JSON object with the following structure. All explanations must be in {output_language}.

{{
  "vocabulary": [
    {{
      "word": "The word as it appears",
      "root": "Dictionary/Root form",
      "meaning": "Definition in {output_language}",
      "partOfSpeech": "Noun/Verb/Adj/etc"
    }}
  ],
  "grammar": [
    {{
      "structure": "Grammar pattern (e.g., -기가)",
      "explanation": "Explanation in {output_language}"
    }}
  ],
  "nuance": "Formality, tone, and context in {output_language}"
}}

Return ONLY valid JSON."""


def build_transcript_prompt(language: str) -> str:
    output_language = language_name(language)

    return f"""You are a professional Korean transcriber and translator.
Transcribe the attached Korean audio into timed segments.

Rules:
- Split at natural sentence boundaries; one sentence per segment.
- Timestamps are in seconds from the start of the audio (decimals allowed).
- Segments are in chronological order and never overlap.
- "text" is the exact Korean speech; "translation" is its translation into {output_language}.

Return a STRICT JSON object:

{{
  "segments": [
    {{"startSeconds": 0.0, "endSeconds": 3.2, "text": "Korean sentence", "translation": "{output_language} translation"}}
  ]
}}

Return ONLY valid JSON, no markdown formatting."""
