"""
Prompt builders for the writing tutor.

Every request sent to a provider is assembled here from the same sections:

- persona and tone, taken from the student's LevelProfile
- vocabulary and correction-focus constraints, quoted verbatim from the profile
- language rules for the natural-language fields of the answer
- a literal example of the JSON shape the provider must return

Output-language differences live in LANGUAGE_STRATEGIES so each operation is
written once. Nothing in this module touches the network.
"""

from __future__ import annotations
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .errors import InvalidParameter, MissingParameter
from .images import split_data_uri
from .schemas import ChatRequest, EvaluationRequest, LevelProfile, Requirements


# How many earlier chat turns are replayed into a follow-up prompt
CHAT_HISTORY_TURNS = 10


# ============================================================================
# JSON SHAPES
# ============================================================================

TOPIC_LIST_SHAPE: List[str] = ["<topic title>", "<topic title>", "<topic title>"]

MATERIAL_SHAPE: Dict[str, Any] = {
    "topic": "<string>",
    "introduction": "<string>",
    "sampleEssay": "<string>",
    "analysis": "<string>",
    "requirements": {
        "goal": "<string>",
        "scope": "<string>",
        "style": "<string>",
        "keywords": ["<string>"],
        "structure": "<string>",
    },
}

EVALUATION_SHAPE: Dict[str, Any] = {
    "score": "<number 0-100>",
    "generalFeedback": "<string>",
    "detailedCorrections": [
        {"original": "<string>", "correction": "<string>", "explanation": "<string>"}
    ],
    "improvedVersion": "<string>",
}

HANDWRITING_SHAPE: Dict[str, Any] = {
    "handwritingScore": "<number 0-10>",
    "handwritingComment": "<string>",
    "transcribedText": "<string>",
}

REQUIREMENT_CHECK_SHAPE: Dict[str, Any] = {
    "requirementCheck": {"met": "<boolean>", "feedback": "<string>"},
}

CHAT_SHAPE: Dict[str, Any] = {"reply": "<string>"}

VALIDATION_ACK: Dict[str, Any] = {"status": "ok"}


# ============================================================================
# OUTPUT LANGUAGE STRATEGIES
# ============================================================================

class LanguageStrategy(BaseModel):
    """
    Everything that changes between output languages.

    Attributes:
        code: Canonical language code
        display_name: Name used inside prompts
        commentary_rule: Extra rule forbidding English commentary; empty for English
        evaluation_example: Worked, correctly localized evaluation object
        handwriting_example: Localized values for the handwriting fields
        requirement_example: Localized requirementCheck value
        material_example: Worked, correctly localized learning material
        chat_example: Worked, correctly localized chat reply
    """

    model_config = ConfigDict(frozen=True)

    code: str
    display_name: str
    commentary_rule: str = ""
    evaluation_example: Optional[Dict[str, Any]] = None
    handwriting_example: Optional[Dict[str, Any]] = None
    requirement_example: Optional[Dict[str, Any]] = None
    material_example: Optional[Dict[str, Any]] = None
    chat_example: Optional[Dict[str, Any]] = None

    @property
    def is_english(self) -> bool:
        return self.code == "en"


ENGLISH = LanguageStrategy(code="en", display_name="English")

CHINESE = LanguageStrategy(
    code="zh",
    display_name="Chinese (Simplified)",
    commentary_rule=(
        "LANGUAGE RULE (mandatory): every explanatory field (generalFeedback, explanation, "
        "handwritingComment, requirementCheck.feedback, introduction, analysis, reply) MUST be written "
        "in Simplified Chinese. Do NOT write these fields in English. Only quoted English text "
        "(original, correction, improvedVersion, sampleEssay, transcribedText) stays in English."
    ),
    evaluation_example={
        "score": 78,
        "generalFeedback": "文章结构清晰，观点明确，但有几处主谓一致错误，需要注意第三人称单数。",
        "detailedCorrections": [
            {
                "original": "He go to school by bus.",
                "correction": "He goes to school by bus.",
                "explanation": "主语是第三人称单数时，一般现在时的谓语动词要加 -s 或 -es。",
            }
        ],
        "improvedVersion": "He goes to school by bus every morning.",
    },
    handwriting_example={
        "handwritingScore": 8,
        "handwritingComment": "字迹工整，字母大小基本统一，但单词之间的间距略小。",
        "transcribedText": "He go to school by bus.",
    },
    requirement_example={
        "requirementCheck": {"met": True, "feedback": "文章使用了全部要求的关键词，并按照要求的结构展开。"},
    },
    material_example={
        "topic": "My Favourite Season",
        "introduction": "这篇作文要求你描写自己最喜欢的季节，并说明喜欢的原因。",
        "sampleEssay": "My favourite season is autumn. The air is cool and the leaves turn gold...",
        "analysis": "范文先点明主题，再用感官描写（cool, gold）支撑观点，最后用总结句呼应开头。",
        "requirements": {
            "goal": "描写一个季节并给出两个喜欢的理由",
            "scope": "个人经历与感受",
            "style": "记叙文，语气轻松",
            "keywords": ["season", "because", "favourite"],
            "structure": "开头点题 - 两个理由 - 结尾总结",
        },
    },
    chat_example={
        "reply": "这里要用 \"have\"，因为主语 \"I\" 是第一人称，一般现在时的动词用原形，只有第三人称单数才用 \"has\"。",
    },
)

LANGUAGE_STRATEGIES: Dict[str, LanguageStrategy] = {
    "en": ENGLISH,
    "english": ENGLISH,
    "zh": CHINESE,
    "cn": CHINESE,
    "zh-cn": CHINESE,
    "chinese": CHINESE,
}


def get_language_strategy(language: Optional[str]) -> LanguageStrategy:
    """
    Look up the strategy for an output language code.

    Args:
        language: Code such as "en", "zh" or the legacy "cn"; empty means English

    Returns:
        LanguageStrategy: The matching strategy

    Raises:
        InvalidParameter: If the language is not supported
    """
    key = (language or "en").strip().lower()
    strategy = LANGUAGE_STRATEGIES.get(key)
    if strategy is None:
        raise InvalidParameter(f"Unsupported output language: {language!r}")
    return strategy


# ============================================================================
# SECTIONS
# ============================================================================

def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)


def _persona(profile: LevelProfile) -> str:
    return f"{profile.system_role}\nTone: {profile.tone_instruction}"


def _constraints(profile: LevelProfile) -> str:
    focus = "\n".join(f"  {i}. {item}" for i, item in enumerate(profile.correction_focus, start=1))
    return (
        f"Student level: {profile.name} ({profile.code}).\n"
        f"Vocabulary expectation: {profile.vocabulary_constraint}\n"
        f"Correction focus, in priority order:\n{focus}"
    )


def _language_rules(strategy: LanguageStrategy) -> str:
    lines = [f"Write all feedback and explanations in {strategy.display_name}."]
    if strategy.commentary_rule:
        lines.append(strategy.commentary_rule)
    return "\n".join(lines)


def _schema_section(shape: Any, example: Optional[Any] = None) -> str:
    text = (
        "Return ONLY valid JSON in exactly this shape (field names and types are mandatory):\n"
        f"{_dump(shape)}"
    )
    if example is not None:
        text += f"\nExample of a correctly localized response:\n{_dump(example)}"
    return text + "\nNo Markdown, no code fences, no extra commentary."


def _requirements_block(requirements: Requirements) -> str:
    items = []
    if requirements.goal:
        items.append(f"- Goal: {requirements.goal}")
    if requirements.scope:
        items.append(f"- Scope: {requirements.scope}")
    if requirements.style:
        items.append(f"- Style: {requirements.style}")
    if requirements.keywords:
        items.append(f"- Keywords to use: {', '.join(requirements.keywords)}")
    if requirements.structure:
        items.append(f"- Structure: {requirements.structure}")
    return (
        "Writing requirements checklist:\n"
        + "\n".join(items)
        + "\nCheck whether the submission satisfies every item and report it in requirementCheck "
        "(met = true only if all items are satisfied)."
    )


def _has_requirements(requirements: Optional[Requirements]) -> bool:
    if requirements is None:
        return False
    return any([requirements.goal, requirements.scope, requirements.style, requirements.keywords, requirements.structure])


# ============================================================================
# OPERATIONS
# ============================================================================

def build_topics_prompt(profile: LevelProfile) -> str:
    """
    Build the prompt asking for three writing topics.

    Topic titles are always English, whatever the interface language.
    """
    return "\n\n".join([
        _persona(profile),
        _constraints(profile),
        "Generate 3 distinct, engaging and age-appropriate English writing topics (titles) for this level.\n"
        "Titles must be in English.",
        "Return ONLY a JSON array of 3 strings in exactly this shape:\n"
        f"{_dump(TOPIC_LIST_SHAPE)}\n"
        'Example: ["My Best Friend", "A Trip to the Zoo", "My Favourite Food"]\n'
        "No Markdown, no code fences, no extra commentary.",
    ])


def build_material_prompt(profile: LevelProfile, topic: str, language: Optional[str]) -> str:
    """
    Build the prompt for learning material on one topic.

    Args:
        profile: Level profile of the student
        topic: Writing topic chosen by the student
        language: Output language for introduction and analysis

    Returns:
        str: Prompt text
    """
    topic = (topic or "").strip()
    if not topic:
        raise MissingParameter("topic is required")
    strategy = get_language_strategy(language)
    example = strategy.material_example if not strategy.is_english else None
    return "\n\n".join([
        _persona(profile),
        _constraints(profile),
        f'Topic: "{topic}"\n'
        f"1. Write a brief introduction to this writing task (in {strategy.display_name}).\n"
        f"2. Write a high-quality English sample essay of {profile.word_count.label} suitable for this level.\n"
        f"3. Give a detailed analysis of the sample (vocabulary, grammar, structure) in {strategy.display_name}.\n"
        "4. List the writing requirements the student should meet: goal, scope, style, keywords and structure.",
        _language_rules(strategy),
        _schema_section({**MATERIAL_SHAPE, "topic": topic}, example),
    ])


def build_evaluation_prompt(profile: LevelProfile, request: EvaluationRequest) -> str:
    """
    Build the grading prompt for a sentence drill or an essay.

    When the request carries an image, handwriting recognition instructions come
    first and the JSON shape gains handwritingScore, handwritingComment and
    transcribedText. When requirements are present a checklist is appended and
    requirementCheck becomes part of the shape.

    Args:
        profile: Level profile of the student
        request: The submission to grade

    Returns:
        str: Prompt text

    Raises:
        MissingParameter: If there is neither text nor an image to grade
        InvalidParameter: If the image is not valid base64 image data
    """
    strategy = get_language_strategy(request.output_language)
    text = (request.submission_text or "").strip()
    has_image = bool(request.image and request.image.strip())
    if has_image:
        split_data_uri(request.image)
    if not text and not has_image:
        raise MissingParameter("submission text or image is required")

    if request.mode == "sentence":
        mode = "Sentence Drilling (focus on grammar and usage)"
    else:
        mode = (
            "Essay Writing (focus on structure, coherence, vocabulary and grammar); "
            f"expected length {profile.word_count.label}"
        )

    sections = [_persona(profile), _constraints(profile)]
    if has_image:
        sections.append(
            "The student's writing is attached as a photo of handwriting.\n"
            "Before grading:\n"
            "a. Transcribe the handwriting exactly as written, keeping the student's mistakes, into transcribedText.\n"
            "b. Rate legibility and neatness from 0 to 10 in handwritingScore.\n"
            f"c. Comment on the handwriting (letter formation, spacing, neatness) in handwritingComment, in {strategy.display_name}.\n"
            "Then grade the transcribed text as described below."
        )
    task = f"Task: {request.topic}\nMode: {mode}"
    if text:
        label = "Typed text supplied with the photo" if has_image else "Student submission"
        task += f'\n\n{label}:\n"""\n{text}\n"""'
    sections.append(task)
    sections.append(
        "Evaluate the submission:\n"
        "1. Give a score out of 100 based on the level standards above.\n"
        f"2. Give general feedback in {strategy.display_name}.\n"
        f"3. List specific errors with their correction and an explanation in {strategy.display_name}.\n"
        "4. Provide a rewritten, improved English version suitable for this level.\n"
        f"Match the style of this feedback exemplar: {profile.feedback_template}"
    )

    shape = dict(EVALUATION_SHAPE)
    example = None if strategy.is_english else dict(strategy.evaluation_example or {})
    if has_image:
        shape.update(HANDWRITING_SHAPE)
        if example is not None:
            example.update(strategy.handwriting_example or {})
    if _has_requirements(request.requirements):
        sections.append(_requirements_block(request.requirements))
        shape.update(REQUIREMENT_CHECK_SHAPE)
        if example is not None:
            example.update(strategy.requirement_example or {})

    sections.append(_language_rules(strategy))
    sections.append(_schema_section(shape, example))
    return "\n\n".join(sections)


def build_chat_prompt(profile: LevelProfile, request: ChatRequest) -> str:
    """
    Build the tutoring follow-up prompt about one correction.

    Only the last CHAT_HISTORY_TURNS messages are replayed.
    """
    question = (request.question or "").strip()
    if not question:
        raise MissingParameter("question is required")
    strategy = get_language_strategy(request.output_language)
    history = request.history[-CHAT_HISTORY_TURNS:]
    transcript = "\n".join(f"{m.role}: {m.content}" for m in history) or "(no earlier messages)"
    example = None if strategy.is_english else strategy.chat_example
    return "\n\n".join([
        _persona(profile) + "\nYou are now tutoring the student one-to-one about a correction in their writing.",
        _constraints(profile),
        f'Original text: "{request.original}"\nCorrected text: "{request.correction}"',
        f"Conversation so far:\n{transcript}",
        f"Student's question: {question}\n"
        "Answer briefly and concretely at the student's level. Use an example sentence when it helps.",
        _language_rules(strategy),
        _schema_section(CHAT_SHAPE, example),
    ])


def build_validation_prompt() -> str:
    """Smallest useful request: the provider only has to echo a fixed JSON object."""
    return f"Reply with exactly this JSON object and nothing else: {json.dumps(VALIDATION_ACK)}"
