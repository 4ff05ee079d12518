"""Author and character persona models.

Training runs are simulated: training data is built from templates, jobs
get mock ids and complete on the first status check. Chatting with a
model sends its style guide as the system prompt to the base model.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any

import structlog

from bookclub.config.constants import MAX_CHARACTER_NAME_LENGTH, MAX_MESSAGE_LENGTH
from bookclub.db import fine_tune_repository as fine_tune_repo
from bookclub.db.fine_tune_repository import FineTunedModel
from bookclub.llm import LLMError, Message
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)

BASE_MODEL = "gpt-3.5-turbo"
MODEL_TYPES = ("author", "character")
READY_STATUSES = ("completed", "ready")
HISTORY_TURNS = 10
CHAT_MAX_TOKENS = 300

THEME_KEYWORDS = ["love", "loss", "identity", "family", "courage", "redemption", "survival", "friendship"]
DEFAULT_THEMES = "human experience, growth, relationships"

CHAT_FALLBACK_REPLY = "I apologize, but I'm having trouble responding right now. Please try again later."

AUTHOR_PROMPTS = [
    "What inspired you to write this book?",
    "Can you describe your writing process?",
    "What themes are most important in your work?",
    "How do you develop your characters?",
    "What message do you hope readers take away?",
    "What was the most challenging part of writing this book?",
    "Do you have any writing rituals or habits?",
    "How did you come up with the title?",
    "What books or authors influenced your work?",
    "What advice would you give to aspiring writers?",
]

CHARACTER_PROMPTS = [
    "Tell me about yourself, {name}.",
    "What do you want most in life?",
    "What are you most afraid of?",
    "Who is the most important person to you?",
    "What do you think about the events in your story?",
    "If you could change one thing, what would it be?",
    "What makes you angry?",
    "What makes you happy?",
    "Describe your perfect day.",
    "What is your biggest regret?",
]

QUICK_AUTHOR_PROMPTS = [
    "What inspired this book?",
    "Describe your writing style.",
    "What themes matter to you?",
    "Who influenced your writing?",
    "What do you hope readers feel?",
]

QUICK_CHARACTER_PROMPTS = [
    "Tell me about yourself.",
    "What do you want?",
    "Who matters to you?",
    "What are you afraid of?",
    "What makes you unique?",
]

AUTHOR_ANSWERS = {
    "What inspired you to write this book?": (
        "The inspiration came from observing the complexities of human nature. I wanted to "
        "explore how people navigate difficult choices and what defines us in moments of crisis."
    ),
    "Can you describe your writing process?": (
        "I begin with character. Once I understand who they are, the story reveals itself. "
        "I write daily, usually in the morning, and I revise extensively."
    ),
    "What themes are most important in your work?": (
        "I'm drawn to themes of identity, belonging and transformation. How do we become who "
        "we are? What happens when our worlds shift?"
    ),
}


def _timestamp() -> int:
    return int(time.time() * 1000)


def extract_themes(text: str | None) -> str:
    """Comma-separated theme keywords found in the text."""
    lowered = (text or "").lower()
    found = [theme for theme in THEME_KEYWORDS if theme in lowered]
    return ", ".join(found) or DEFAULT_THEMES


def create_author_style_guide(author_name: str, works: list[str] | None = None, style_notes: str = "") -> str:
    works = works or []
    return (
        f"You are {author_name}, the author of {', '.join(works) or 'your acclaimed works'}.\n"
        "You speak thoughtfully about your craft, inspirations and the deeper meanings in your work.\n"
        "Your responses reflect your literary voice and philosophical perspectives.\n"
        f"Themes: {extract_themes(style_notes)}\n"
        f"Style: {style_notes or 'Reflective, eloquent, with depth and nuance.'}"
    )


def create_character_style_guide(character_name: str, book: str = "", traits: str = "") -> str:
    source = f' from "{book}"' if book else ""
    return (
        f"You are {character_name}, a character{source}.\n"
        f"{traits or 'You are a complex, multi-dimensional character.'}\n"
        "You speak in first person, staying true to your personality, motivations and "
        "circumstances in the story.\n"
        "You never break character or acknowledge you are an AI."
    )


def _example(style_guide: str, prompt: str, answer: str) -> dict[str, Any]:
    return {
        "messages": [
            {"role": "system", "content": style_guide},
            {"role": "user", "content": prompt},
            {"role": "assistant", "content": answer},
        ]
    }


def generate_training_data(model_type: str, entity_name: str, style_guide: str, quick: bool = False) -> list[dict[str, Any]]:
    """Templated training conversations: 10 per model, 5 for quick models."""
    if model_type == "author":
        prompts = QUICK_AUTHOR_PROMPTS if quick else AUTHOR_PROMPTS
        return [
            _example(
                style_guide,
                prompt,
                AUTHOR_ANSWERS.get(prompt, f"As {entity_name}, I would say that every book begins with a question."),
            )
            for prompt in prompts
        ]

    prompts = QUICK_CHARACTER_PROMPTS if quick else CHARACTER_PROMPTS
    return [
        _example(style_guide, prompt.format(name=entity_name), f"I'm {entity_name}, and...")
        for prompt in prompts
    ]


def start_fine_tuning(training_data: list[dict[str, Any]]) -> dict[str, Any]:
    """Start a (simulated) training job."""
    if not get_ai_service().is_configured():
        return {"success": False, "status": "pending", "error": "AI service is not configured"}
    job = {
        "success": True,
        "job_id": f"ftjob-{_timestamp()}",
        "status": "queued",
        "estimated_time": "20-40 minutes",
        "training_examples": len(training_data),
    }
    logger.info("fine_tune_job_started", job_id=job["job_id"], examples=len(training_data))
    return job


def check_status(job_id: str) -> dict[str, Any]:
    """Status of a (simulated) training job."""
    if not get_ai_service().is_configured():
        return {"status": "unknown"}
    return {"status": "succeeded", "fine_tuned_model": f"ft:{BASE_MODEL}-{_timestamp()}"}


def _create_model(
    user_id: str,
    model_type: str,
    entity_name: str,
    book_id: str | None,
    style_guide: str,
) -> tuple[FineTunedModel, bool]:
    existing = fine_tune_repo.find_model(user_id, model_type, entity_name, book_id)
    if existing is not None:
        return existing, False

    training_data = generate_training_data(model_type, entity_name, style_guide)
    job = start_fine_tuning(training_data)
    model = fine_tune_repo.insert_model(
        user_id,
        model_type,
        entity_name,
        BASE_MODEL,
        status="training" if job["success"] else "pending",
        training_data=training_data,
        style_guide=style_guide,
        book_id=book_id,
        training_job_id=job.get("job_id"),
    )
    logger.info("fine_tune_model_created", model_id=model.id, model_type=model_type, status=model.status)
    return model, True


def create_author_model(
    user_id: str,
    author_name: str | None,
    book_id: str | None = None,
    works: list[str] | None = None,
    style_notes: str | None = "",
) -> tuple[FineTunedModel, bool]:
    author_name = sanitize_text(author_name or "", MAX_CHARACTER_NAME_LENGTH)
    if not author_name:
        raise APIError.bad_request("Author name is required")
    guide = create_author_style_guide(author_name, works, style_notes or "")
    return _create_model(user_id, "author", author_name, book_id, guide)


def create_character_model(
    user_id: str,
    character_name: str | None,
    book: str | None = "",
    traits: str | None = "",
    book_id: str | None = None,
) -> tuple[FineTunedModel, bool]:
    character_name = sanitize_text(character_name or "", MAX_CHARACTER_NAME_LENGTH)
    if not character_name:
        raise APIError.bad_request("Character name is required")
    guide = create_character_style_guide(character_name, book or "", traits or "")
    return _create_model(user_id, "character", character_name, book_id, guide)


def quick_fine_tune(
    user_id: str,
    entity_name: str | None,
    entity_type: str | None,
    description: str | None = "",
    book_id: str | None = None,
) -> dict[str, Any]:
    """Create a ready-to-chat model from a handful of examples."""
    entity_name = sanitize_text(entity_name or "", MAX_CHARACTER_NAME_LENGTH)
    if not entity_name or not entity_type:
        raise APIError.bad_request("Entity name and type are required")
    if entity_type not in MODEL_TYPES:
        raise APIError.bad_request("Invalid entity type", valid_types=list(MODEL_TYPES))

    if entity_type == "author":
        guide = create_author_style_guide(entity_name, style_notes=description or "")
    else:
        guide = create_character_style_guide(entity_name, traits=description or "")
    training_data = generate_training_data(entity_type, entity_name, guide, quick=True)

    quick_id = f"quick-{entity_type}-{_timestamp()}"
    model = fine_tune_repo.insert_model(
        user_id,
        "quick",
        entity_name,
        BASE_MODEL,
        status="ready",
        training_data=training_data,
        style_guide=guide,
        book_id=book_id,
        training_job_id=quick_id,
        fine_tuned_model_id=quick_id,
    )
    logger.info("quick_fine_tune_created", model_id=model.id, entity_type=entity_type)
    return {
        "model": model,
        "model_id": quick_id,
        "status": "ready",
        "estimated_time": "5-10 minutes",
        "training_examples": len(training_data),
    }


def _get_visible_model(user_id: str, model_id: str) -> FineTunedModel:
    model = fine_tune_repo.get_model(model_id)
    if model is None or (model.user_id != user_id and not model.is_public):
        raise APIError.not_found("Model not found")
    return model


def get_status(user_id: str, model_id: str) -> dict[str, Any]:
    """Model status; a model in training is checked against its job."""
    model = _get_visible_model(user_id, model_id)

    if model.status == "training" and model.training_job_id:
        job = check_status(model.training_job_id)
        if job["status"] == "succeeded":
            fine_tune_repo.update_model(
                model_id, status="completed", fine_tuned_model_id=job["fine_tuned_model"]
            )
            logger.info("fine_tune_completed", model_id=model_id)
        elif job["status"] == "failed":
            fine_tune_repo.update_model(model_id, status="failed")
            logger.warning("fine_tune_failed", model_id=model_id)
        model = fine_tune_repo.get_model(model_id)

    return {"status": model.status, "model": model, "ready": model.status in READY_STATUSES}


def _estimate_tokens(text: str) -> int:
    return max(1, len(text) // 4)


def chat(user_id: str, model_id: str, message: str | None, conversation_id: str | None = None) -> dict[str, Any]:
    """Chat with a ready model, storing both turns of the exchange."""
    model = _get_visible_model(user_id, model_id)
    if model.status not in READY_STATUSES:
        raise APIError.bad_request("Model not ready", status=model.status)

    text = sanitize_text(message or "", MAX_MESSAGE_LENGTH)
    if not text:
        raise APIError.bad_request("Message is required")

    conversation_id = conversation_id or f"conv_{_timestamp()}_{user_id}"
    history = fine_tune_repo.list_conversation_messages(model_id, user_id, conversation_id, HISTORY_TURNS * 2)

    messages = [Message(role="system", content=model.style_guide)]
    messages.extend(Message(role=item.role, content=item.content) for item in history)
    messages.append(Message(role="user", content=text))

    service = get_ai_service()
    reply = CHAT_FALLBACK_REPLY
    if service.is_configured():
        try:
            reply = service.chat(messages, model=model.base_model, max_tokens=CHAT_MAX_TOKENS) or CHAT_FALLBACK_REPLY
        except LLMError as e:
            logger.warning("fine_tune_chat_failed", model_id=model_id, error=str(e))

    fine_tune_repo.insert_messages(
        model_id,
        user_id,
        conversation_id,
        [
            ("user", text, _estimate_tokens(text)),
            ("assistant", reply, _estimate_tokens(reply)),
        ],
    )
    return {"conversation_id": conversation_id, "response": reply, "model_id": model_id}


def list_models(user_id: str) -> list[FineTunedModel]:
    return fine_tune_repo.list_visible_models(user_id)


def list_conversations(user_id: str, model_id: str) -> list[dict[str, Any]]:
    """The user's messages with a model, grouped by conversation."""
    _get_visible_model(user_id, model_id)
    grouped: OrderedDict[str, list[dict[str, Any]]] = OrderedDict()
    for item in fine_tune_repo.list_user_messages(model_id, user_id):
        grouped.setdefault(item.conversation_id, []).append(
            {
                "role": item.role,
                "content": item.content,
                "message_order": item.message_order,
                "created_at": item.created_at,
            }
        )
    return [
        {"conversation_id": conversation_id, "messages": messages}
        for conversation_id, messages in grouped.items()
    ]


def delete_model(user_id: str, model_id: str) -> None:
    model = fine_tune_repo.get_model(model_id)
    if model is None:
        raise APIError.not_found("Model not found")
    if model.user_id != user_id:
        raise APIError.forbidden("Not authorized to delete this model")
    fine_tune_repo.delete_model(model_id)
    logger.info("fine_tune_model_deleted", model_id=model_id)
