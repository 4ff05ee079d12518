"""Pydantic schemas for the Web API.

Request bodies accept both camelCase and snake_case keys. Most fields are
optional here: required-field checks and their error messages live in the
core modules so that every client gets the same 400 responses.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Base for request bodies: camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    timestamp: str
    environment: str
    services: dict[str, str]


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class RegisterRequest(RequestModel):
    """Request body for registration."""

    email: str = Field(default="", max_length=254)
    username: str = Field(default="", max_length=100)
    password: str = Field(default="", max_length=200)


class LoginRequest(RequestModel):
    """Request body for login."""

    email: str | None = None
    password: str | None = None


class RefreshRequest(RequestModel):
    refresh_token: str | None = None


class SessionResponse(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """Profile of the logged-in user."""

    id: str
    email: str
    username: str
    bio: str
    avatar: str
    favorite_genres: list[str]
    created_at: str

    model_config = {"from_attributes": True}


class SubscriptionSummary(BaseModel):
    tier: str
    status: str
    cancel_at_period_end: bool = False
    current_period_end: str | None = None


class AuthResponse(BaseModel):
    """Response for register and login."""

    user: UserResponse
    subscription: SubscriptionSummary
    session: SessionResponse


class MeResponse(BaseModel):
    user: UserResponse
    subscription: SubscriptionSummary


# =============================================================================
# USER SCHEMAS
# =============================================================================


class ProfileUpdate(RequestModel):
    """Request body for profile updates; omitted fields are left unchanged."""

    bio: str | None = Field(default=None, max_length=1000)
    avatar: str | None = Field(default=None, max_length=500)
    favorite_genres: list[str] | None = None


class ReadingListAdd(RequestModel):
    book_id: str | None = None


# =============================================================================
# BOOK AND REVIEW SCHEMAS
# =============================================================================


class BookCreate(RequestModel):
    """Request body for adding a book to the catalog."""

    google_books_id: str | None = None
    title: str | None = None
    authors: list[str] = Field(default_factory=list)
    description: str = ""
    isbn: str | None = None
    categories: list[str] = Field(default_factory=list)
    cover_image: str | None = None
    page_count: int | None = None
    published_date: str | None = None


class ReviewCreate(RequestModel):
    """Request body for a book review."""

    book_id: str | None = Field(default=None, validation_alias=AliasChoices("bookId", "book_id", "book"))
    rating: int | None = None
    title: str | None = ""
    content: str | None = None


class ReviewUpdate(RequestModel):
    rating: int | None = None
    title: str | None = None
    content: str | None = None


class CommentCreate(RequestModel):
    content: str | None = None


# =============================================================================
# BOOKLIST AND DIARY SCHEMAS
# =============================================================================


class BooklistCreate(RequestModel):
    """Request body for adding a book to the booklist."""

    book_id: str | None = None
    rating: str | None = None
    review: str | None = Field(default="", validation_alias=AliasChoices("review", "reviewText", "review_text"))
    is_favorite: bool = False


class BooklistUpdate(RequestModel):
    rating: str | None = None
    review: str | None = Field(default=None, validation_alias=AliasChoices("review", "reviewText", "review_text"))
    is_favorite: bool | None = None


class ReviewSummaryRequest(RequestModel):
    review_text: str | None = None


class DiaryCreate(RequestModel):
    """Request body for a diary entry."""

    book_id: str | None = None
    entry_text: str | None = None
    page_number: int | None = None
    mood: str | None = None


class DiaryUpdate(RequestModel):
    entry_text: str | None = None
    page_number: int | None = None
    mood: str | None = None


# =============================================================================
# PAYMENT AND AFFILIATE SCHEMAS
# =============================================================================


class SubscribeRequest(RequestModel):
    tier: str | None = None
    payment_method_id: str | None = None


class CancelRequest(RequestModel):
    immediately: bool = False


class UpdateTierRequest(RequestModel):
    tier: str | None = Field(default=None, validation_alias=AliasChoices("newTier", "new_tier", "tier"))


class TrackClickRequest(RequestModel):
    book_id: str | None = None
    platform: str | None = None


# =============================================================================
# COMMUNITY SCHEMAS
# =============================================================================


class SpaceCreate(RequestModel):
    """Request body for creating a space."""

    name: str | None = None
    description: str | None = ""
    type: str = "permanent"
    visibility: str = "public"
    expires_at: str | None = None
    video_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("videoEnabled", "video_enabled", "hasVideoEnabled"),
    )


class VideoToggle(RequestModel):
    enabled: bool | None = Field(default=None, validation_alias=AliasChoices("enabled", "videoEnabled", "video_enabled"))


class MessageCreate(RequestModel):
    content: str | None = None


class ForumCreate(RequestModel):
    title: str | None = None
    description: str | None = ""
    category: str | None = "general"


# =============================================================================
# ENGAGEMENT SCHEMAS
# =============================================================================


class GoalCreate(RequestModel):
    """Request body for a reading goal."""

    goal_type: str | None = None
    target_value: int | None = None
    time_period: str | None = None


class GoalProgress(RequestModel):
    current_progress: int | None = None


class ChallengeCreate(RequestModel):
    """Request body for a community challenge."""

    title: str | None = None
    description: str | None = None
    challenge_type: str | None = None
    target_value: int | None = None
    start_date: str | None = None
    end_date: str | None = None
    difficulty: str | None = None
    reward_points: int | None = None


class ChallengeProgress(RequestModel):
    progress: int | None = None


class AchievementCheck(RequestModel):
    trigger_type: str | None = None
    value: int = 0


# =============================================================================
# AI SCHEMAS
# =============================================================================


class AIChatCreate(RequestModel):
    """Request body for a user-defined AI chat."""

    character_name: str | None = None
    character_type: str | None = None
    context: str | None = Field(default="", validation_alias=AliasChoices("context", "bookTitle", "book_title"))
    video_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("videoEnabled", "video_enabled", "enableVideo"),
    )


class ChatMessageRequest(RequestModel):
    """A chat message, optionally continuing a conversation."""

    message: str | None = Field(default=None, validation_alias=AliasChoices("message", "text"))
    conversation_id: str | None = None


class AuthorModelCreate(RequestModel):
    author_name: str | None = None
    book_id: str | None = None
    works: list[str] | None = None
    style_notes: str | None = ""


class CharacterModelCreate(RequestModel):
    character_name: str | None = None
    book_id: str | None = None
    book: str | None = ""
    traits: str | None = Field(
        default="",
        validation_alias=AliasChoices("traits", "characterDescription", "character_description"),
    )


class QuickModelCreate(RequestModel):
    entity_name: str | None = None
    entity_type: str | None = Field(default=None, validation_alias=AliasChoices("entityType", "entity_type", "type"))
    description: str | None = ""
    book_id: str | None = None


class TextRequest(RequestModel):
    """Free text for the AI utilities."""

    text: str | None = None
    title: str | None = ""
    max_words: int | None = Field(
        default=None,
        validation_alias=AliasChoices("maxWords", "max_words", "maxLength", "max_length"),
    )


class NotificationRequest(RequestModel):
    type: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
