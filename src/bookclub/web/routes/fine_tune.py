"""Fine-tuned author and character persona endpoints."""

from fastapi import APIRouter, Depends, Response, status

from bookclub.core import fine_tuning
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user, rate_limit
from bookclub.web.schemas import AuthorModelCreate, CharacterModelCreate, ChatMessageRequest, QuickModelCreate

router = APIRouter(prefix="/api/fine-tune", tags=["fine-tune"])


def _created_response(model, created: bool, response: Response) -> dict:
    if not created:
        response.status_code = status.HTTP_200_OK
        return {"message": "Model already exists", "model": model}
    return {"message": "Fine-tuning started", "model": model}


@router.post("/author", status_code=status.HTTP_201_CREATED)
async def create_author_model(
    body: AuthorModelCreate,
    response: Response,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Create a persona that writes in an author's style."""
    model, created = fine_tuning.create_author_model(
        user.id, body.author_name, body.book_id, body.works, body.style_notes
    )
    return _created_response(model, created, response)


@router.post("/character", status_code=status.HTTP_201_CREATED)
async def create_character_model(
    body: CharacterModelCreate,
    response: Response,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    model, created = fine_tuning.create_character_model(
        user.id, body.character_name, body.book, body.traits, body.book_id
    )
    return _created_response(model, created, response)


@router.post("/quick", status_code=status.HTTP_201_CREATED)
async def quick_fine_tune(body: QuickModelCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    return fine_tuning.quick_fine_tune(
        user.id, body.entity_name, body.entity_type, body.description, body.book_id
    )


@router.get("/status/{model_id}")
async def model_status(model_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return fine_tuning.get_status(user.id, model_id)


@router.post("/chat/{model_id}", dependencies=[Depends(rate_limit("ai"))])
async def chat(
    model_id: str,
    body: ChatMessageRequest,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Chat with a completed or ready model."""
    return fine_tuning.chat(user.id, model_id, body.message, body.conversation_id)


@router.get("/models")
async def list_models(user: UserRecord = Depends(get_current_user)) -> dict:
    items = fine_tuning.list_models(user.id)
    return {"models": items, "count": len(items)}


@router.get("/conversations/{model_id}")
async def list_conversations(model_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return {"conversations": fine_tuning.list_conversations(user.id, model_id)}


@router.delete("/{model_id}")
async def delete_model(model_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    fine_tuning.delete_model(user.id, model_id)
    return {"message": "Model deleted"}
