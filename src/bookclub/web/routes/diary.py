"""Reading diary endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import diary
from bookclub.db import diary_repository as diary_repo
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import DiaryCreate, DiaryUpdate

router = APIRouter(prefix="/api/diary", tags=["diary"])


@router.get("/usage")
async def usage(user: UserRecord = Depends(get_current_user)) -> dict:
    """Distinct books with diary entries against the tier limit."""
    return diary.get_usage(user.id)


@router.get("/book/{book_id}")
async def entries_for_book(book_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    entries = diary_repo.list_entries_for_book(user.id, book_id)
    return {"entries": entries, "count": len(entries)}


@router.get("/{entry_id}")
async def get_entry(entry_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return {"entry": diary.get_owned_entry(user.id, entry_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_entry(body: DiaryCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    entry = diary.create_entry(user.id, body.book_id, body.entry_text, body.page_number, body.mood)
    return {"entry": entry}


@router.put("/{entry_id}")
async def update_entry(
    entry_id: str,
    body: DiaryUpdate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    entry = diary.update_entry(user.id, entry_id, body.entry_text, body.page_number, body.mood)
    return {"entry": entry}


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    diary.delete_entry(user.id, entry_id)
    return {"message": "Diary entry deleted"}


@router.post("/summarize/{book_id}")
async def summarize_book(book_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    """Summarize the user's diary entries for a book."""
    return diary.summarize_book(user.id, book_id)
