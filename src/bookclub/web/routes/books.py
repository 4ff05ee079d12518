"""Book catalog endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status

from bookclub.core import books
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import BookCreate

router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("/search")
async def search_books(q: str | None = None) -> dict:
    """Search Google Books by free text."""
    results = await books.search_books(q)
    return {"books": results, "count": len(results)}


@router.get("")
async def list_books(
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
    genre: str | None = None,
) -> dict:
    """List catalog books, newest first."""
    items = books.list_books(limit=limit, offset=offset, genre=genre)
    return {"books": items, "count": len(items)}


@router.get("/{book_id}")
async def get_book(book_id: str) -> dict:
    return {"book": books.get_book(book_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_book(
    body: BookCreate,
    response: Response,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Add a book; a known Google Books volume returns the existing row."""
    book, created = books.add_book(body.model_dump())
    if not created:
        response.status_code = status.HTTP_200_OK
    return {"book": book, "created": created}


@router.patch("/{book_id}/rating")
async def recompute_rating(book_id: str) -> dict:
    """Recompute the rating aggregates from reviews."""
    return {"book": books.recompute_rating(book_id)}
