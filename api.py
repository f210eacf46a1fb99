import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from book import BookUpdate
from config import settings
from library import Library, NotFoundError, ValidationError, sample_books

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


# --- Models ---
class BookModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    author: str
    genre: str
    is_borrowed: bool = Field(alias="isBorrowed")
    borrower_id: str | None = Field(default=None, alias="borrowerId")
    due_date: str | None = Field(default=None, alias="dueDate")


class BookCreateModel(BaseModel):
    title: str | None = Field(default=None, description="Required, non-empty")
    author: str | None = Field(default=None, description="Required, non-empty")
    genre: str | None = Field(default=None, description="Required, non-empty")


class BookUpdateModel(BaseModel):
    """Only the mutable fields; anything else in the payload is ignored."""
    title: str | None = None
    author: str | None = None
    genre: str | None = None


class BorrowRequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    borrower_id: str | None = Field(default=None, alias="borrowerId")


class DeleteResponseModel(BaseModel):
    message: str
    id: str


# --- Dependencies ---
def get_library(request: Request) -> Library:
    return request.app.state.library


# --- Book routes ---
router = APIRouter()


@router.get("", response_model=List[BookModel], response_model_exclude_none=True)
@router.get("/", response_model=List[BookModel], response_model_exclude_none=True, include_in_schema=False)
def list_books(library: Library = Depends(get_library)):
    """List every book in catalog order."""
    return [BookModel(**book.to_dict()) for book in library.list_books()]


@router.post("", response_model=BookModel, response_model_exclude_none=True, status_code=201)
@router.post("/", response_model=BookModel, response_model_exclude_none=True, status_code=201,
             include_in_schema=False)
def add_book(payload: BookCreateModel, library: Library = Depends(get_library)):
    """Add a new book; title, author and genre are required."""
    try:
        book = library.add_book(payload.title, payload.author, payload.genre)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookModel(**book.to_dict())


@router.get("/recommendations", response_model=List[BookModel], response_model_exclude_none=True)
def get_recommendations(library: Library = Depends(get_library)):
    """Up to three books that are currently available."""
    return [BookModel(**book.to_dict()) for book in library.get_recommendations()]


@router.get("/{book_id}", response_model=BookModel, response_model_exclude_none=True)
def get_book(book_id: str, library: Library = Depends(get_library)):
    book = library.find_book(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found.")
    return BookModel(**book.to_dict())


@router.put("/{book_id}", response_model=BookModel, response_model_exclude_none=True)
def update_book(book_id: str, update: BookUpdateModel, library: Library = Depends(get_library)):
    """Update the title, author and/or genre of a book."""
    changes = BookUpdate(title=update.title, author=update.author, genre=update.genre)
    try:
        book = library.update_book(book_id, changes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookModel(**book.to_dict())


@router.delete("/{book_id}", response_model=DeleteResponseModel)
def delete_book(book_id: str, library: Library = Depends(get_library)):
    if not library.remove_book(book_id):
        raise HTTPException(status_code=404, detail="Book not found.")
    return DeleteResponseModel(message="Book removed.", id=book_id)


@router.post("/{book_id}/borrow", response_model=BookModel, response_model_exclude_none=True)
def borrow_book(book_id: str, payload: Optional[BorrowRequestModel] = None,
                library: Library = Depends(get_library)):
    """Lend a book to a borrower for seven days."""
    borrower_id = payload.borrower_id if payload else None
    with library.locked():
        try:
            book = library.borrow_book(book_id, borrower_id)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        exists = book is not None or library.find_book(book_id) is not None
    if book is None:
        if not exists:
            raise HTTPException(status_code=404, detail="Book not found.")
        raise HTTPException(status_code=409, detail="Book is not available for borrowing.")
    return BookModel(**book.to_dict())


@router.post("/{book_id}/return", response_model=BookModel, response_model_exclude_none=True)
def return_book(book_id: str, library: Library = Depends(get_library)):
    with library.locked():
        book = library.return_book(book_id)
        exists = book is not None or library.find_book(book_id) is not None
    if book is None:
        if not exists:
            raise HTTPException(status_code=404, detail="Book not found.")
        raise HTTPException(status_code=409, detail="Book is not currently borrowed.")
    return BookModel(**book.to_dict())


# --- Application ---
def create_app(library: Optional[Library] = None) -> FastAPI:
    """Build the API around an explicit catalog; a fresh one is created when omitted."""
    if library is None:
        library = Library(sample_books() if settings.seed_sample_books else None)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.app_name} ready with {len(app.state.library.list_books())} books")
        yield

    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)
    app.state.library = library

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health(library: Library = Depends(get_library)):
        """Lightweight health endpoint with catalog counts."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.app_version,
            **library.get_statistics(),
        }

    app.include_router(router, prefix=settings.api_prefix, tags=["books"])
    return app


app = create_app()
