import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends, FastAPI, Form, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from book_notes.config import Settings, configure_logging, settings as default_settings
from book_notes.exceptions import BookValidationError, RatingConstraintError, StoreError
from book_notes.library import Library
from book_notes.services.covers import CoverResolver, create_cover_resolver
from book_notes.services.http_client import OptimizedHTTPClient
from book_notes.storage import BookStore, create_store

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def get_library(request: Request) -> Library:
    """Dependency returning the Library bound to this application."""
    return request.app.state.library


def render(request: Request, name: str, context: Dict[str, Any], status_code: int = 200) -> Response:
    context = {"app_name": request.app.state.settings.app_name, "is_index_page": False, **context}
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def render_errors(request: Request, messages: List[str], status_code: int) -> Response:
    errors = [{"message": message} for message in messages]
    return render(request, "error.html", {"errors": errors}, status_code=status_code)


def redirect_home() -> RedirectResponse:
    # 303 so the browser follows the form POST with a GET
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BookStore] = None,
    cover_resolver: Optional[CoverResolver] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the web application.

    The store and the HTTP client are opened when the application starts and
    closed when it shuts down. Tests pass their own store, and either a
    ready-made cover resolver or an httpx transport for the lookup service.
    """
    app_settings = settings or default_settings
    book_store = store or create_store(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.log_level)
        book_store.open()
        http_client = OptimizedHTTPClient(timeout=app_settings.google_books_timeout, transport=http_transport)
        covers = cover_resolver or create_cover_resolver(app_settings, http_client)
        app.state.library = Library(book_store, covers)
        logger.info("%s started with %s store", app_settings.app_name, book_store.name)
        try:
            yield
        finally:
            await http_client.close()
            book_store.close()

    app = FastAPI(title=app_settings.app_name, lifespan=lifespan)
    app.state.settings = app_settings
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # --- Error handlers ---
    @app.exception_handler(BookValidationError)
    async def validation_error_handler(request: Request, exc: BookValidationError):
        return render_errors(request, exc.messages, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(RatingConstraintError)
    async def rating_constraint_handler(request: Request, exc: RatingConstraintError):
        return render_errors(request, [str(exc)], status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Store operation failed for %s %s: %s", request.method, request.url.path, exc)
        return render_errors(request, [str(exc)], status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("path", "query", "body"))
            messages.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
        return render_errors(request, messages, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return render_errors(request, [str(exc.detail)], exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return render_errors(request, [str(exc) or exc.__class__.__name__], status.HTTP_500_INTERNAL_SERVER_ERROR)

    # --- Health check ---
    @app.get("/health")
    async def health(library: Library = Depends(get_library)):
        return JSONResponse({
            "status": "healthy",
            "store": library.store.name,
            "total_books": library.count(),
        })

    # --- Pages ---
    @app.get("/")
    async def index(
        request: Request,
        sort: Optional[str] = None,
        search: Optional[str] = None,
        library: Library = Depends(get_library),
    ):
        books = await library.list_books(sort=sort, search=search)
        return render(request, "index.html", {
            "books": books,
            "sort": sort or "",
            "search": search or "",
            "no_results": not books,
            "is_index_page": True,
        })

    @app.get("/books/add")
    def add_book_form(request: Request):
        return render(request, "add_book.html", {})

    @app.post("/books")
    def add_book(
        title: str = Form(""),
        author: str = Form(""),
        rating: str = Form(""),
        isbn: str = Form(""),
        notes: str = Form(""),
        library: Library = Depends(get_library),
    ):
        library.add_book({"title": title, "author": author, "rating": rating, "isbn": isbn, "notes": notes})
        return redirect_home()

    @app.get("/books/edit/{book_id}")
    def edit_book_form(request: Request, book_id: int, library: Library = Depends(get_library)):
        # An unknown id renders an empty form
        book = library.get_book(book_id)
        return render(request, "edit_book.html", {"book": book, "book_id": book_id})

    @app.post("/books/edit/{book_id}")
    def edit_book(
        book_id: int,
        title: str = Form(""),
        author: str = Form(""),
        rating: str = Form(""),
        isbn: str = Form(""),
        notes: str = Form(""),
        library: Library = Depends(get_library),
    ):
        library.update_book(book_id, {"title": title, "author": author, "rating": rating, "isbn": isbn, "notes": notes})
        return redirect_home()

    @app.post("/books/delete/{book_id}")
    def delete_book(book_id: int, library: Library = Depends(get_library)):
        library.remove_book(book_id)
        return redirect_home()

    return app


app = create_app()
