import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from services.api.app.webhooks import WebhookHandler
from services.collector.app.feed import NewsApiClient
from services.collector.app.ingest import Ingestor
from shared.app_logging.logger import CorrelationContext, get_logger, setup_logging
from shared.config.settings import ApiSettings, get_settings
from shared.database.crud.articles import ArticleStore
from shared.database.crud.users import UserStore
from shared.database.search import SearchCriteria
from shared.database.session import Database
from shared.schemas.article import ArticleOut
from shared.utils.errors import AppError, BadRequest, NotFound
from shared.utils.health import create_api_health_checker

SERVICE_NAME = "newsdesk"

setup_logging(SERVICE_NAME)
logger = get_logger(f"{SERVICE_NAME}.api")


def _serialize(articles) -> List[Dict[str, Any]]:
    return [ArticleOut.from_row(article).to_json() for article in articles]


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    owns_database = state.database is None

    if owns_database:
        settings = get_settings()
        state.database = Database(settings.database.database_url, echo=settings.database.echo)
        if state.database.connect():
            try:
                state.database.init_db()
            except Exception:
                logger.warning("Serving without schema initialisation; store operations may fail")
        if state.ingest_on_startup and state.ingestor is None:
            state.ingestor = Ingestor(
                feed=NewsApiClient.from_settings(settings.news_api),
                store=ArticleStore(state.database, tz=state.search_tz),
                categories=settings.news_api.categories,
            )

    task = None
    if state.ingest_on_startup and state.ingestor is not None:
        task = asyncio.create_task(state.ingestor.ingest_all())
        logger.info("Launched startup ingestion")
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        if owns_database:
            state.database.dispose()
        logger.info("API shut down cleanly")


def get_article_store(request: Request) -> ArticleStore:
    return ArticleStore(request.app.state.database, tz=request.app.state.search_tz)


def get_webhook_handler(request: Request) -> WebhookHandler:
    return WebhookHandler(UserStore(request.app.state.database))


async def get_like_user_id(request: Request) -> Optional[str]:
    """``userId`` from a JSON object body; None for any other body."""
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict) or not body.get("userId"):
        return None
    return str(body["userId"])


def create_app(
    database: Optional[Database] = None,
    ingestor: Optional[Ingestor] = None,
    api_settings: Optional[ApiSettings] = None,
) -> FastAPI:
    """
    Build the API application.

    When ``database`` is omitted the lifespan builds one from the environment,
    connects it and disposes it on shutdown. A caller-provided handle is used
    as-is and left open.
    """
    api_settings = api_settings or ApiSettings()

    app = FastAPI(
        title="Newsdesk API",
        description="Headlines ingestion, search, likes and identity-provider user sync.",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.ingestor = ingestor
    app.state.search_tz = api_settings.search_tzinfo
    app.state.ingest_on_startup = api_settings.ingest_on_startup

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        with CorrelationContext(request.headers.get("X-Request-ID")) as correlation_id:
            response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        return response

    @app.get("/healthz")
    def health(request: Request):
        """Comprehensive health check endpoint."""
        return create_api_health_checker(SERVICE_NAME, request.app.state.database).run_all_checks()

    @app.get("/healthz/live")
    def liveness_check():
        """Liveness check endpoint."""
        return {"status": "alive", "service": SERVICE_NAME}

    @app.get("/healthz/ready")
    def readiness_check(request: Request):
        """Readiness check endpoint."""
        return create_api_health_checker(SERVICE_NAME, request.app.state.database).readiness()

    @app.get("/metrics")
    def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/api/webhooks")
    async def receive_webhook(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
        """Sync the user store from an identity-provider event."""
        try:
            payload = await request.json()
            logger.info(f"Received webhook payload: {payload}")
            body = handler.handle(payload)
        except ValueError:
            return JSONResponse(status_code=400, content={"success": False, "message": "Invalid JSON body"})
        except AppError as e:
            logger.error(f"Error processing webhook: {e.message}")
            return JSONResponse(status_code=e.status_code, content={"success": False, "message": e.message})
        except Exception as e:
            logger.exception("Error processing webhook")
            return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
        return body

    @app.post("/articles/{article_id}/like")
    def like_article(
        article_id: str,
        user_id: Optional[str] = Depends(get_like_user_id),
        store: ArticleStore = Depends(get_article_store),
    ):
        if not user_id:
            return _message(400, "userId is required")
        try:
            likes_count = store.like(article_id, user_id)
        except NotFound as e:
            return _message(404, e.message)
        except Exception as e:
            logger.error(f"Error liking article: {e}")
            return _message(500, "Failed to like article")
        return {"likesCount": likes_count}

    @app.post("/articles/{article_id}/unlike")
    def unlike_article(
        article_id: str,
        user_id: Optional[str] = Depends(get_like_user_id),
        store: ArticleStore = Depends(get_article_store),
    ):
        if not user_id:
            return _message(400, "userId is required")
        try:
            likes_count = store.unlike(article_id, user_id)
        except NotFound as e:
            return _message(404, e.message)
        except Exception as e:
            logger.error(f"Error unliking article: {e}")
            return _message(500, "Failed to unlike article")
        return {"likesCount": likes_count}

    @app.get("/search")
    def search_articles(
        title: Optional[str] = None,
        country: Optional[str] = None,
        category: Optional[str] = None,
        date: Optional[str] = None,
        store: ArticleStore = Depends(get_article_store),
    ):
        try:
            criteria = SearchCriteria.from_params(title=title, country=country, category=category, date=date)
            results = store.search(criteria)
        except BadRequest as e:
            return _message(400, e.message)
        except NotFound as e:
            return _message(404, e.message)
        except Exception as e:
            logger.error(f"Error searching articles: {e}")
            return _message(500, "An error occurred while searching for articles")
        return _serialize(results)

    @app.get("/headlines")
    def get_headlines(store: ArticleStore = Depends(get_article_store)):
        try:
            articles = store.find_by_category("general")
        except Exception as e:
            logger.error(f"Error fetching headlines: {e}")
            return _error(500, "Failed to fetch headlines")
        return [
            {**ArticleOut.from_row(article).to_json(), "likeCount": article.like_count}
            for article in articles
        ]

    def _category_articles(store: ArticleStore, category: str):
        try:
            return _serialize(store.find_by_category(category))
        except Exception as e:
            logger.error(f"Error fetching {category} articles: {e}")
            return _error(500, f"Failed to fetch {category} articles")

    @app.get("/sports")
    def get_sports(store: ArticleStore = Depends(get_article_store)):
        return _category_articles(store, "sports")

    @app.get("/health")
    def get_health(store: ArticleStore = Depends(get_article_store)):
        return _category_articles(store, "health")

    @app.get("/business")
    def get_business(store: ArticleStore = Depends(get_article_store)):
        return _category_articles(store, "business")

    @app.get("/technology")
    def get_technology(store: ArticleStore = Depends(get_article_store)):
        return _category_articles(store, "technology")

    @app.get("/categories/{category}")
    def get_category(category: str, store: ArticleStore = Depends(get_article_store)):
        return _category_articles(store, category)

    return app


app = create_app()


if __name__ == "__main__":
    settings = ApiSettings()
    uvicorn.run(app, host=settings.host, port=settings.port)
