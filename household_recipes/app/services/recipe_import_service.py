import logging
import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from household_recipes.app.db import models
from household_recipes.app.services import url_recipe_parser
from household_recipes.app.services.url_parsing.html_fetcher import validate_url
from household_recipes.app.services.url_parsing.models import ExtractedRecipe

logger = logging.getLogger(__name__)

Scraper = Callable[[str], Awaitable[ExtractedRecipe]]

IMPORTING_TITLE = "Importing…"
NO_DATA_MESSAGE = "No usable recipe data found."
BLOCKED_MESSAGE = "This site blocked automated access. Try another URL or add the recipe manually."

BLOCKED_TITLE_RE = re.compile(r"access denied|forbidden", re.IGNORECASE)
HTTP_STATUS_RE = re.compile(r"\bHTTP\s+(\d{3})\b")


class RecipeImportStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


TERMINAL_STATUSES = {RecipeImportStatus.SUCCESS.value, RecipeImportStatus.PARTIAL.value, RecipeImportStatus.FAILED.value}


class ImportNotFoundError(LookupError):
    pass


def http_status_message(status_code: int) -> str:
    return f"I was not able to import this URL (HTTP status {status_code}). Please try another URL."


def import_error_message(exc: Exception) -> str:
    status_code = getattr(exc, "status_code", None)
    if status_code is None:
        match = HTTP_STATUS_RE.search(str(exc))
        if match:
            status_code = int(match.group(1))
    if status_code is not None:
        return http_status_message(status_code)
    return str(exc) or exc.__class__.__name__


def create_import(db: Session, workspace_id: str, url: str) -> models.RecipeImport:
    """Validate the URL, then store a placeholder draft recipe and a queued import pointing at it."""
    url = (url or "").strip()
    validate_url(url)

    recipe = models.Recipe(
        id=str(uuid.uuid4()),
        workspace_id=workspace_id,
        title=IMPORTING_TITLE,
        source_url=url,
        is_draft=True,
    )
    job = models.RecipeImport(
        id=str(uuid.uuid4()),
        workspace_id=workspace_id,
        source_url=url,
        status=RecipeImportStatus.QUEUED.value,
        recipe_id=recipe.id,
    )
    db.add(recipe)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_import(db: Session, import_id: str, workspace_id: Optional[str] = None) -> Optional[models.RecipeImport]:
    job = db.get(models.RecipeImport, import_id)
    if job is None or (workspace_id is not None and job.workspace_id != workspace_id):
        return None
    return job


def claim_import(db: Session, import_id: str) -> bool:
    """Move a queued import to running. Only one caller can win."""
    result = db.execute(
        update(models.RecipeImport)
        .where(
            models.RecipeImport.id == import_id,
            models.RecipeImport.status == RecipeImportStatus.QUEUED.value,
        )
        .values(status=RecipeImportStatus.RUNNING.value, error=None, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def classify(scraped: ExtractedRecipe) -> Tuple[str, Optional[str]]:
    if scraped.title and BLOCKED_TITLE_RE.search(scraped.title):
        return RecipeImportStatus.FAILED.value, BLOCKED_MESSAGE
    if scraped.title and (scraped.ingredients or scraped.directions):
        return RecipeImportStatus.SUCCESS.value, None
    if scraped.title or scraped.image_url or scraped.description:
        return RecipeImportStatus.PARTIAL.value, None
    return RecipeImportStatus.FAILED.value, NO_DATA_MESSAGE


def _apply_scraped_fields(recipe: models.Recipe, scraped: ExtractedRecipe) -> None:
    fields = {
        "title": scraped.title,
        "description": scraped.description,
        "image_url": scraped.image_url,
        "source_url": scraped.source_url,
        "source_name": scraped.source_name,
        "prep_time_minutes": scraped.prep_time_minutes,
        "cook_time_minutes": scraped.cook_time_minutes,
        "total_time_minutes": scraped.total_time_minutes,
        "servings": scraped.servings,
        "yields": scraped.yields,
        "directions": scraped.directions,
    }
    for name, value in fields.items():
        if value is None or value == "":
            continue
        setattr(recipe, name, value)


def _replace_ingredient_lines(db: Session, recipe: models.Recipe, lines) -> None:
    recipe.ingredient_lines.clear()
    # old rows must be gone before new positions are inserted
    db.flush()
    for position, text in enumerate(lines, start=1):
        recipe.ingredient_lines.append(models.IngredientLine(position=position, text=text))


def _persist_result(
    db: Session, job: models.RecipeImport, scraped: ExtractedRecipe, status: str, error: Optional[str]
) -> None:
    recipe = db.get(models.Recipe, job.recipe_id) if job.recipe_id else None
    if recipe is None:
        recipe = models.Recipe(
            id=str(uuid.uuid4()),
            workspace_id=job.workspace_id,
            title=IMPORTING_TITLE,
            source_url=job.source_url,
            is_draft=True,
        )
        db.add(recipe)
        job.recipe_id = recipe.id

    if status != RecipeImportStatus.FAILED.value:
        _apply_scraped_fields(recipe, scraped)
        _replace_ingredient_lines(db, recipe, scraped.ingredients)
    recipe.is_draft = status != RecipeImportStatus.SUCCESS.value

    job.status = status
    job.error = error
    job.raw_payload = scraped.model_dump(mode="json")
    db.commit()


def _persist_failure(db: Session, import_id: str, message: str) -> None:
    job = db.get(models.RecipeImport, import_id)
    if job is None or job.status in TERMINAL_STATUSES:
        return
    job.status = RecipeImportStatus.FAILED.value
    job.error = message
    db.commit()


async def run_import(db: Session, import_id: str, scraper: Optional[Scraper] = None) -> models.RecipeImport:
    """Run one queued import to a terminal status.

    A no-op when the import is already past ``queued``. Scrape and persistence
    failures are stored on the import as ``failed`` and then re-raised.
    """
    job = db.get(models.RecipeImport, import_id)
    if job is None:
        raise ImportNotFoundError(f"Import {import_id} not found")
    if not claim_import(db, import_id):
        logger.info("Import %s is already %s; skipping", import_id, job.status)
        db.refresh(job)
        return job

    db.refresh(job)
    scrape = scraper or url_recipe_parser.scrape_url
    try:
        scraped = await scrape(job.source_url)
        status, error = classify(scraped)
        _persist_result(db, job, scraped, status, error)
    except Exception as exc:
        message = import_error_message(exc)
        logger.warning("Import %s failed: %s", import_id, message)
        db.rollback()
        _persist_failure(db, import_id, message)
        raise

    logger.info("Import %s finished with status %s", import_id, status)
    db.refresh(job)
    return job
