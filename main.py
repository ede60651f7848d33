import logging
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from config import Settings, get_settings
from database import create_db_engine, make_session_factory
from models import TransactionType
from schemas import (
    CategoryOut,
    MonthlySummaryOut,
    OverviewOut,
    TransactionIn,
    TransactionOut,
    TransactionRowOut,
)
from services import (
    CategoryService,
    ConstraintViolation,
    MonthlySummary,
    OverviewService,
    StorageUnavailable,
    SummaryService,
    TransactionService,
)
from viewmodels import TransactionRow, build_rows

logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

router = APIRouter()


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _row_out(row: TransactionRow) -> TransactionRowOut:
    base = TransactionOut.model_validate(row.transaction)
    return TransactionRowOut(
        **base.model_dump(),
        category_name=row.category_name,
        category_key=row.category_key,
    )


def _summary_out(summary: MonthlySummary) -> MonthlySummaryOut:
    return MonthlySummaryOut.model_validate(summary)


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "version": APP_VERSION}


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(
    type: Optional[TransactionType] = None, db: Session = Depends(get_db)
):
    service = CategoryService(db)
    categories = service.list_by_type(type) if type else service.list_all()
    return [CategoryOut.model_validate(c) for c in categories]


@router.get("/transactions", response_model=list[TransactionRowOut])
def list_transactions(db: Session = Depends(get_db)):
    transactions = TransactionService(db).list()
    categories = CategoryService(db).list_all()
    return [_row_out(row) for row in build_rows(transactions, categories)]


@router.post("/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(
    data: TransactionIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    service = TransactionService(
        db, enforce_category_type=settings.enforce_category_type
    )
    try:
        txn = service.create(data)
    except ConstraintViolation as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TransactionOut.model_validate(txn)


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    TransactionService(db).delete(transaction_id)
    return Response(status_code=204)


@router.get("/overview", response_model=OverviewOut)
def overview(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings_dep)
):
    result = OverviewService(db, settings.timezone).retrieve_all()
    return OverviewOut(
        transactions=[_row_out(row) for row in result.rows()],
        categories=[CategoryOut.model_validate(c) for c in result.categories],
        monthly_summary=_summary_out(result.monthly_summary),
    )


@router.get("/summary", response_model=MonthlySummaryOut)
def summary(
    year: Optional[int] = Query(default=None, ge=1970, le=3000),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    service = SummaryService(db, settings.timezone)
    if year is None and month is None:
        return _summary_out(service.current_month())
    if year is None or month is None:
        raise HTTPException(
            status_code=400, detail="year and month must be given together"
        )
    return _summary_out(service.for_month(year, month))


def _storage_unavailable(_request: Request, exc: StorageUnavailable) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker[Session]] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)
    if session_factory is None:
        session_factory = make_session_factory(create_db_engine(settings.database_url))

    app = FastAPI(title="Finance Tracker", version=APP_VERSION)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.add_exception_handler(StorageUnavailable, _storage_unavailable)
    app.include_router(router)
    logger.info(
        f"app_created: timezone={settings.timezone or 'local'} "
        f"enforce_category_type={settings.enforce_category_type}"
    )
    return app
