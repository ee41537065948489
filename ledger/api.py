import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .errors import (
    InvalidTransferError,
    LedgerContractError,
    UserNotFoundError,
)
from .log import configure_logging
from .models import CreateTransferRequest, LedgerSummary, ShopsResponse, TransactionRecord
from .service import InMemoryStorage, LedgerService

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?)(0[xX][0-9a-fA-F]+|\d+)")

router = APIRouter()


def parse_user_id(raw: Optional[str]) -> int:
    """Read a user id the way parseInt does: leading decimal or 0x-prefixed hex digits, 0 when absent or unparseable."""
    if not raw:
        return 0
    match = _LEADING_INT.match(raw)
    if not match:
        return 0
    sign, digits = match.groups()
    value = int(digits, 16) if digits[:2].lower() == "0x" else int(digits)
    return -value if sign == "-" else value


def get_service(request: Request) -> LedgerService:
    return request.app.state.ledger_service


def session_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(request.app.state.settings.SESSION_COOKIE_NAME)


def current_user_id(raw: Optional[str] = Depends(session_cookie)) -> int:
    return parse_user_id(raw)


@router.get("/health", tags=["System"])
def health_check(request: Request):
    return {"status": "healthy", "service": request.app.state.settings.APP_NAME}


@router.get("/pointsz", response_model=LedgerSummary, tags=["Ledger"])
def session_ledger(
    user_id: int = Depends(current_user_id),
    service: LedgerService = Depends(get_service),
) -> LedgerSummary:
    try:
        return service.get_ledger_summary(user_id)
    except LedgerContractError as e:
        logger.error("Ledger contract violation for user %s: %s", user_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/users/{user_id}/ledger", response_model=LedgerSummary, tags=["Ledger"])
def user_ledger(user_id: int, service: LedgerService = Depends(get_service)) -> LedgerSummary:
    try:
        service.get_user(user_id)
        return service.get_ledger_summary(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")
    except LedgerContractError as e:
        logger.error("Ledger contract violation for user %s: %s", user_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/shops", response_model=ShopsResponse, tags=["Shops"])
def list_shops(service: LedgerService = Depends(get_service)) -> ShopsResponse:
    return ShopsResponse(shops=service.rank_shops())


@router.post(
    "/transactions",
    response_model=TransactionRecord,
    status_code=status.HTTP_201_CREATED,
    tags=["Ledger"],
)
def create_transaction(
    request: CreateTransferRequest,
    raw_session: Optional[str] = Depends(session_cookie),
    service: LedgerService = Depends(get_service),
) -> TransactionRecord:
    if not raw_session:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    giver_id = parse_user_id(raw_session)
    try:
        return service.record_transfer(giver_id, request)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransferError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[LedgerService] = None,
    root_path: str = "",
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Points marketplace ledger: balances, counterparties and shop rankings",
        version=settings.APP_VERSION,
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.ledger_service = service or LedgerService(
        InMemoryStorage(seed=settings.SEED_DEMO_DATA),
        strict=settings.STRICT_LEDGER,
    )
    app.include_router(router)
    return app


def __getattr__(name: str):
    # `ledger.api:app` for uvicorn, built on first access
    if name == "app":
        global app
        app = create_app()
        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
