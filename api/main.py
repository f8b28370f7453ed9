"""
FastAPI application for the VidEX trade-offer exchange.

This application provides:
1. Offer endpoints (/offers) backed by the TradeOfferService
2. A health check reporting the notification pipeline's state

The acting user arrives in the X-User-Id header; authentication happens
upstream of this service. Every TradeError maps to its HTTP status with a
{"code", "error", "message"} body.

Run with:
    uv run uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from exchange.config import configure_logging, get_settings
from exchange.errors import InvalidRequestError, TradeError
from exchange.models import OfferFilter, OfferStatus, TradeOffer
from trading.offer_service import TradeOfferService
from trading.wiring import ExchangeContainer, build_exchange

logger = logging.getLogger("api")


class UnauthenticatedError(TradeError):
    """The request did not identify an acting user."""
    code = "UNAUTHENTICATED"
    http_status = 401


# =============================================================================
# Request models
# =============================================================================

class CreateOfferRequest(BaseModel):
    """Body of POST /offers. The offerer is the acting user."""
    requested_item_id: str = Field(..., min_length=1)
    offered_item_id: str = Field(..., min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UpdateOfferRequest(BaseModel):
    """Body of PATCH /offers/{id}."""
    status: str = Field(..., description="'accepted' or 'rejected'")


# =============================================================================
# Application lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the exchange on startup; drain and close it on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)

    exchange = build_exchange(settings)
    exchange.start()
    app.state.exchange = exchange
    logging.info("Starting VidEX trade-offer API")
    yield
    logging.info("Shutting down")
    exchange.shutdown()


app = FastAPI(
    title="VidEX Trade Offers",
    description="""
    Trade-offer exchange for retro video games.

    ## Lifecycle

    An offer is created **pending** by the owner of the offered item and
    answered once, **accepted** or **rejected**, by the owner of the
    requested item. Both participants are emailed on every change.

    Send the acting user's id in the `X-User-Id` header.
    """,
    version="1.0.0",
    lifespan=lifespan,
)


# =============================================================================
# Dependencies
# =============================================================================

def get_exchange(request: Request) -> ExchangeContainer:
    return request.app.state.exchange


def get_service(exchange: ExchangeContainer = Depends(get_exchange)) -> TradeOfferService:
    return exchange.service


def get_actor_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """The acting user, from the X-User-Id header."""
    if not x_user_id:
        raise UnauthenticatedError("Missing X-User-Id header")
    return x_user_id


# =============================================================================
# Error handlers
# =============================================================================

@app.exception_handler(TradeError)
async def trade_error_handler(request: Request, exc: TradeError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.http_status} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings are InvalidRequest, not 422."""
    fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
    error = InvalidRequestError(f"Invalid request: {fields}")
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_response())


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check(exchange: ExchangeContainer = Depends(get_exchange)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "videx-trade-offers",
        "brokerConnected": exchange.broker.is_connected,
        "publisherRunning": exchange.publisher.is_running,
        "consumerRunning": exchange.consumer.is_running,
    }


# =============================================================================
# Offers
# =============================================================================

@app.post(
    "/offers",
    response_model=TradeOffer,
    status_code=status.HTTP_201_CREATED,
    tags=["Offers"],
)
def create_offer(
    body: CreateOfferRequest,
    actor_id: str = Depends(get_actor_id),
    service: TradeOfferService = Depends(get_service),
):
    """
    Offer one of your items in exchange for someone else's.

    The recipient is whoever owns the requested item. Both participants
    are notified asynchronously.
    """
    return service.create_offer(
        actor_id,
        requested_item_id=body.requested_item_id,
        offered_item_id=body.offered_item_id,
    )


@app.get("/offers", response_model=list[TradeOffer], tags=["Offers"])
def list_offers(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    offerer_id: Optional[str] = Query(default=None, alias="offererId"),
    recipient_id: Optional[str] = Query(default=None, alias="recipientId"),
    service: TradeOfferService = Depends(get_service),
):
    """List offers, newest first, optionally filtered."""
    if status_filter is not None:
        try:
            status_filter = OfferStatus(status_filter)
        except ValueError:
            raise InvalidRequestError(f"Invalid status: {status_filter!r}") from None

    criteria = OfferFilter(
        status=status_filter,
        offerer_id=offerer_id,
        recipient_id=recipient_id,
    )
    return service.list_offers(criteria)


@app.get("/offers/{offer_id}", response_model=TradeOffer, tags=["Offers"])
def get_offer(offer_id: str, service: TradeOfferService = Depends(get_service)):
    """Get a single offer."""
    return service.get_offer(offer_id)


@app.patch("/offers/{offer_id}", response_model=TradeOffer, tags=["Offers"])
def update_offer(
    offer_id: str,
    body: UpdateOfferRequest,
    actor_id: str = Depends(get_actor_id),
    service: TradeOfferService = Depends(get_service),
):
    """Accept or reject a pending offer addressed to you."""
    return service.update_status(actor_id, offer_id, body.status)
