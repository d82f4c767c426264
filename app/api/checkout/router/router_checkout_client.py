from fastapi import APIRouter, Body, Depends, Request, Response, status

from app.api.checkout.schemas.schema_checkout import (
    CheckoutActionOut,
    CheckoutState,
    ConfirmAddressRequest,
    CustomerDetailsUpdate,
    GoToStepRequest,
    OtpRequest,
)
from app.core.session_registry import StorefrontSession, get_storefront_session
from app.utils.logger import logger

router = APIRouter(prefix="/api/checkout/client", tags=["Client - Checkout"])

# Actions always answer 200 with `ok` and the resulting state: a refused step
# is part of the flow (the message is in `state.error` / `state.field_errors`).


def _action(ok: bool, session: StorefrontSession) -> CheckoutActionOut:
    return CheckoutActionOut(ok=ok, state=session.checkout.state)


@router.get("/state", response_model=CheckoutState, status_code=status.HTTP_200_OK)
def read_state(session: StorefrontSession = Depends(get_storefront_session)):
    return session.checkout.state


@router.post("/address", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
def confirm_address(
    payload: ConfirmAddressRequest = Body(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    return _action(session.checkout.confirm_address(payload.delivery_address, payload.restaurant), session)


@router.post("/address/change", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
def request_address_change(session: StorefrontSession = Depends(get_storefront_session)):
    return _action(session.checkout.request_address_change(), session)


@router.patch("/details", response_model=CheckoutState, status_code=status.HTTP_200_OK)
def update_details(
    payload: CustomerDetailsUpdate = Body(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    session.checkout.update_customer_details(**payload.model_dump(exclude_none=True))
    return session.checkout.state


@router.post("/details/submit", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
def submit_details(session: StorefrontSession = Depends(get_storefront_session)):
    return _action(session.checkout.submit_details(), session)


@router.post("/otp/send", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
async def send_otp(session: StorefrontSession = Depends(get_storefront_session)):
    ok = await session.checkout.send_otp()
    return _action(ok, session)


@router.post("/otp/verify", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
async def verify_otp(
    payload: OtpRequest = Body(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    session.checkout.set_otp(payload.otp)
    ok = await session.checkout.verify_otp()
    return _action(ok, session)


@router.post("/order", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
async def place_order(session: StorefrontSession = Depends(get_storefront_session)):
    ok = await session.checkout.place_order()
    if ok:
        logger.info(f"[Checkout] {session.session_id}: order {session.checkout.state.order.order_number} placed")
    return _action(ok, session)


@router.post("/step", response_model=CheckoutActionOut, status_code=status.HTTP_200_OK)
def go_to_step(
    payload: GoToStepRequest = Body(...),
    session: StorefrontSession = Depends(get_storefront_session),
):
    return _action(session.checkout.go_to_step(payload.step), session)


@router.post("/reset", response_model=CheckoutState, status_code=status.HTTP_200_OK)
def reset_checkout(session: StorefrontSession = Depends(get_storefront_session)):
    session.checkout.reset()
    return session.checkout.state


@router.post("/close", response_model=CheckoutState, status_code=status.HTTP_200_OK)
def close_checkout(session: StorefrontSession = Depends(get_storefront_session)):
    session.checkout.close()
    return session.checkout.state


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def end_session(request: Request, session: StorefrontSession = Depends(get_storefront_session)):
    """Drops the cart and checkout kept for this session."""
    request.app.state.session_registry.discard(session.session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
