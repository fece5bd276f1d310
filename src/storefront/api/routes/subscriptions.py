from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from storefront.api.dependencies import get_subscription_mailer
from storefront.core.rate_limit import email_rate_limit, limiter
from storefront.domain.models import EmailSubscription, EmailSubscriptionResult
from storefront.domain.ports import EmailDeliveryError
from storefront.services.email_service import SubscriptionMailer

router = APIRouter(tags=["Suscripciones"])

MailerDep = Annotated[SubscriptionMailer, Depends(get_subscription_mailer)]


@router.post("/email", response_model=EmailSubscriptionResult)
@limiter.limit(email_rate_limit)
async def subscribe(
    request: Request,
    mailer: MailerDep,
    payload: EmailSubscription,
) -> EmailSubscriptionResult:
    """
    Meldet eine E-Mail-Adresse für Promotionen an: Hinweis an den Shop,
    Bestätigung an den Abonnenten.
    """
    try:
        await mailer.subscribe(payload.email)
    except EmailDeliveryError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al enviar el correo",
        )
    return EmailSubscriptionResult(email=payload.email)
