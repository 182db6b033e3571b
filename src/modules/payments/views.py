"""Payment API views.

``InitiatePaymentView`` is called by the shopper; ``PaymentWebhookView``
is called by the gateway and authenticates the *payload* (HMAC signature
over the raw body) instead of a user.
"""

from __future__ import annotations

import structlog
from django.db import DatabaseError
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.cart.repositories import CartDjangoRepository
from modules.catalog.repositories import ProductDjangoRepository
from modules.orders.exceptions import OrderAccessDenied, OrderNotFound
from modules.orders.repositories import OrderDjangoRepository
from modules.payments.dtos import GatewayEventDTO, InitiatePaymentDTO
from modules.payments.exceptions import (
    MissingCustomerEmail,
    OrderAlreadyProcessed,
    PaymentGatewayError,
    SettlementError,
)
from modules.payments.gateway import get_gateway
from modules.payments.serializers import (
    InitiatePaymentSerializer,
    PaymentInitiationSerializer,
)
from modules.payments.services import PaymentService, SettlementService
from modules.payments.signatures import SIGNATURE_HEADER

logger = structlog.get_logger(__name__)


class InitiatePaymentView(APIView):
    """POST /api/v1/payments/initialize/"""

    throttle_scope = "payment_initiation"

    def post(self, request: Request) -> Response:
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = PaymentService(
            order_repository=OrderDjangoRepository(),
            gateway=get_gateway(),
        )
        dto = InitiatePaymentDTO(
            owner_id=request.user.pk,
            order_id=serializer.validated_data["order_id"],
        )

        try:
            result = service.initiate_payment(dto)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except OrderAccessDenied:
            return Response(
                {"detail": "Unauthorized order access."},
                status=status.HTTP_403_FORBIDDEN,
            )
        except (OrderAlreadyProcessed, MissingCustomerEmail) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError:
            return Response(
                {"detail": "Payment initialization failed."},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(PaymentInitiationSerializer(result.model_dump()).data)


class PaymentWebhookView(APIView):
    """POST /api/v1/payments/webhook/

    - 401: missing or invalid signature (nothing parsed, nothing read).
    - 400: signed but malformed body.
    - 200: applied, duplicate, or ignored.
    - 500: settlement failed and was rolled back; the gateway redelivers.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    def post(self, request: Request) -> Response:
        payload = request.body
        signature = request.headers.get(SIGNATURE_HEADER)

        if not get_gateway().verify_webhook_signature(payload, signature):
            logger.warning("payment.webhook_rejected", has_signature=bool(signature))
            return Response(status=status.HTTP_401_UNAUTHORIZED)

        try:
            event = GatewayEventDTO.model_validate_json(payload)
        except PydanticValidationError:
            logger.warning("payment.webhook_malformed")
            return Response(
                {"detail": "Malformed event payload."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        log = logger.bind(gateway_event=event.event, reference=event.reference)
        service = SettlementService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            cart_repository=CartDjangoRepository(),
        )

        try:
            outcome = service.process_event(event)
        except SettlementError as exc:
            log.error("payment.webhook_settlement_failed", error=str(exc))
            return Response(
                {"detail": "Settlement failed."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except DatabaseError:
            log.exception("payment.webhook_database_error")
            return Response(
                {"detail": "Settlement failed."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        log.info("payment.webhook_processed", outcome=outcome.value)
        return Response({"status": outcome.value})
