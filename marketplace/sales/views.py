import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ValidationException

from ..permissions import IsInstructor, get_instructor
from ..services.fulfillment import FulfillmentService

logger = logging.getLogger(__name__)


class UpdateDeliverView(APIView):
    """
    Mark the instructor's items of a purchase as delivered.

    PATCH /api/purchased/updateDeliver
    Body: {"purchasedId": 12, "customerEmail"?: "..."}

    Repeating the call is harmless: nothing changes and no email is sent.
    """

    permission_classes = [IsAuthenticated, IsInstructor]

    def patch(self, request):
        try:
            purchased_id = int(request.data.get("purchasedId"))
        except (TypeError, ValueError):
            raise ValidationException("purchasedId is required.")

        result = FulfillmentService().mark_delivered(
            purchased_id,
            get_instructor(request.user),
            recipient=request.data.get("customerEmail") or None,
        )
        return Response(
            {
                "status": "success",
                "data": {
                    "purchasedId": result.purchased_id,
                    "updated": result.updated_count,
                    "notified": result.notified,
                },
            },
            status=status.HTTP_200_OK,
        )
