# b2b/views.py

import logging

from django.db import DatabaseError, transaction
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import B2BRequest
from .ratelimit import client_ip, get_b2b_rate_limiter
from .serializers import (
    B2BRequestCreateSerializer,
    B2BRequestSerializer,
    B2BRequestStatusSerializer,
)
from .tasks import send_b2b_request_email_task

logger = logging.getLogger(__name__)


class B2BRequestCreateView(APIView):
    """Bulk-order quote request from the public B2B form."""
    permission_classes = [AllowAny]

    def post(self, request):
        limiter = get_b2b_rate_limiter()
        ip = client_ip(request)
        if not limiter.allow(ip):
            logger.warning(f"⚠️ B2B submission rate limit hit for {ip}")
            return Response({
                "error": "Too many submissions. Please try again later.",
                "hint": f"You can only submit {limiter.max_submissions} B2B requests per hour.",
            }, status=status.HTTP_429_TOO_MANY_REQUESTS)

        serializer = B2BRequestCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                "error": "Validation failed",
                "details": serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        user = request.user if request.user.is_authenticated else None
        try:
            b2b_request = serializer.save(user=user)
        except DatabaseError as e:
            logger.error(f"❌ Failed to store B2B request from {serializer.validated_data['email']}: {str(e)}")
            return Response(
                {"error": "Failed to create B2B request"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        transaction.on_commit(lambda: send_b2b_request_email_task.delay(b2b_request.pk))
        logger.info(f"✅ B2B request {b2b_request.pk} received from {b2b_request.company_name}")

        return Response({
            "success": True,
            "message": "B2B request submitted successfully",
            "data": {"id": b2b_request.pk},
        }, status=status.HTTP_201_CREATED)


class AdminB2BRequestListView(generics.ListAPIView):
    permission_classes = [IsAdminUser]
    queryset = B2BRequest.objects.select_related('reviewed_by')
    serializer_class = B2BRequestSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'is_existing_customer']


class AdminB2BRequestUpdateView(APIView):
    permission_classes = [IsAdminUser]

    def patch(self, request, pk):
        try:
            b2b_request = B2BRequest.objects.get(pk=pk)
        except B2BRequest.DoesNotExist:
            return Response({"error": "B2B request not found"}, status=status.HTTP_404_NOT_FOUND)

        serializer = B2BRequestStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                "error": "Invalid update",
                "details": serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        if 'status' in data:
            b2b_request.status = data['status']
        if 'admin_notes' in data:
            b2b_request.admin_notes = data['admin_notes']
        b2b_request.reviewed_at = timezone.now()
        b2b_request.reviewed_by = request.user
        b2b_request.save()

        logger.info(f"✅ B2B request {b2b_request.pk} set to {b2b_request.status} by {request.user.email}")
        return Response({
            "success": True,
            "message": "B2B request updated successfully",
            "data": B2BRequestSerializer(b2b_request).data,
        }, status=status.HTTP_200_OK)
