from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAdminUser
from .models import AuditLog, ChangeEvent
from .serializers import AuditLogSerializer, ChangeEventSerializer

class AuditLogListView(generics.ListAPIView):
    # Select related avoids N+1 queries when fetching users
    queryset = AuditLog.objects.select_related('actor').all().order_by('-timestamp')
    serializer_class = AuditLogSerializer
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        queryset = super().get_queryset()
        action = self.request.query_params.get('action')
        if action:
            queryset = queryset.filter(action=action)
        return queryset

class ChangeFeedView(APIView):
    """
    Returns change events newer than ?since=<event id>, oldest first.
    Clients poll this and apply INSERT/UPDATE/DELETE to their local lists.
    """
    permission_classes = [IsAdminUser]
    max_events = 500

    def get(self, request):
        since = request.query_params.get('since', '0')
        try:
            since = int(since)
        except ValueError:
            return Response({"error": "'since' must be an integer event id"}, status=status.HTTP_400_BAD_REQUEST)

        events = ChangeEvent.objects.filter(id__gt=since)
        table = request.query_params.get('table')
        if table:
            events = events.filter(table=table)
        events = list(events.order_by('id')[:self.max_events])

        return Response({
            "events": ChangeEventSerializer(events, many=True).data,
            "last_id": events[-1].id if events else since,
        })
