import logging

from django.db import DatabaseError, transaction
from rest_framework import viewsets, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .exceptions import MutationFailed
from .models import Project, Person, TimeEntry, UserProfile
from .serializers import (
    ProjectSerializer, PersonSerializer, TimeEntrySerializer,
    IdentitySerializer, MyTokenObtainPairSerializer,
)

logger = logging.getLogger(__name__)


class GuardedMutationMixin:
    """
    Wraps insert, update and delete so that a store failure reaches the caller as
    a single generic message ("Failed to create project", ...) and is logged.
    """
    mutation_label = 'record'

    def _guarded(self, action, func, *args):
        try:
            return func(*args)
        except DatabaseError:
            logger.exception("Error trying to %s %s", action, self.mutation_label)
            raise MutationFailed(action, self.mutation_label)

    def perform_create(self, serializer):
        self._guarded('create', self.save_new, serializer)

    def perform_update(self, serializer):
        self._guarded('update', serializer.save)

    def perform_destroy(self, instance):
        self._guarded('delete', self.remove, instance)

    def save_new(self, serializer):
        serializer.save(created_by=self.request.user)

    def remove(self, instance):
        instance.delete()


@extend_schema(parameters=[
    OpenApiParameter('status', str, description="Only projects with this status."),
])
class ProjectViewSet(GuardedMutationMixin, viewsets.ModelViewSet):
    """
    API endpoint to list, create, edit and delete projects.
    """
    queryset = Project.objects.all().order_by('-created_at')
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated]
    mutation_label = 'project'

    def get_queryset(self):
        queryset = super().get_queryset()
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.action == 'list':
            context['projects_with_time_entries'] = set(
                TimeEntry.objects.values_list('project_id', flat=True).distinct()
            )
        return context

    def remove(self, instance):
        # Time entries go first; both deletes commit or roll back together.
        project_id = instance.pk
        with transaction.atomic():
            deleted_entries, _ = TimeEntry.objects.filter(project_id=project_id).delete()
            instance.delete()
        logger.info("Deleted project %s with %s time entries", project_id, deleted_entries)


class PersonViewSet(GuardedMutationMixin, viewsets.ModelViewSet):
    """
    API endpoint to list, create, edit and delete people.
    """
    queryset = Person.objects.all().order_by('name')
    serializer_class = PersonSerializer
    permission_classes = [permissions.IsAuthenticated]
    mutation_label = 'person'


@extend_schema(parameters=[
    OpenApiParameter('project', int, description="Only entries logged against this project."),
])
class TimeEntryViewSet(GuardedMutationMixin, viewsets.ModelViewSet):
    """
    API endpoint to log, list, edit and delete time entries.
    """
    queryset = TimeEntry.objects.select_related('project').order_by('-date', '-created_at')
    serializer_class = TimeEntrySerializer
    permission_classes = [permissions.IsAuthenticated]
    mutation_label = 'time entry'

    def get_queryset(self):
        queryset = super().get_queryset()
        project_id = self.request.query_params.get('project')
        if project_id:
            queryset = queryset.filter(project_id=project_id)
        return queryset

    def save_new(self, serializer):
        serializer.save(user=self.request.user)


@extend_schema(responses=IdentitySerializer, summary="Current identity")
@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def me(request):
    profile = UserProfile.for_user(request.user)
    data = {
        'id': request.user.pk,
        'email': request.user.email,
        'metadata': {'full_name': profile.full_name, 'role': profile.role},
    }
    return Response(IdentitySerializer(data).data)


class MyTokenObtainPairView(TokenObtainPairView):
    serializer_class = MyTokenObtainPairSerializer
