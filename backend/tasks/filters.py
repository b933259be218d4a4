import django_filters
from .models import Task


class TaskFilter(django_filters.FilterSet):
    """Filter for the admin task list"""
    status = django_filters.ChoiceFilter(choices=Task.STATUS_CHOICES)
    user = django_filters.NumberFilter(field_name='user_id', lookup_expr='exact')
    general = django_filters.CharFilter(method='filter_general', label='General')

    class Meta:
        model = Task
        fields = ['status', 'user', 'general']

    def filter_general(self, queryset, name, value):
        """'true' keeps only unassigned tasks, 'false' only assigned ones"""
        if value is None or value == '':
            return queryset
        return queryset.filter(user__isnull=value.lower() == 'true')
