from django.urls import path
from .views import (
    task_list_create, task_my_tasks, task_completed, task_by_user,
    task_detail, task_assign, task_complete
)

urlpatterns = [
    # Task endpoints
    path('tasks/', task_list_create, name='task-list-create'),
    path('tasks/my-tasks/', task_my_tasks, name='task-my-tasks'),
    path('tasks/completed/', task_completed, name='task-completed'),
    path('tasks/user/<int:user_id>/', task_by_user, name='task-by-user'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),

    # Lifecycle transitions
    path('tasks/<int:pk>/assign/', task_assign, name='task-assign'),
    path('tasks/<int:pk>/complete/', task_complete, name='task-complete'),
]
