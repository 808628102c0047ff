from django.urls import path
from . import views

app_name = 'payouts'

urlpatterns = [
    path('', views.payouts_view, name='payouts'),
    path('teachers-summary', views.teachers_summary_view, name='teachers-summary'),
    path('teacher/<int:teacher_id>', views.teacher_payouts_view, name='teacher-payouts'),
    path('teacher/<int:teacher_id>/preview', views.teacher_payout_preview_view, name='teacher-preview'),
    path('teacher/<int:teacher_id>/lessons', views.teacher_lessons_view, name='teacher-lessons'),
    path('<int:pk>', views.payout_detail_view, name='payout-detail'),
    path('<int:pk>/status', views.payout_status_view, name='payout-status'),
]
