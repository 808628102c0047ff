from django.urls import path
from . import views

app_name = 'settlements'

urlpatterns = [
    path('', views.settlement_create_view, name='settlement-create'),
    path('students', views.students_with_balance_view, name='students'),
    path('preview', views.settlement_preview_view, name='preview'),
    path('student/<int:student_id>', views.student_settlements_view, name='student-settlements'),
    path('student/<int:student_id>/info', views.student_settlement_info_view, name='student-info'),
    path('student/<int:student_id>/forecast', views.student_forecast_view, name='student-forecast'),
    path('<int:pk>', views.settlement_detail_view, name='settlement-detail'),
]
