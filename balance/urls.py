from django.urls import path
from . import views

app_name = 'balance'

urlpatterns = [
    path('my', views.my_balance_view, name='my-balance'),
    path('my/transactions', views.my_transactions_view, name='my-transactions'),
    path('<int:student_id>', views.student_balance_view, name='student-balance'),
    path('<int:student_id>/transactions', views.student_transactions_view, name='student-transactions'),
    path('<int:student_id>/adjust', views.adjust_balance_view, name='student-adjust'),
]
