from django.urls import path
from . import views

app_name = 'payments'

urlpatterns = [
    path('<int:pk>/complete', views.payment_complete_view, name='payment-complete'),
    path('<int:pk>/reopen', views.payment_reopen_view, name='payment-reopen'),
]
