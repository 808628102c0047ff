"""
URL configuration for the school finance backend
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django.views.generic import RedirectView
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)


@require_http_methods(["GET"])
def health_view(request):
    """Minimal health check for connectivity verification. No auth required."""
    return JsonResponse({'status': 'ok', 'service': 'school-finance'})


@require_http_methods(["GET"])
def system_health_view(request):
    """
    Full system health check for monitoring.
    Returns db and ledger status. No auth required.
    """
    result = {'db': 'ok', 'ledger': 'ok'}
    try:
        from django.db import connection
        connection.ensure_connection()
    except Exception as e:
        result['db'] = f'error: {str(e)[:80]}'
    try:
        from balance.models import StudentBudget
        StudentBudget.objects.exists()
    except Exception as e:
        result['ledger'] = f'error: {str(e)[:80]}'
    return JsonResponse(result)


@require_http_methods(["GET"])
def api_root(request):
    """Root endpoint - API information"""
    return JsonResponse({
        'name': 'School Finance API',
        'version': '1.0.0',
        'description': 'Student balances, settlements and teacher payouts',
        'endpoints': {
            'health': '/api/health/',
            'auth': '/api/auth/',
            'balance': '/api/balance/',
            'settlements': '/api/settlements/',
            'payouts': '/api/payouts/',
            'payments': '/api/payments/',
            'docs': '/api/docs/',
            'schema': '/api/schema/',
        }
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin', RedirectView.as_view(url='/admin/', permanent=False)),
    path('admin/', admin.site.urls),
    path('api', RedirectView.as_view(url='/api/', permanent=False)),
    path('api/', api_root),
    path('api/health/', health_view, name='api-health'),
    path('api/system/health/', system_health_view, name='api-system-health'),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # API endpoints
    path('api/auth/', include('accounts.urls')),
    path('api/balance/', include('balance.urls')),
    path('api/settlements/', include('settlements.urls')),
    path('api/payouts/', include('payouts.urls')),
    path('api/payments/', include('payments.urls')),
]
