"""
Root URL configuration for the Participium API.

Route map
---------
/admin/                 Django admin (categories, reports, roles, users)
/api/accounts/          Registration, login, user and role management
/api/core/              System constants
/api/categories/ ...    Report categories      (reports app router)
/api/reports/ ...       Reports and workflow   (reports app router)
/api/schema/            OpenAPI 3 schema
/api/docs/              Swagger UI
/api/redoc/             ReDoc
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

api_patterns = [
    path('accounts/', include('accounts.urls')),
    path('core/', include('core.urls')),
    path('', include('reports.urls')),
]

docs_patterns = [
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(api_patterns)),
    path('api/', include(docs_patterns)),
]

# Photos saved by the default FileSystemStorage are served by Django only in DEBUG.
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
