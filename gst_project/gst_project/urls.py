from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    # Every JSON endpoint lives under /api/ (see invoicing_core/urls.py)
    path("api/", include("invoicing_core.urls")),
]
