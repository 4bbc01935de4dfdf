"""Root URL configuration.

Only the Django admin is served here; the public API is owned by the
boundary layer which calls into the apps' logic packages.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
