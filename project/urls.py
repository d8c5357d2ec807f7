from django.urls import path, include

from uams.admin import uams_admin_site

urlpatterns = [
    path('admin/', uams_admin_site.urls),
    path('', include('uams.urls')),
]
