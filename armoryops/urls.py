from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('main.urls')),
    path('api/assembly/', include('assembly.urls')),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]
