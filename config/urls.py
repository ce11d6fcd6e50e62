# config/urls.py

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API
    path('', include('apps.core.urls')),
    path('api/', include('apps.board.urls')),
    path('api/notifications/', include('apps.notifications.urls')),
]

# Servir arquivos de mídia (anexos) em desenvolvimento
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# Customizar títulos do admin
admin.site.site_header = 'Hive Board Admin'
admin.site.site_title = 'Hive Board'
admin.site.index_title = 'Administração do Sistema'
