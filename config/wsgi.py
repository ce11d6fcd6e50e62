# config/wsgi.py

import os
from django.core.wsgi import get_wsgi_application

# Configurar settings padrão
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

# Apenas HTTP - as salas em tempo real exigem o servidor ASGI (config.asgi)
application = get_wsgi_application()
