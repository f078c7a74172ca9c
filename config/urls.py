"""
URL configuration for the Stalo project.

Every JSON endpoint lives under /api/. The browser frontend is served by
the reverse proxy from the same origin.
"""
from django.contrib import admin
from django.urls import path, include

from apps.projects.urls import allocation_urlpatterns, position_urlpatterns, project_urlpatterns
from apps.resources.urls import entity_urlpatterns

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('apps.core.urls')),
    path('api/system-users/', include('apps.users.urls')),
    path('api/entities/', include((entity_urlpatterns, 'entities'))),
    path('api/resources/', include('apps.resources.urls')),
    path('api/projects/', include((project_urlpatterns, 'projects'))),
    path('api/positions/', include((position_urlpatterns, 'positions'))),
    path('api/allocations/', include((allocation_urlpatterns, 'allocations'))),
    path('api/payroll/', include('apps.payroll.urls')),
    path('api/budget/', include('apps.budgeting.urls')),
    path('api/scheduled-records/', include('apps.scheduled.urls')),
    path('api/bc/', include('apps.erp.urls')),
]
