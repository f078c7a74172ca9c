"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for projects, positions and allocations.
             Each list is mounted under its own /api/ prefix.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.projects import views

project_urlpatterns = [
    path('', views.project_list_create, name='project_list'),
    path('<uuid:pk>', views.project_detail, name='project_detail'),
    path('<uuid:pk>/positions', views.project_positions, name='project_positions'),
]

position_urlpatterns = [
    path('', views.position_list_create, name='position_list'),
    path('export', views.position_export, name='position_export'),
    path('import', views.position_import, name='position_import'),
    path('<uuid:pk>', views.position_detail, name='position_detail'),
]

allocation_urlpatterns = [
    path('', views.allocation_list_create, name='allocation_list'),
    path('summary', views.allocation_summary, name='allocation_summary'),
    path('<uuid:pk>', views.allocation_detail, name='allocation_detail'),
]
