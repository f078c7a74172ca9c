"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for entities and resources.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.resources import views

app_name = 'resources'

entity_urlpatterns = [
    path('', views.entity_list_create, name='entity_list'),
    path('<uuid:pk>', views.entity_detail, name='entity_detail'),
]

urlpatterns = [
    path('', views.resource_list_create, name='resource_list'),
    path('export', views.resource_export, name='resource_export'),
    path('import', views.resource_import, name='resource_import'),
    path('<uuid:pk>', views.resource_detail, name='resource_detail'),
]
