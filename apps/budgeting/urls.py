"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for the budgeting module.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.budgeting import views

app_name = 'budgeting'

urlpatterns = [
    # Versions
    path('versions', views.version_create, name='version_create'),
    path('versions/<str:key>', views.version_detail, name='version_detail'),

    # Budget data
    path('data/<int:pk>', views.version_data, name='version_data'),
    path('data/<int:pk>/copy', views.version_data_copy, name='version_data_copy'),

    # Glidepath
    path('glidepath/<int:pk>', views.glidepath, name='glidepath'),
    path('glidepath/<int:pk>/export', views.glidepath_export, name='glidepath_export'),
    path('glidepath/<int:pk>/import', views.glidepath_import, name='glidepath_import'),
]
