"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for the users module.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.users import views

app_name = 'users'

urlpatterns = [
    path('', views.system_user_list_create, name='system_user_list'),
    path('me', views.current_user, name='current_user'),
    path('audit/role-changes', views.role_change_audit, name='role_change_audit'),
    path('<uuid:pk>', views.system_user_detail, name='system_user_detail'),
]
