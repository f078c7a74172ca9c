"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL routing for core app (health and diagnostics).
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.core import views

app_name = 'core'

urlpatterns = [
    path('health', views.health, name='health'),
    path('env-check', views.env_check, name='env_check'),
    path('db-test', views.db_test, name='db_test'),
]
