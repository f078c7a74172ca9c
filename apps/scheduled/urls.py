"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for scheduled records.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.scheduled import views

app_name = 'scheduled'

urlpatterns = [
    path('', views.scheduled_list_create, name='scheduled_list_create'),
    path('schedule', views.scheduled_schedule, name='scheduled_schedule'),
    path('<int:pk>', views.scheduled_detail, name='scheduled_detail'),
]
