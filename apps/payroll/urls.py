"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for the payroll module.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.payroll import views

app_name = 'payroll'

urlpatterns = [
    path('', views.payroll_grid, name='payroll_grid'),
    path('projects', views.payroll_projects, name='payroll_projects'),
    path('all', views.payroll_records, name='payroll_records'),
    path('lock', views.payroll_lock, name='payroll_lock'),
    path('lock-month', views.payroll_lock_month, name='payroll_lock_month'),
    path('allocations', views.payroll_allocations, name='payroll_allocations'),
    path('percentages', views.payroll_percentages, name='payroll_percentages'),
    path('export', views.payroll_export, name='payroll_export'),
    path('import', views.payroll_import, name='payroll_import'),
    path('journal', views.payroll_journal, name='payroll_journal'),
]
