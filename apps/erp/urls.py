"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: URL configuration for the Business Central proxy.
-------------------------------------------------------------------------
"""
from django.urls import path

from apps.erp import views

app_name = 'erp'

urlpatterns = [
    # Reads
    path('projects', views.bc_projects, name='projects'),
    path('ledger-entries', views.bc_ledger_entries, name='ledger_entries'),
    path('project-cards', views.bc_project_cards, name='project_cards'),
    path('job-task-lines', views.bc_job_task_lines, name='job_task_lines'),
    path('personnel-expenses', views.bc_personnel_expenses, name='personnel_expenses'),
    path('prepayments', views.bc_prepayments, name='prepayments'),
    path('vendors', views.bc_vendors, name='vendors'),
    path('purchase-invoices', views.bc_purchase_invoices, name='purchase_invoices'),
    path('salary-payments', views.bc_salary_payments, name='salary_payments'),
    path('bank-accounts', views.bc_bank_accounts, name='bank_accounts'),
    path('vendor-cards', views.bc_vendor_cards, name='vendor_cards'),
    path('journal-batches', views.bc_journal_batches, name='journal_batches'),
    path('posted-sales-invoices', views.bc_posted_sales_invoices, name='posted_sales_invoices'),

    # Journal lines
    path('payment-journal-line', views.bc_payment_journal_line, name='payment_journal_line'),
    path('customer-payment-journal-line', views.bc_customer_payment_journal_line, name='customer_payment_journal_line'),
    path('salary-payment-journal-lines', views.bc_salary_payment_journal_lines, name='salary_payment_journal_lines'),
]
