from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='BudgetVersion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_no', models.CharField(db_index=True, max_length=20, verbose_name='Job No')),
                ('version_name', models.CharField(max_length=100, verbose_name='Version Name')),
                ('version_description', models.CharField(blank=True, max_length=500, verbose_name='Description')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('is_baseline', models.BooleanField(default=False, help_text='Only one version per job can be the baseline.', verbose_name='Baseline')),
                ('created_by', models.CharField(max_length=100, verbose_name='Created By')),
                ('created_date', models.DateTimeField(auto_now_add=True, verbose_name='Created Date')),
                ('modified_by', models.CharField(blank=True, max_length=100, verbose_name='Modified By')),
                ('modified_date', models.DateTimeField(blank=True, null=True, verbose_name='Modified Date')),
                ('source_type', models.CharField(choices=[('Excel Upload', 'Excel Upload'), ('Manual Edit', 'Manual Edit'), ('Copy', 'Copy')], default='Manual Edit', max_length=20, verbose_name='Source Type')),
                ('source_version', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='copies', to='budgeting.budgetversion', verbose_name='Source Version')),
            ],
            options={
                'verbose_name': 'Budget Version',
                'verbose_name_plural': 'Budget Versions',
                'ordering': ['job_no', '-created_date'],
                'constraints': [models.UniqueConstraint(fields=('job_no', 'version_name'), name='unique_budget_version_name')],
            },
        ),
        migrations.CreateModel(
            name='BudgetData',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_no', models.CharField(max_length=20, verbose_name='Job No')),
                ('job_task_no', models.CharField(max_length=20, verbose_name='Job Task No')),
                ('budget_month', models.DateField(verbose_name='Budget Month')),
                ('budget_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=18, verbose_name='Budget Amount')),
                ('last_modified_by', models.CharField(blank=True, max_length=100, verbose_name='Last Modified By')),
                ('last_modified_date', models.DateTimeField(blank=True, null=True, verbose_name='Last Modified Date')),
                ('version', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='data', to='budgeting.budgetversion', verbose_name='Version')),
            ],
            options={
                'verbose_name': 'Budget Data',
                'verbose_name_plural': 'Budget Data',
                'ordering': ['job_task_no', 'budget_month'],
                'indexes': [models.Index(fields=['job_no', 'job_task_no'], name='budget_data_job_task_idx')],
                'constraints': [models.UniqueConstraint(fields=('version', 'job_no', 'job_task_no', 'budget_month'), name='unique_budget_data_cell')],
            },
        ),
    ]
