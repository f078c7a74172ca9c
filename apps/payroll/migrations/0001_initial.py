import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('resources', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PayrollRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('modified_by', models.CharField(blank=True, default='', help_text="Email (or 'System') of whoever last changed this record.", max_length=100, verbose_name='Modified By')),
                ('month', models.DateField(db_index=True, verbose_name='Month')),
                ('department', models.CharField(blank=True, max_length=200, null=True, verbose_name='Department')),
                ('working_days', models.CharField(blank=True, max_length=20, null=True, verbose_name='Working Days')),
                ('currency', models.CharField(blank=True, max_length=10, null=True, verbose_name='Currency')),
                ('net_salary', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='Net Salary')),
                ('social_security', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='Social Security')),
                ('employee_tax', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='Employee Tax')),
                ('employer_tax', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='Employer Tax')),
                ('housing', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='Housing')),
                ('communications_other', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='Communications/Other')),
                ('annual_leave', models.IntegerField(blank=True, null=True, verbose_name='Annual Leave')),
                ('sick_leave', models.IntegerField(blank=True, null=True, verbose_name='Sick Leave')),
                ('public_holidays', models.IntegerField(blank=True, null=True, verbose_name='Public Holidays')),
                ('project_allocations', models.JSONField(blank=True, default=dict, verbose_name='Project Allocations')),
                ('locked', models.BooleanField(default=False, verbose_name='Locked')),
                ('entity', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payroll_records', to='resources.entity', verbose_name='Entity')),
                ('resource', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payroll_records', to='resources.resource', verbose_name='Resource')),
            ],
            options={
                'verbose_name': 'Payroll Record',
                'verbose_name_plural': 'Payroll Records',
                'ordering': ['month', 'entity__name', 'resource__name'],
                'constraints': [models.UniqueConstraint(fields=('resource', 'month'), name='unique_payroll_resource_month')],
            },
        ),
    ]
