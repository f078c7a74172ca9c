import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Entity',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('name', models.CharField(max_length=200, unique=True, verbose_name='Name')),
                ('currency_code', models.CharField(blank=True, default='USD', max_length=10, verbose_name='Currency Code')),
                ('ss_acc_code', models.CharField(blank=True, help_text='Vendor account for social security payable.', max_length=20, verbose_name='Social Security Account')),
                ('tax_acc_code', models.CharField(blank=True, help_text='Vendor account for tax payable.', max_length=20, verbose_name='Tax Account')),
                ('sal_exp_code', models.CharField(default='6000', max_length=20, verbose_name='Salary Expense Code')),
                ('ss_exp_code', models.CharField(default='6100', max_length=20, verbose_name='Social Security Expense Code')),
                ('tax_exp_code', models.CharField(default='6200', max_length=20, verbose_name='Tax Expense Code')),
            ],
            options={
                'verbose_name': 'Entity',
                'verbose_name_plural': 'Entities',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Resource',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('name', models.CharField(db_index=True, max_length=200, verbose_name='Name')),
                ('resource_type', models.CharField(blank=True, max_length=50, verbose_name='Resource Type')),
                ('dynamics_vendor_acc', models.CharField(blank=True, max_length=50, verbose_name='Dynamics Vendor Account')),
                ('start_date', models.DateField(blank=True, null=True, verbose_name='Start Date')),
                ('end_date', models.DateField(blank=True, null=True, verbose_name='End Date')),
                ('work_days', models.CharField(choices=[('Mon-Fri', 'Monday to Friday'), ('Sun-Thu', 'Sunday to Thursday')], default='Mon-Fri', max_length=10, verbose_name='Work Days')),
                ('department', models.CharField(blank=True, max_length=200, verbose_name='Department')),
                ('track', models.BooleanField(default=True, verbose_name='Track')),
                ('entity', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='resources', to='resources.entity', verbose_name='Entity')),
            ],
            options={
                'verbose_name': 'Resource',
                'verbose_name_plural': 'Resources',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['resource_type'], name='resource_type_idx')],
            },
        ),
    ]
