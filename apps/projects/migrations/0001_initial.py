import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('resources', '0001_initial'),
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('name', models.CharField(db_index=True, max_length=200, verbose_name='Name')),
                ('start_date', models.DateField(blank=True, null=True, verbose_name='Start Date')),
                ('end_date', models.DateField(blank=True, null=True, verbose_name='End Date')),
                ('project_currency', models.CharField(blank=True, default='USD', max_length=10, verbose_name='Project Currency')),
                ('project_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=18, verbose_name='Project Budget')),
                ('allocation_mode', models.CharField(blank=True, default='%', max_length=50, verbose_name='Allocation Mode')),
                ('fringe', models.CharField(choices=[('Yes', 'Yes'), ('No', 'No')], default='No', max_length=3, verbose_name='Fringe')),
                ('budget_manager', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='managed_projects', to='users.systemuser', verbose_name='Budget Manager')),
            ],
            options={
                'verbose_name': 'Project',
                'verbose_name_plural': 'Projects',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Position',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('task_id', models.CharField(blank=True, max_length=255, verbose_name='Task ID')),
                ('position_name', models.CharField(max_length=255, verbose_name='Position Name')),
                ('month_year', models.DateField(db_index=True, verbose_name='Month')),
                ('allocation_mode', models.CharField(blank=True, default='%', max_length=50, verbose_name='Allocation Mode')),
                ('loe', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='LoE')),
                ('allocated', models.CharField(choices=[('Yes', 'Yes'), ('No', 'No')], default='No', max_length=3, verbose_name='Allocated')),
                ('fringe_task', models.CharField(blank=True, max_length=255, verbose_name='Fringe Task')),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='positions', to='projects.project', verbose_name='Project')),
            ],
            options={
                'verbose_name': 'Position',
                'verbose_name_plural': 'Positions',
                'ordering': ['project__name', 'task_id', 'position_name', 'month_year'],
                'indexes': [models.Index(fields=['position_name', 'month_year'], name='position_name_month_idx')],
            },
        ),
        migrations.CreateModel(
            name='Allocation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('month_year', models.DateField(db_index=True, verbose_name='Month')),
                ('allocation_mode', models.CharField(blank=True, max_length=50, verbose_name='Allocation Mode')),
                ('loe', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True, verbose_name='LoE')),
                ('position', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to='projects.position', verbose_name='Position')),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to='projects.project', verbose_name='Project')),
                ('resource', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='resources.resource', verbose_name='Resource')),
            ],
            options={
                'verbose_name': 'Allocation',
                'verbose_name_plural': 'Allocations',
                'ordering': ['month_year', 'project__name'],
            },
        ),
    ]
