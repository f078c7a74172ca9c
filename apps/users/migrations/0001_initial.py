import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='SystemUser',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Timestamp when this record was created.', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when this record was last modified.', verbose_name='Updated At')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('email_address', models.EmailField(help_text='Azure AD sign-in email (preferred_username).', max_length=254, unique=True, verbose_name='Email Address')),
                ('start_date', models.DateField(blank=True, null=True, verbose_name='Start Date')),
                ('end_date', models.DateField(blank=True, null=True, verbose_name='End Date')),
                ('active', models.BooleanField(default=True, verbose_name='Active')),
                ('role', models.CharField(choices=[('Viewer', 'Viewer'), ('Editor', 'Editor'), ('BudgetManager', 'Budget Manager'), ('Admin', 'Admin')], default='Viewer', max_length=20, verbose_name='Role')),
            ],
            options={
                'verbose_name': 'System User',
                'verbose_name_plural': 'System Users',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='RoleAuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_name', models.CharField(max_length=200, verbose_name='User Name')),
                ('user_email', models.CharField(max_length=254, verbose_name='User Email')),
                ('old_role', models.CharField(blank=True, max_length=20, verbose_name='Old Role')),
                ('new_role', models.CharField(max_length=20, verbose_name='New Role')),
                ('changed_by', models.CharField(max_length=254, verbose_name='Changed By')),
                ('changed_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='Changed At')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='role_changes', to='users.systemuser', verbose_name='User')),
            ],
            options={
                'verbose_name': 'Role Audit Log',
                'verbose_name_plural': 'Role Audit Logs',
                'ordering': ['-changed_at'],
            },
        ),
    ]
