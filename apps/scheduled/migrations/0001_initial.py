from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='ScheduledRecord',
            fields=[
                ('scheduled_id', models.AutoField(primary_key=True, serialize=False, verbose_name='Scheduled ID')),
                ('type', models.CharField(choices=[('Fixed Asset', 'Fixed Asset'), ('Prepaid', 'Prepaid')], max_length=20, verbose_name='Type')),
                ('purchase_date', models.DateField(verbose_name='Purchase Date')),
                ('supplier', models.CharField(blank=True, max_length=255, verbose_name='Supplier')),
                ('description', models.CharField(blank=True, max_length=500, verbose_name='Description')),
                ('purchase_currency', models.CharField(default='USD', max_length=10, verbose_name='Purchase Currency')),
                ('original_currency_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=18, verbose_name='Original Currency Value')),
                ('usd_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=18, verbose_name='USD Value')),
                ('useful_months', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name='Useful Months')),
                ('disposed', models.BooleanField(default=False, verbose_name='Disposed')),
                ('disposal_date', models.DateField(blank=True, null=True, verbose_name='Disposal Date')),
            ],
            options={
                'verbose_name': 'Scheduled Record',
                'verbose_name_plural': 'Scheduled Records',
                'ordering': ['scheduled_id'],
            },
        ),
    ]
