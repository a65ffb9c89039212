import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DailyDemand',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('total_demand', models.PositiveIntegerField(default=0)),
                ('fulfilled_quantity', models.PositiveIntegerField(default=0)),
                ('remaining_demand', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='daily_demand', to='catalog.product')),
            ],
            options={
                'db_table': 'daily_demand',
                'ordering': ['-date', '-remaining_demand'],
                'constraints': [models.UniqueConstraint(fields=('product', 'date'), name='uniq_daily_demand_product_date')],
            },
        ),
        migrations.CreateModel(
            name='SupplyOffer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('available_quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('price_per_unit', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('delivery_date', models.DateField()),
                ('demand_date', models.DateField(default=django.utils.timezone.localdate, help_text='Demand day this offer answers')),
                ('allocated_quantity', models.PositiveIntegerField(default=0, help_text='Demand covered when the offer was accepted')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('fulfilled', 'Fulfilled')], db_index=True, default='pending', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='supply_offers', to='catalog.product')),
                ('supplier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='supply_offers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'supply_offers',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['supplier', 'status'], name='idx_offer_supplier_status'),
                    models.Index(fields=['product', 'demand_date'], name='idx_offer_product_day'),
                ],
            },
        ),
    ]
