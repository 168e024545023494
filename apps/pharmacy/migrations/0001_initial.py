from decimal import Decimal
import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Medicine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('medicine_id', models.CharField(editable=False, help_text='Generated identifier (e.g. MED000001)', max_length=20, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('generic_name', models.CharField(blank=True, max_length=200)),
                ('category', models.CharField(choices=[('TABLET', 'Tablet'), ('CAPSULE', 'Capsule'), ('SYRUP', 'Syrup'), ('INJECTION', 'Injection'), ('CREAM', 'Cream'), ('DROPS', 'Drops'), ('INHALER', 'Inhaler'), ('OTHER', 'Other')], max_length=20)),
                ('manufacturer', models.CharField(max_length=200)),
                ('batch_number', models.CharField(max_length=100)),
                ('manufacturing_date', models.DateField(blank=True, null=True)),
                ('expiry_date', models.DateField()),
                ('stock', models.PositiveIntegerField(default=0)),
                ('min_stock_level', models.PositiveIntegerField(default=10)),
                ('unit', models.CharField(choices=[('STRIP', 'Strip'), ('BOTTLE', 'Bottle'), ('BOX', 'Box'), ('VIAL', 'Vial'), ('TUBE', 'Tube'), ('PIECE', 'Piece')], default='STRIP', max_length=20)),
                ('purchase_price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('selling_price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('prescription_required', models.BooleanField(default=True)),
                ('description', models.TextField(blank=True)),
                ('side_effects', models.JSONField(blank=True, default=list)),
                ('storage', models.CharField(blank=True, max_length=200)),
                ('supplier_name', models.CharField(blank=True, max_length=200)),
                ('supplier_contact', models.CharField(blank=True, max_length=100)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Medicine',
                'verbose_name_plural': 'Medicines',
                'db_table': 'pharmacy_medicines',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['name'], name='pharmacy_name_idx'),
                    models.Index(fields=['expiry_date'], name='pharmacy_expiry_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('stock__gte', 0)), name='pharmacy_stock_not_negative'),
                ],
            },
        ),
    ]
