from decimal import Decimal
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('patients', '0001_initial'),
        ('doctors', '0001_initial'),
        ('opd', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='LabTest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('test_id', models.CharField(editable=False, help_text='Generated identifier (e.g. TST000001)', max_length=20, unique=True)),
                ('name', models.CharField(help_text="Test name (e.g., 'Complete Blood Count', 'Chest X-Ray')", max_length=200)),
                ('code', models.CharField(blank=True, help_text="Short test code (e.g., 'CBC', 'CXR'); defaults to the test_id", max_length=50, unique=True)),
                ('category', models.CharField(choices=[('BLOOD', 'Blood'), ('URINE', 'Urine'), ('IMAGING', 'Imaging'), ('CARDIAC', 'Cardiac'), ('PATHOLOGY', 'Pathology'), ('MICROBIOLOGY', 'Microbiology'), ('OTHER', 'Other')], default='BLOOD', max_length=20)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('normal_range', models.CharField(blank=True, max_length=200)),
                ('unit', models.CharField(blank=True, max_length=50)),
                ('preparation_instructions', models.TextField(blank=True)),
                ('turnaround_time', models.CharField(default='24 hours', max_length=50)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Lab Test',
                'verbose_name_plural': 'Lab Tests',
                'db_table': 'diag_lab_tests',
                'ordering': ['category', 'name'],
            },
        ),
        migrations.CreateModel(
            name='LabOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_id', models.CharField(editable=False, help_text='Generated identifier (e.g. LBO000001)', max_length=20, unique=True)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], default='PENDING', max_length=20)),
                ('priority', models.CharField(choices=[('NORMAL', 'Normal'), ('URGENT', 'Urgent'), ('CRITICAL', 'Critical')], default='NORMAL', max_length=20)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('notes', models.TextField(blank=True)),
                ('ordered_by_user_id', models.UUIDField(blank=True, null=True)),
                ('order_date', models.DateTimeField(auto_now_add=True)),
                ('sample_collected_at', models.DateTimeField(blank=True, null=True)),
                ('sample_collected_by_id', models.UUIDField(blank=True, null=True)),
                ('result_value', models.CharField(blank=True, max_length=255)),
                ('result_unit', models.CharField(blank=True, max_length=50)),
                ('is_abnormal', models.BooleanField(default=False)),
                ('result_notes', models.TextField(blank=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('completed_by_id', models.UUIDField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(blank=True, help_text='Ordering doctor', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lab_orders', to='doctors.doctorprofile')),
                ('opd_record', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lab_orders', to='opd.opdrecord')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lab_orders', to='patients.patient')),
                ('test', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='diagnostics.labtest')),
            ],
            options={
                'verbose_name': 'Lab Order',
                'verbose_name_plural': 'Lab Orders',
                'db_table': 'diag_lab_orders',
                'ordering': ['-order_date'],
                'indexes': [
                    models.Index(fields=['patient', '-order_date'], name='diag_order_patient_idx'),
                    models.Index(fields=['status', 'priority'], name='diag_order_status_idx'),
                ],
            },
        ),
    ]
