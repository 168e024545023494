from decimal import Decimal
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('patients', '0001_initial'),
        ('doctors', '0001_initial'),
        ('appointments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='OPDRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('record_id', models.CharField(editable=False, help_text='Generated identifier (e.g. OPD000001)', max_length=20, unique=True)),
                ('visit_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('symptoms', models.JSONField(blank=True, default=list, help_text='List of presenting symptoms')),
                ('blood_pressure_systolic', models.PositiveIntegerField(blank=True, null=True)),
                ('blood_pressure_diastolic', models.PositiveIntegerField(blank=True, null=True)),
                ('pulse', models.PositiveIntegerField(blank=True, help_text='Beats per minute', null=True)),
                ('temperature', models.DecimalField(blank=True, decimal_places=1, help_text='Temperature in Celsius', max_digits=4, null=True, validators=[django.core.validators.MinValueValidator(Decimal('30.0')), django.core.validators.MaxValueValidator(Decimal('45.0'))])),
                ('weight', models.DecimalField(blank=True, decimal_places=2, help_text='Weight in kg', max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('height', models.DecimalField(blank=True, decimal_places=1, help_text='Height in cm', max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.0'))])),
                ('oxygen_saturation', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00')), django.core.validators.MaxValueValidator(Decimal('100.00'))])),
                ('diagnosis', models.TextField(blank=True, help_text='Primary diagnosis')),
                ('secondary_diagnoses', models.JSONField(blank=True, default=list)),
                ('diagnosis_notes', models.TextField(blank=True)),
                ('treatment_notes', models.TextField(blank=True)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('created_by_user_id', models.UUIDField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.ForeignKey(blank=True, help_text='Scheduled appointment this consultation closes', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='opd_records', to='appointments.appointment')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='opd_records', to='doctors.doctorprofile')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='opd_records', to='patients.patient')),
            ],
            options={
                'verbose_name': 'OPD Record',
                'verbose_name_plural': 'OPD Records',
                'db_table': 'opd_records',
                'ordering': ['-visit_date'],
                'indexes': [
                    models.Index(fields=['patient', 'visit_date'], name='opd_patient_date_idx'),
                    models.Index(fields=['doctor', 'visit_date'], name='opd_doctor_date_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('appointment__isnull', False)), fields=('appointment',), name='opd_one_record_per_appointment'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Prescription',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('medicine', models.CharField(max_length=200)),
                ('dosage', models.CharField(max_length=100)),
                ('frequency', models.CharField(help_text='e.g. 1-0-1', max_length=100)),
                ('duration', models.CharField(blank=True, help_text='e.g. 5 days', max_length=100)),
                ('instructions', models.TextField(blank=True)),
                ('prescribed_by_user_id', models.UUIDField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('record', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prescriptions', to='opd.opdrecord')),
            ],
            options={
                'verbose_name': 'Prescription',
                'verbose_name_plural': 'Prescriptions',
                'db_table': 'opd_prescriptions',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
