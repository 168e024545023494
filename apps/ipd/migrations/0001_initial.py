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
    ]

    operations = [
        migrations.CreateModel(
            name='Ward',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text="Ward name (e.g., 'General Ward A', 'ICU Floor 3')", max_length=200, unique=True)),
                ('ward_type', models.CharField(choices=[('GENERAL', 'General'), ('PRIVATE', 'Private'), ('SEMI_PRIVATE', 'Semi-Private'), ('ICU', 'ICU'), ('EMERGENCY', 'Emergency'), ('PEDIATRIC', 'Pediatric'), ('MATERNITY', 'Maternity')], default='GENERAL', max_length=20)),
                ('floor', models.IntegerField(default=0, help_text='Floor number (0 = ground)')),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'IPD Ward',
                'verbose_name_plural': 'IPD Wards',
                'db_table': 'ipd_wards',
                'ordering': ['floor', 'name'],
                'indexes': [models.Index(fields=['ward_type'], name='ipd_ward_type_idx')],
            },
        ),
        migrations.CreateModel(
            name='Bed',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bed_number', models.CharField(help_text="Bed number/identifier (e.g., 'A-101', 'ICU-05')", max_length=50, unique=True)),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('OCCUPIED', 'Occupied'), ('MAINTENANCE', 'Under Maintenance'), ('RESERVED', 'Reserved')], default='AVAILABLE', max_length=20)),
                ('daily_rate', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Daily charge for this bed', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('facilities', models.JSONField(blank=True, default=list)),
                ('last_cleaned_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ward', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='beds', to='ipd.ward')),
                ('current_patient', models.ForeignKey(blank=True, help_text='Patient in the bed (only while OCCUPIED)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='occupied_beds', to='patients.patient')),
            ],
            options={
                'verbose_name': 'IPD Bed',
                'verbose_name_plural': 'IPD Beds',
                'db_table': 'ipd_beds',
                'ordering': ['ward', 'bed_number'],
                'indexes': [
                    models.Index(fields=['status'], name='ipd_bed_status_idx'),
                    models.Index(fields=['ward', 'status'], name='ipd_bed_ward_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=(
                            models.Q(status='OCCUPIED', current_patient__isnull=False)
                            | (~models.Q(status='OCCUPIED') & models.Q(current_patient__isnull=True))
                        ),
                        name='ipd_bed_occupant_matches_status',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Admission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('admission_id', models.CharField(editable=False, help_text='Generated identifier (e.g. IPD000001)', max_length=20, unique=True)),
                ('admission_date', models.DateTimeField(default=django.utils.timezone.now, help_text='Date and time of admission')),
                ('reason', models.TextField(help_text='Reason for admission')),
                ('provisional_diagnosis', models.TextField(blank=True)),
                ('final_diagnosis', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('ADMITTED', 'Admitted'), ('DISCHARGED', 'Discharged'), ('TRANSFERRED', 'Transferred')], default='ADMITTED', max_length=20)),
                ('discharge_date', models.DateTimeField(blank=True, null=True)),
                ('discharge_condition', models.CharField(blank=True, choices=[('RECOVERED', 'Recovered'), ('IMPROVED', 'Improved'), ('UNCHANGED', 'Unchanged'), ('REFERRED', 'Referred'), ('AGAINST_ADVICE', 'Against Medical Advice'), ('DECEASED', 'Deceased')], max_length=20)),
                ('discharge_instructions', models.TextField(blank=True)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('discharge_medications', models.JSONField(blank=True, default=list, help_text='List of {medicine, dosage, duration}')),
                ('admitted_by_user_id', models.UUIDField(blank=True, null=True)),
                ('discharged_by_user_id', models.UUIDField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='admissions', to='patients.patient')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='admissions', to='doctors.doctorprofile')),
                ('bed', models.ForeignKey(blank=True, help_text='Current (or last) bed', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admissions', to='ipd.bed')),
            ],
            options={
                'verbose_name': 'IPD Admission',
                'verbose_name_plural': 'IPD Admissions',
                'db_table': 'ipd_admissions',
                'ordering': ['-admission_date'],
                'indexes': [
                    models.Index(fields=['status'], name='ipd_status_idx'),
                    models.Index(fields=['patient', 'admission_date'], name='ipd_patient_date_idx'),
                    models.Index(fields=['doctor', 'admission_date'], name='ipd_doctor_date_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(status='ADMITTED'), fields=('patient',), name='ipd_one_active_stay_per_patient'),
                    models.UniqueConstraint(condition=models.Q(status='ADMITTED'), fields=('bed',), name='ipd_one_active_stay_per_bed'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BedTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_bed_number', models.CharField(max_length=50)),
                ('to_bed_number', models.CharField(max_length=50)),
                ('transfer_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('reason', models.TextField(blank=True)),
                ('performed_by_user_id', models.UUIDField(blank=True, null=True)),
                ('admission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bed_transfers', to='ipd.admission')),
                ('from_bed', models.ForeignKey(help_text='Original bed', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfers_from', to='ipd.bed')),
                ('to_bed', models.ForeignKey(help_text='New bed', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfers_to', to='ipd.bed')),
            ],
            options={
                'verbose_name': 'IPD Bed Transfer',
                'verbose_name_plural': 'IPD Bed Transfers',
                'db_table': 'ipd_bed_transfers',
                'ordering': ['-transfer_date'],
                'indexes': [models.Index(fields=['admission', '-transfer_date'], name='ipd_transfer_admission_idx')],
            },
        ),
        migrations.CreateModel(
            name='TreatmentNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('note', models.TextField()),
                ('added_by_user_id', models.UUIDField(blank=True, null=True)),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('admission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='treatment_notes', to='ipd.admission')),
            ],
            options={
                'verbose_name': 'IPD Treatment Note',
                'verbose_name_plural': 'IPD Treatment Notes',
                'db_table': 'ipd_treatment_notes',
                'ordering': ['-recorded_at'],
            },
        ),
        migrations.CreateModel(
            name='VitalRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('temperature', models.DecimalField(blank=True, decimal_places=1, help_text='Temperature in Celsius', max_digits=4, null=True, validators=[django.core.validators.MinValueValidator(Decimal('30.0')), django.core.validators.MaxValueValidator(Decimal('45.0'))])),
                ('blood_pressure_systolic', models.PositiveIntegerField(blank=True, null=True)),
                ('blood_pressure_diastolic', models.PositiveIntegerField(blank=True, null=True)),
                ('pulse', models.PositiveIntegerField(blank=True, help_text='Beats per minute', null=True)),
                ('respiratory_rate', models.PositiveIntegerField(blank=True, null=True)),
                ('oxygen_saturation', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00')), django.core.validators.MaxValueValidator(Decimal('100.00'))])),
                ('recorded_by_user_id', models.UUIDField(blank=True, null=True)),
                ('recorded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('admission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vital_records', to='ipd.admission')),
            ],
            options={
                'verbose_name': 'IPD Vital Record',
                'verbose_name_plural': 'IPD Vital Records',
                'db_table': 'ipd_vital_records',
                'ordering': ['-recorded_at'],
            },
        ),
        migrations.CreateModel(
            name='MedicationEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('medicine', models.CharField(max_length=200)),
                ('dosage', models.CharField(max_length=100)),
                ('frequency', models.CharField(max_length=100)),
                ('route', models.CharField(blank=True, help_text='e.g. Oral, IV', max_length=50)),
                ('start_date', models.DateField(default=django.utils.timezone.localdate)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('instructions', models.TextField(blank=True)),
                ('administered_by_user_id', models.UUIDField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('admission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medications', to='ipd.admission')),
            ],
            options={
                'verbose_name': 'IPD Medication',
                'verbose_name_plural': 'IPD Medications',
                'db_table': 'ipd_medications',
                'ordering': ['-start_date', '-created_at'],
            },
        ),
    ]
