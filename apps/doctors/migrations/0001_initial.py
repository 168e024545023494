import apps.doctors.models
from decimal import Decimal
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='DoctorProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doctor_id', models.CharField(editable=False, help_text='Generated identifier (e.g. DOC000001)', max_length=20, unique=True)),
                ('user_id', models.UUIDField(blank=True, help_text='Identity service user ID', null=True, unique=True)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(blank=True, max_length=100)),
                ('specialization', models.CharField(max_length=100)),
                ('department', models.CharField(max_length=100)),
                ('qualifications', models.TextField(blank=True)),
                ('license_number', models.CharField(blank=True, max_length=64)),
                ('years_of_experience', models.PositiveIntegerField(default=0)),
                ('consultation_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Consultation fee', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('slot_duration', models.PositiveIntegerField(default=apps.doctors.models.default_slot_duration, help_text='Appointment slot length in minutes', validators=[django.core.validators.MinValueValidator(5)])),
                ('is_available', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Doctor Profile',
                'verbose_name_plural': 'Doctor Profiles',
                'db_table': 'doctor_profiles',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['specialization'], name='doctor_specialization_idx'),
                    models.Index(fields=['department'], name='doctor_department_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DoctorAvailability',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day_of_week', models.CharField(choices=[('monday', 'Monday'), ('tuesday', 'Tuesday'), ('wednesday', 'Wednesday'), ('thursday', 'Thursday'), ('friday', 'Friday'), ('saturday', 'Saturday'), ('sunday', 'Sunday')], max_length=16)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('max_patients', models.PositiveIntegerField(default=20, help_text='Maximum patients in this window')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availability', to='doctors.doctorprofile')),
            ],
            options={
                'verbose_name': 'Doctor Availability',
                'verbose_name_plural': 'Doctor Availability',
                'db_table': 'doctor_availability',
                'ordering': ['doctor', 'day_of_week', 'start_time'],
                'indexes': [
                    models.Index(fields=['doctor', 'day_of_week'], name='doctor_avail_day_idx'),
                ],
                'unique_together': {('doctor', 'day_of_week', 'start_time')},
            },
        ),
    ]
