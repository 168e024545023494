from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='IdentifierSequence',
            fields=[
                ('key', models.CharField(help_text="Sequence key, e.g. 'PAT' or 'INV2501'", max_length=32, primary_key=True, serialize=False)),
                ('last_value', models.PositiveBigIntegerField(default=0, help_text='Last value handed out for this key')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Identifier Sequence',
                'verbose_name_plural': 'Identifier Sequences',
                'db_table': 'identifier_sequences',
                'ordering': ['key'],
            },
        ),
    ]
