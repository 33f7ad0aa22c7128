import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SyncState',
            fields=[
                ('target', models.CharField(max_length=50, primary_key=True, serialize=False)),
                ('last_cursor', models.TextField(blank=True, null=True)),
                ('last_sync_timestamp', models.DateTimeField(blank=True, null=True)),
                ('last_full_sync_completion_timestamp', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='CachedRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target', models.CharField(max_length=50)),
                ('key', models.CharField(max_length=32)),
                ('data', models.JSONField()),
                ('synced_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'constraints': [
                    models.UniqueConstraint(fields=('target', 'key'), name='uniq_cached_record_target_key'),
                ],
            },
        ),
    ]
