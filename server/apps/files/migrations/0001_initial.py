import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import server.apps.files.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.CharField(default=server.apps.files.models.generate_file_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Display name chosen by the owner', max_length=255)),
                ('content_ref', models.CharField(help_text='Opaque blob handle returned by the blob store', max_length=512, unique=True)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('mime_type', models.CharField(default='application/octet-stream', help_text='MIME type guessed from the file name', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['owner', '-created_at'], name='files_owner_recent_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(size_bytes__gte=0), name='files_size_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='OrphanedBlob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content_ref', models.CharField(max_length=512, unique=True)),
                ('attempts', models.PositiveIntegerField(default=0, help_text='Failed deletion attempts so far')),
                ('last_error', models.TextField(blank=True, default='')),
                ('recorded_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Orphaned Blob',
                'verbose_name_plural': 'Orphaned Blobs',
                'ordering': ['recorded_at'],
            },
        ),
        migrations.CreateModel(
            name='PermissionGrant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('can_read', models.BooleanField(default=False)),
                ('can_write', models.BooleanField(default=False)),
                ('can_delete', models.BooleanField(default=False)),
                ('granted_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('file', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='grants', to='files.file')),
                ('grantee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='file_grants', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Permission Grant',
                'verbose_name_plural': 'Permission Grants',
                'constraints': [models.UniqueConstraint(fields=('file', 'grantee'), name='grants_file_grantee_unique')],
            },
        ),
    ]
