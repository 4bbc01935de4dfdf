import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import server.apps.accounts.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Identity',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('id', models.CharField(default=server.apps.accounts.models.generate_identity_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('name', models.CharField(blank=True, default='', max_length=150)),
                ('email', models.EmailField(help_text='Login email, unique across identities', max_length=254, unique=True)),
                ('is_admin', models.BooleanField(default=False, help_text='Bypasses per-file permission checks')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Identity',
                'verbose_name_plural': 'Identities',
                'ordering': ['email'],
            },
            managers=[
                ('objects', server.apps.accounts.models.IdentityManager()),
            ],
        ),
        migrations.CreateModel(
            name='AccessToken',
            fields=[
                ('token_id', models.CharField(help_text='Public lookup key, first part of the bearer', max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(default='api-token', help_text='Label chosen at issuance', max_length=100)),
                ('digest', models.CharField(help_text='SHA256 hex digest of the secret', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('identity', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_tokens', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Access Token',
                'verbose_name_plural': 'Access Tokens',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['identity', '-created_at'], name='tokens_identity_recent_idx')],
            },
        ),
    ]
