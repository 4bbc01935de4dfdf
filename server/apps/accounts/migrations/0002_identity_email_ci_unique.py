import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.AddConstraint(
            model_name='identity',
            constraint=models.UniqueConstraint(django.db.models.functions.text.Lower('email'), name='identities_email_ci_unique'),
        ),
    ]
