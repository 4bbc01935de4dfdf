"""Main settings file, assembled from components.

See https://github.com/sobolevn/django-split-settings for how the
components are included.
"""

import django_stubs_ext
from split_settings.tools import include

# Allows `admin.ModelAdmin[Model]` style generics at runtime.
django_stubs_ext.monkeypatch()

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/access.py',
)
