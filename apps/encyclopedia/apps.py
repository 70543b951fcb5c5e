from django.apps import AppConfig


class EncyclopediaConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.encyclopedia'
    verbose_name = 'Encyclopedia'
