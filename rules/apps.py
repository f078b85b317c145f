from django.apps import AppConfig


class RulesConfig(AppConfig):
    """Django AppConfig for the rule corpus, reviews and import tooling."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'rules'
