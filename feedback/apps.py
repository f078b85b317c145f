from django.apps import AppConfig


class FeedbackConfig(AppConfig):
    """Django AppConfig for contact messages and guidance records."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'feedback'
