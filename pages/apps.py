from django.apps import AppConfig


class PagesConfig(AppConfig):
    """Django AppConfig for admin-editable static page sections."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pages'
