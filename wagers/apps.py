from django.apps import AppConfig


class WagersConfig(AppConfig):
    name = "wagers"
    verbose_name = "Wagers"
