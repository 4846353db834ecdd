import logging

from django.apps import apps
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Template

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Template)
@receiver(post_delete, sender=Template)
def invalidate_schema(sender, instance, **kwargs):
    apps.get_app_config("templates_app").schema_cache.invalidate(instance.action_slug)
    logger.debug("Schema cache invalidated for %s", instance.action_slug)
