"""Django signals for cache invalidation.

The version bump waits for the surrounding transaction to commit, so a
concurrent read cannot cache uncommitted rows under the new version.
"""

import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from schedules import cache
from schedules.models import Schedule, Session

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Schedule)
def invalidate_schedule_cache(sender, instance, **kwargs):
    """Invalidate cached lists and details when a schedule is saved or deleted."""
    transaction.on_commit(cache.bump_version)
    logger.debug(f"Schedule cache invalidation queued by {instance.slug}")


@receiver([post_save, post_delete], sender=Session)
def invalidate_session_cache(sender, instance, **kwargs):
    """Invalidate cached lists and details when a session is saved or deleted."""
    transaction.on_commit(cache.bump_version)
