from django.db.models.signals import post_delete
from django.dispatch import receiver

from apps.datasets.models import DynamicCollection

from .models import UploadMetadata


@receiver(post_delete, sender=DynamicCollection)
def drop_upload_metadata(sender, instance, **kwargs):
    """A deleted collection is no longer listed as uploaded."""
    UploadMetadata.objects.filter(collection_name=instance.name).delete()
