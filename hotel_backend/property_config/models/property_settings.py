from __future__ import annotations

from django.conf import settings
from django.db import models


class PropertySettings(models.Model):
    """
    Singleton row (pk=1) holding the global pricing mode.

    is_tax_inclusive=True  -> quoted prices already contain tax
    is_tax_inclusive=False -> tax is added on top of quoted prices
    """

    SINGLETON_PK = 1

    is_tax_inclusive = models.BooleanField(default=False)

    property_name = models.CharField(max_length=120, blank=True, default="")
    property_address = models.CharField(max_length=255, blank=True, default="")

    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    class Meta:
        verbose_name = "Property settings"
        verbose_name_plural = "Property settings"

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_PK
        super().save(*args, **kwargs)

    @classmethod
    def load(cls) -> "PropertySettings":
        obj, _ = cls.objects.get_or_create(
            pk=cls.SINGLETON_PK,
            defaults={
                "property_name": getattr(settings, "PROPERTY_NAME", ""),
                "property_address": getattr(settings, "PROPERTY_ADDRESS", ""),
            },
        )
        return obj

    def __str__(self):
        mode = "inclusive" if self.is_tax_inclusive else "exclusive"
        return f"Property settings ({mode})"
