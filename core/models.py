"""
Core models — Organization (tenant). Every finance record is scoped to one.
"""
from django.conf import settings
from django.db import models


class Organization(models.Model):
    """
    Organization / language school. Carries the default currency used for
    budgets, settlements and payouts.
    """
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    currency = models.CharField(max_length=3, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organizations'
        verbose_name = 'Organization'
        verbose_name_plural = 'Organizations'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def default_currency(self):
        return self.currency or settings.DEFAULT_CURRENCY
