"""
ReferenceClaim model — unique marker taken before processing a reference.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ClaimKind(models.TextChoices):
    DEDUCTION = 'deduction', _('Deduction')
    REVERSAL = 'reversal', _('Reversal')


class ReferenceClaim(models.Model):
    """
    One row per (reference, kind), enforced by the database.

    Only written when LEDGERMAN['CLAIM_REFERENCES'] is enabled. The insert
    happens in the same atomic block as the movements, so a concurrent
    duplicate either waits on the row or fails with an IntegrityError.
    """

    reference = models.CharField(max_length=100, verbose_name=_('Reference'))
    kind = models.CharField(max_length=20, choices=ClaimKind.choices, verbose_name=_('Kind'))
    claimed_by = models.CharField(max_length=150, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Reference claim')
        verbose_name_plural = _('Reference claims')
        constraints = [
            models.UniqueConstraint(
                fields=['reference', 'kind'],
                name='unique_reference_claim',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.kind}:{self.reference}"
