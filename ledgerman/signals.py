"""
Ledger signals.

Receivers get the event fields as keyword arguments:

    from ledgerman.signals import deduction_completed

    @receiver(deduction_completed)
    def on_deduction(sender, reference, movement_count, error_count, **kwargs):
        ...
"""

from django.dispatch import Signal

movement_created = Signal()
deduction_completed = Signal()
reversal_completed = Signal()
