"""
Idempotency guard — has this business event already touched stock?

Read-then-act: the check and the writes that follow are not one atomic
step, so two truly concurrent runs for the same reference can both pass.
With LEDGERMAN['CLAIM_REFERENCES'] enabled, the orchestrators also take a
unique ReferenceClaim inside their atomic block, which closes that window.
A run that fails on every line and writes nothing releases its claim, so
the reference can be retried once the cause is fixed.
"""

from ledgerman.models.enums import DEDUCTING_TYPES
from ledgerman.protocols.stores import MovementStore

REVERSAL_PREFIX = 'CANCEL-'


def reversal_reference(transaction_number: str) -> str:
    """Reference of the compensating movements. Format is a public contract."""
    return f"{REVERSAL_PREFIX}{transaction_number}"


class IdempotencyGuard:

    def __init__(self, movements: MovementStore, claim_references: bool = False):
        self.movements = movements
        self.claim_references = claim_references

    def existing_deductions(self, transaction_number: str) -> list:
        """Stock-affecting movements already recorded for the transaction."""
        return self.movements.find(transaction_number, DEDUCTING_TYPES)

    def existing_reversals(self, transaction_number: str) -> list:
        """Any movement already recorded under the cancellation reference."""
        return self.movements.find(reversal_reference(transaction_number))

    def claim(self, reference: str, kind: str, actor: str = '') -> bool:
        """
        Take the unique claim for (reference, kind).

        Returns:
            True when claiming is disabled or the claim was taken now.
        """
        if not self.claim_references:
            return True
        return self.movements.claim(reference, kind, actor)

    def release(self, reference: str, kind: str) -> None:
        """Give the claim back after a run that wrote nothing."""
        if self.claim_references:
            self.movements.release(reference, kind)
