"""
Management command to reverse the stock movements of a cancelled sale.

Usage:
    python manage.py reverse_transaction TXN-1001
    python manage.py reverse_transaction TXN-1001 --user manager
    python manage.py reverse_transaction TXN-1001 --dry-run
"""

from django.core.management.base import BaseCommand, CommandError

from ledgerman import build_ledger
from ledgerman.services.guard import reversal_reference


class Command(BaseCommand):
    """Reverse transaction command."""

    help = 'Writes compensating RETURN movements for a cancelled transaction'

    def add_arguments(self, parser):
        parser.add_argument('transaction_number', help='Transaction to reverse')
        parser.add_argument(
            '--user',
            default='system',
            help='Recorded as created_by on the reversal movements'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Shows what would be reversed without writing anything'
        )

    def handle(self, *args, **options):
        ledger = build_ledger()
        number = options['transaction_number']

        if options['dry_run']:
            if ledger.is_reversed(number):
                self.stdout.write(f'{number} is already reversed ({reversal_reference(number)})')
                return

            originals = ledger.guard.existing_deductions(number)
            for movement in originals:
                self.stdout.write(
                    f'  +{movement.converted_quantity} {movement.product_name} '
                    f'[{movement.movement_type}] {movement.container_id or ""}'.rstrip()
                )
            self.stdout.write(f'{len(originals)} movement(s) would be reversed')
            return

        result = ledger.reverse_transaction(number, actor=options['user'])

        for warning in result.warnings:
            self.stdout.write(self.style.WARNING(warning))
        for error in result.errors:
            self.stderr.write(self.style.ERROR(error))

        if result.errors:
            raise CommandError(
                f'{result.reversed_count} of {result.original_movement_count} movement(s) reversed'
            )

        self.stdout.write(
            self.style.SUCCESS(f'{result.reversed_count} movement(s) reversed')
        )
