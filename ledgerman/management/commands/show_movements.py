"""
Management command to list the movements recorded under a reference.

Usage:
    python manage.py show_movements TXN-1001
    python manage.py show_movements CANCEL-TXN-1001
    python manage.py show_movements TXN-1001 --type sale --type bundle_sale
"""

from django.core.management.base import BaseCommand, CommandError

from ledgerman.models import Movement, MovementType


class Command(BaseCommand):
    """Show movements command."""

    help = 'Lists stock movements for a transaction reference'

    def add_arguments(self, parser):
        parser.add_argument('reference', help='Transaction number or CANCEL-<transaction number>')
        parser.add_argument(
            '--type',
            action='append',
            dest='types',
            choices=MovementType.values,
            help='Only these movement types (repeatable)'
        )

    def handle(self, *args, **options):
        movements = Movement.objects.for_reference(options['reference'])
        if options['types']:
            movements = movements.of_types(options['types'])

        movements = list(movements.order_by('created_at', 'id'))
        if not movements:
            raise CommandError(f"No movements for {options['reference']}")

        for movement in movements:
            line = (
                f'{movement.created_at:%Y-%m-%d %H:%M:%S}  {movement.movement_type:<24} '
                f'{movement.signed_quantity:>10} {movement.base_unit:<6} {movement.product_name}'
            )
            if movement.container_id:
                line += f'  [{movement.container_id} {movement.container_status} {movement.remaining_quantity}]'
            self.stdout.write(line)

        self.stdout.write(f'{len(movements)} movement(s)')
