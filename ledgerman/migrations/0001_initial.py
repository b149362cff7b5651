"""
Initial migration for Ledgerman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Ledgerman models: Product, Container, blends, bundles, Movement, ReferenceClaim."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('sku', models.CharField(max_length=64, unique=True, verbose_name='SKU')),
                ('base_unit', models.CharField(default='unit', help_text='Unit in which converted quantities are expressed', max_length=20, verbose_name='Base unit')),
                ('current_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Current stock')),
                ('available_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Available stock')),
                ('container_capacity', models.DecimalField(blank=True, decimal_places=3, help_text='Empty = product is not sold out of containers', max_digits=12, null=True, verbose_name='Container capacity')),
                ('full_containers', models.PositiveIntegerField(default=0, verbose_name='Sealed containers')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='BlendTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('usage_count', models.DecimalField(decimal_places=3, default=0, max_digits=12, verbose_name='Units sold')),
                ('last_used', models.DateTimeField(blank=True, null=True, verbose_name='Last used')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Blend template',
                'verbose_name_plural': 'Blend templates',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Bundle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('sku', models.CharField(max_length=64, unique=True, verbose_name='SKU')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Bundle',
                'verbose_name_plural': 'Bundles',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ReferenceClaim',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reference', models.CharField(max_length=100, verbose_name='Reference')),
                ('kind', models.CharField(choices=[('deduction', 'Deduction'), ('reversal', 'Reversal')], max_length=20, verbose_name='Kind')),
                ('claimed_by', models.CharField(blank=True, default='', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Reference claim',
                'verbose_name_plural': 'Reference claims',
            },
        ),
        migrations.CreateModel(
            name='Container',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sequence', models.PositiveIntegerField(help_text='FIFO order: oldest opened first', verbose_name='Queue position')),
                ('code', models.CharField(max_length=64, verbose_name='Container ID')),
                ('capacity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Capacity')),
                ('remaining', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Negative only when status is oversold', max_digits=12, verbose_name='Remaining')),
                ('status', models.CharField(choices=[('full', 'Full'), ('partial', 'Partial'), ('oversold', 'Oversold'), ('empty', 'Empty')], default='partial', max_length=10, verbose_name='Status')),
                ('opened_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Opened at')),
                ('sale_history', models.JSONField(blank=True, default=list, verbose_name='Sale history')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='containers', to='ledgerman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Container',
                'verbose_name_plural': 'Containers',
                'ordering': ['product', 'sequence'],
            },
        ),
        migrations.CreateModel(
            name='BlendIngredient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity per unit')),
                ('unit_of_measurement_id', models.CharField(blank=True, default='', max_length=64)),
                ('unit_name', models.CharField(blank=True, default='', max_length=20)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='ledgerman.product', verbose_name='Product')),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ingredients', to='ledgerman.blendtemplate', verbose_name='Blend template')),
            ],
            options={
                'verbose_name': 'Blend ingredient',
                'verbose_name_plural': 'Blend ingredients',
                'ordering': ['template', 'id'],
            },
        ),
        migrations.CreateModel(
            name='BundleLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_type', models.CharField(choices=[('product', 'Product'), ('fixed_blend', 'Fixed blend')], default='product', max_length=20, verbose_name='Line type')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity per bundle')),
                ('unit_of_measurement_id', models.CharField(blank=True, default='', max_length=64)),
                ('unit_name', models.CharField(blank=True, default='', max_length=20)),
                ('blend', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='ledgerman.blendtemplate', verbose_name='Blend template')),
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='ledgerman.bundle', verbose_name='Bundle')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='ledgerman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Bundle line',
                'verbose_name_plural': 'Bundle lines',
                'ordering': ['bundle', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Product name')),
                ('movement_type', models.CharField(choices=[('sale', 'Sale'), ('fixed_blend', 'Fixed blend ingredient'), ('bundle_sale', 'Bundle sale'), ('bundle_blend_ingredient', 'Bundle blend ingredient'), ('blend_ingredient', 'Blend ingredient'), ('custom_blend', 'Custom blend'), ('return', 'Return')], max_length=30, verbose_name='Type')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity')),
                ('converted_quantity', models.DecimalField(decimal_places=3, help_text='Quantity in the product base unit', max_digits=12, verbose_name='Converted quantity')),
                ('unit_of_measurement_id', models.CharField(blank=True, default='', max_length=64)),
                ('base_unit', models.CharField(default='unit', max_length=20, verbose_name='Base unit')),
                ('reference', models.CharField(db_index=True, help_text='Transaction number, or CANCEL-<transaction number> for reversals', max_length=100, verbose_name='Reference')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('created_by', models.CharField(max_length=150, verbose_name='Created by')),
                ('container_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Container')),
                ('container_status', models.CharField(blank=True, choices=[('full', 'Full'), ('partial', 'Partial'), ('oversold', 'Oversold'), ('empty', 'Empty')], default='', max_length=10, verbose_name='Container status')),
                ('remaining_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, verbose_name='Remaining in container')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='ledgerman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Movement',
                'verbose_name_plural': 'Movements',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['reference', 'movement_type'], name='ledger_mov_ref_type_idx'),
                    models.Index(fields=['product', 'created_at'], name='ledger_mov_product_date_idx'),
                    models.Index(fields=['movement_type'], name='ledger_mov_type_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='referenceclaim',
            constraint=models.UniqueConstraint(fields=('reference', 'kind'), name='unique_reference_claim'),
        ),
        migrations.AddConstraint(
            model_name='container',
            constraint=models.UniqueConstraint(fields=('product', 'sequence'), name='unique_container_queue_position'),
        ),
        migrations.AddConstraint(
            model_name='container',
            constraint=models.UniqueConstraint(fields=('product', 'code'), name='unique_container_code_per_product'),
        ),
    ]
