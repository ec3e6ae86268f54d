import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


def _record_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('date', models.DateField(default=django.utils.timezone.localdate)),
        ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
        ('voucher_no', models.CharField(blank=True, default='', max_length=64)),
        ('is_posted', models.BooleanField(default=False, editable=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('inventory', '0001_initial'),
        ('ledger', '0001_initial'),
        ('shifts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CreditSale',
            fields=_record_fields() + [
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=14)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('vehicle_no', models.CharField(blank=True, default='', max_length=50)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='credit_sales', to='ledger.account')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='credit_sales', to='inventory.product')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='credit_sales', to='shifts.shift')),
            ],
            options={
                'ordering': ['date', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='BankSale',
            fields=_record_fields() + [
                ('reference', models.CharField(blank=True, default='', max_length=100)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bank_sales', to='ledger.account')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bank_sales', to='inventory.product')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bank_sales', to='shifts.shift')),
            ],
            options={
                'ordering': ['date', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Purchase',
            fields=_record_fields() + [
                ('quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=14)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchases', to='inventory.product')),
                ('supplier', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchases', to='ledger.account')),
            ],
            options={
                'ordering': ['date', 'id'],
                'abstract': False,
            },
        ),
    ]
