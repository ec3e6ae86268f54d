import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


PAYMENT_TYPES = [('CASH', 'Cash'), ('BANK', 'Bank'), ('MOBILE_BANK', 'Mobile Bank')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('shifts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('ac_number', models.CharField(max_length=64, unique=True)),
                ('group', models.CharField(choices=[('CASH_IN_HAND', 'Cash in Hand'), ('BANK_ACCOUNT', 'Bank Account'), ('MOBILE_BANK', 'Mobile Bank'), ('CUSTOMER', 'Customer'), ('SUPPLIER', 'Supplier'), ('LIABILITY', 'Liability'), ('BANK_LOAN', 'Bank Loan'), ('CUSTOMER_SECURITY', 'Customer Security'), ('ASSET', 'Asset'), ('INCOME', 'Income'), ('EXPENSE', 'Expense'), ('OTHER', 'Other')], max_length=32)),
                ('status', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transaction_type', models.CharField(choices=[('Dr', 'Debit'), ('Cr', 'Credit')], max_length=2)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('entry_no', models.CharField(db_index=True, max_length=32)),
                ('source_type', models.CharField(choices=[('PAYMENT_VOUCHER', 'Payment Voucher'), ('RECEIPT_VOUCHER', 'Receipt Voucher'), ('BANK_SALE', 'Bank Sale'), ('CREDIT_SALE', 'Credit Sale'), ('PURCHASE', 'Purchase'), ('SHIFT_CLOSE', 'Shift Close')], max_length=32)),
                ('source_id', models.PositiveBigIntegerField()),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('payment_type', models.CharField(choices=PAYMENT_TYPES, default='CASH', max_length=16)),
                ('voucher_no', models.CharField(blank=True, default='', max_length=64)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='ledger.account')),
            ],
            options={
                'ordering': ['timestamp', 'id'],
                'indexes': [models.Index(fields=['account', 'timestamp'], name='ledger_txn_account_ts_idx'), models.Index(fields=['source_type', 'source_id'], name='ledger_txn_source_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('amount__gte', 0)), name='ledger_txn_amount_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='Voucher',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('voucher_no', models.CharField(max_length=64, unique=True)),
                ('voucher_type', models.CharField(choices=[('PAYMENT', 'Payment'), ('RECEIPT', 'Receipt')], max_length=16)),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('payment_type', models.CharField(choices=PAYMENT_TYPES, default='CASH', max_length=16)),
                ('is_office_payment', models.BooleanField(default=False)),
                ('expense_head', models.CharField(blank=True, default='', max_length=100)),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('is_posted', models.BooleanField(default=False, editable=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('from_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vouchers_from', to='ledger.account')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vouchers', to='shifts.shift')),
                ('to_account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vouchers_to', to='ledger.account')),
            ],
            options={
                'ordering': ['date', 'id'],
                'constraints': [models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='ledger_voucher_amount_positive')],
            },
        ),
    ]
