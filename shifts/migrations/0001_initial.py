import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Shift',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Dispenser',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('opening_reading', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('is_active', models.BooleanField(default=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='dispensers', to='inventory.product')),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='DailyReading',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('credit_sales', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('bank_sales', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cash_sales', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('credit_sales_other', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('bank_sales_other', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cash_sales_other', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cash_receive', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('bank_receive', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_cash', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cash_payment', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('bank_payment', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('office_payment', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('final_due_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='daily_readings', to='shifts.shift')),
            ],
            options={
                'ordering': ['date', 'shift_id'],
                'constraints': [models.UniqueConstraint(fields=('date', 'shift'), name='shifts_dailyreading_date_shift_uniq')],
            },
        ),
        migrations.CreateModel(
            name='ShiftClosed',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('close_date', models.DateField()),
                ('closed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('closed_by', models.CharField(blank=True, default='', max_length=150)),
                ('daily_reading', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='shift_closed', to='shifts.dailyreading')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='closings', to='shifts.shift')),
            ],
            options={
                'ordering': ['-close_date', '-shift_id'],
                'constraints': [models.UniqueConstraint(fields=('close_date', 'shift'), name='shifts_shiftclosed_date_shift_uniq')],
            },
        ),
        migrations.CreateModel(
            name='DispenserReading',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('item_rate', models.DecimalField(decimal_places=2, max_digits=14)),
                ('start_reading', models.DecimalField(decimal_places=2, max_digits=14)),
                ('end_reading', models.DecimalField(decimal_places=2, max_digits=14)),
                ('meter_test', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('net_reading', models.DecimalField(decimal_places=2, max_digits=14)),
                ('total_sale', models.DecimalField(decimal_places=2, max_digits=14)),
                ('employee_name', models.CharField(blank=True, default='', max_length=150)),
                ('dispenser', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='readings', to='shifts.dispenser')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='dispenser_readings', to='inventory.product')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='dispenser_readings', to='shifts.shift')),
                ('shift_closed', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='dispenser_readings', to='shifts.shiftclosed')),
            ],
            options={
                'ordering': ['date', 'shift_id', 'dispenser_id'],
                'constraints': [models.UniqueConstraint(fields=('date', 'shift', 'dispenser'), name='shifts_dispenserreading_date_shift_dispenser_uniq')],
            },
        ),
        migrations.CreateModel(
            name='OtherProductSale',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('item_rate', models.DecimalField(decimal_places=2, max_digits=14)),
                ('sell_quantity', models.DecimalField(decimal_places=3, max_digits=14)),
                ('total_sales', models.DecimalField(decimal_places=2, max_digits=14)),
                ('employee_name', models.CharField(blank=True, default='', max_length=150)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='other_product_sales', to='inventory.product')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='other_product_sales', to='shifts.shift')),
                ('shift_closed', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='other_product_sales', to='shifts.shiftclosed')),
                ('unit', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='inventory.unit')),
            ],
            options={
                'ordering': ['date', 'shift_id', 'id'],
            },
        ),
    ]
