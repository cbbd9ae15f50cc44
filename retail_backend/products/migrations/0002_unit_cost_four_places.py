from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="stockbatch",
            name="unit_cost",
            field=models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18),
        ),
        migrations.AlterField(
            model_name="stocktransferitem",
            name="unit_cost",
            field=models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18),
        ),
    ]
