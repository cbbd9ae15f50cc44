from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="salesitem",
            name="line_no",
            field=models.PositiveIntegerField(default=1),
        ),
        migrations.AlterModelOptions(
            name="salesitem",
            options={"ordering": ["line_no", "id"]},
        ),
        migrations.AlterField(
            model_name="salesreturnitem",
            name="unit_cost",
            field=models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18),
        ),
    ]
